"""
TimeBank Backend — FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires logging, middleware, exception handlers and routers.
Who:   uvicorn (`uvicorn timebank.main:app`) and the test suite.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                        FastAPI App                       │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌────────────────┐ ┌──────────┐ ┌─────────┐ ┌────────┐  │
    │  │ Auth RateLimit │→│ Req ID   │→│ Logging │→│GZip/CORS│ │
    │  └────────────────┘ └──────────┘ └─────────┘ └────────┘  │
    │                                                          │
    │  Routes:                                                 │
    │  auth · profile · services · resources · contact ·       │
    │  descriptions · uploads · health                         │
    │                                                          │
    │  Exception Handlers (one envelope):                      │
    │  400 validation │ 401 auth │ 403 owner │ 404 │ 409 │ 429 │
    │  500 storage/database/unexpected                         │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging, configuration check, storage directory
    Shutdown: dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from timebank import __version__
from timebank.config import settings
from timebank.database import dispose_engine
from timebank.exceptions import (
    AuthenticationError,
    ConflictError,
    DatabaseError,
    NotFoundError,
    StorageFailureError,
    TimeBankError,
    UnauthorizedError,
    ValidationError,
)
from timebank.middleware.logging import RequestLoggingMiddleware
from timebank.middleware.rate_limit import AuthRateLimitMiddleware
from timebank.middleware.request_id import RequestIDMiddleware, RequestIdLogFilter
from timebank.responses import error_response
from timebank.routes import (
    auth,
    contact,
    descriptions,
    health,
    profile,
    resources,
    services,
    uploads,
)

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s [%(request_id)s]: %(message)s"


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the whole process.

    Every record passes through RequestIdLogFilter so the format can print
    the correlation id of the request that produced it ("-" outside requests).
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIdLogFilter())

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[handler],
        force=True,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("TimeBank Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving; the problem is logged loudly at every start.
        logger.error("Configuration error: %s", str(e))

    storage = Path(settings.storage_root)
    storage.mkdir(parents=True, exist_ok=True)
    logger.info("Storage directory: %s", storage.resolve())

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("TimeBank Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types onto HTTP status codes and the error envelope.

    Handler hierarchy:
        ValidationError, RequestValidationError → 400
        AuthenticationError (+ InvalidCredentials) → 401
        UnauthorizedError                        → 403
        NotFoundError                            → 404
        ConflictError                            → 409
        (429 comes from AuthRateLimitMiddleware, same envelope)
        StorageFailureError                      → 500 storage_error
        DatabaseError                            → 500 server_error
        TimeBankError / Exception (fallback)     → 500 internal_server_error

    5xx responses never carry context: file paths and SQL stay in the log.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("Validation error on %s: %s", request.url.path, exc.message)
        return error_response(400, "validation_error", exc.message, exc.context)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
                "message": err.get("msg", ""),
            }
            for err in exc.errors()
        ]
        first = errors[0] if errors else None
        message = "Invalid request"
        if first is not None:
            message = f"{first['field']}: {first['message']}" if first["field"] else first["message"]
        logger.warning("Request validation failed on %s: %s", request.url.path, message)
        return error_response(400, "validation_error", message, jsonable_encoder({"errors": errors}))

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        return error_response(
            401,
            exc.error_code,
            exc.message,
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(UnauthorizedError)
    async def handle_unauthorized(request: Request, exc: UnauthorizedError):
        return error_response(403, "unauthorized", exc.message, exc.context)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return error_response(404, "not_found", exc.message, exc.context)

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        return error_response(409, "conflict", exc.message, exc.context)

    @app.exception_handler(StorageFailureError)
    async def handle_storage_failure(request: Request, exc: StorageFailureError):
        logger.error("File storage error: %s | Context: %s", exc.message, exc.context)
        return error_response(500, "storage_error", exc.message)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error("Database error: %s | Context: %s", exc.message, exc.context)
        return error_response(
            500,
            "server_error",
            "An internal error occurred. Please try again later.",
        )

    @app.exception_handler(TimeBankError)
    async def handle_timebank_error(request: Request, exc: TimeBankError):
        logger.error("Unhandled application error: %s | Context: %s", exc.message, exc.context)
        return error_response(500, "internal_server_error", "An unexpected error occurred.")

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("Unexpected error: %s", str(exc), exc_info=True)
        return error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """Assemble the application: middleware, handlers and routers."""
    app = FastAPI(
        title="TimeBank API",
        description=(
            "Skill and time exchange marketplace: members offer services priced "
            "in hours, share learning resources and contact each other."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RateLimit → RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(AuthRateLimitMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(profile.router)
    app.include_router(services.router)
    app.include_router(resources.router)
    app.include_router(contact.router)
    app.include_router(descriptions.router)
    app.include_router(uploads.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
app = create_app()
