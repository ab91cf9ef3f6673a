"""
TimeBank Backend — Health Check & Banner Routes
================================================

What:  GET / answers with a plain-text banner; GET /health reports whether
       the database and the upload directory are usable.
Who:   Called by Docker health checks, load balancers and humans with curl.

Status levels:
    - healthy:   database reachable and storage writable (HTTP 200)
    - degraded:  database reachable, storage not writable (HTTP 200)
    - unhealthy: database unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy import text

from timebank import __version__
from timebank.database import engine
from timebank.schemas.common import HealthResponse
from timebank.services.asset_store import asset_store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

BANNER = "TimeBank backend running"

_start_time = time.time()


@router.get("/", response_class=PlainTextResponse, summary="Liveness banner")
async def banner() -> str:
    return BANNER


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Database unreachable", "model": HealthResponse}},
    summary="Service health check",
)
async def health_check():
    """
    Probe the database with SELECT 1 and check the storage root is writable.

    Returns:
        HealthResponse with status for each dependency and uptime.
    """
    db_status = "connected"
    storage_status = "writable"
    overall = "healthy"

    # ── Check Database ────────────────────────────────────────────────────
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    # ── Check Storage ─────────────────────────────────────────────────────
    if not asset_store.check_writable():
        storage_status = "unavailable"
        if overall != "unhealthy":
            overall = "degraded"
        logger.warning("Health check: storage root %s not writable", asset_store.storage_root)

    health = HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        storage=storage_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    if overall == "unhealthy":
        return JSONResponse(status_code=503, content=health.model_dump())
    return health
