"""
TimeBank Backend — Request ID Middleware
=========================================

What:  Gives every request a short correlation id, exposes it to loggers and
       handlers, and echoes it back in the X-Request-ID response header.
How:   The id lives in a ContextVar for the duration of the request;
       RequestIdLogFilter copies it onto every log record so the log format
       can print `[%(request_id)s]`.

A client may send its own X-Request-ID (e.g. the frontend correlating a UI
action with a failed call); otherwise a new one is generated.
"""

import logging
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on the same thread each see their own id.
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

MAX_CLIENT_ID_LENGTH = 64


class RequestIdLogFilter(logging.Filter):
    """Attach the current request id (or "-") to every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "request_id", None):
            record.request_id = request_id_var.get("") or "-"
        return True


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Assigns the request id before any other processing.

    Client-supplied ids longer than MAX_CLIENT_ID_LENGTH are ignored so a
    hostile header cannot bloat every log line.
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID", "")
        if not rid or len(rid) > MAX_CLIENT_ID_LENGTH:
            rid = uuid.uuid4().hex[:8]

        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers["X-Request-ID"] = rid
        return response
