"""
TimeBank Backend — Request Logging Middleware
==============================================

What:  One access-log line per request: method, path, status, duration and
       client IP, at a level chosen by status class.
Who:   Applied to every request; health probes and file downloads are
       skipped since they would drown the useful entries.

What we log vs what we don't:
    ✅ method, path, status, duration, IP, request id
    ❌ request bodies (passwords, contact messages), Authorization headers
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from timebank.config import settings
from timebank.middleware.request_id import request_id_var

logger = logging.getLogger("timebank.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs each HTTP exchange after the response is produced.

    Level by status:
        5xx → ERROR, 4xx → WARNING, otherwise INFO
    """

    SKIPPED_PATHS = {"/health"}

    def _is_skipped(self, path: str) -> bool:
        return path in self.SKIPPED_PATHS or path.startswith(settings.public_uploads_path + "/")

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if self._is_skipped(path):
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms from %s",
            request.method,
            path,
            status,
            duration_ms,
            client_ip,
            extra={
                "request_id": request_id_var.get(""),
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
