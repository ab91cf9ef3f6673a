"""
TimeBank Backend — Auth Rate Limiting Middleware
=================================================

What:  Per-IP sliding window limit on POST /login and POST /register.
Why:   Slows down password guessing and bulk account creation. All other
       endpoints pass straight through.

Algorithm: Sliding Window Log
    1. Each IP keeps the timestamps of its recent auth attempts
    2. On each attempt, drop timestamps older than the window
    3. If the remaining count >= limit, answer 429 with Retry-After
    4. Otherwise record the attempt and let it through

State is in process memory, so the limit applies per worker process.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, List

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from timebank.config import settings
from timebank.exceptions import RateLimitExceededError
from timebank.responses import error_response

logger = logging.getLogger(__name__)


class AuthRateLimitMiddleware(BaseHTTPMiddleware):
    """
    In-memory sliding window limiter for the credential endpoints.

    Configuration (from settings):
        auth_rate_limit_requests: attempts allowed per window (default: 20)
        auth_rate_limit_window:   window length in seconds (default: 300)
    """

    LIMITED_PATHS = {"/login", "/register"}
    CLEANUP_EVERY = 1000

    def __init__(self, app, **kwargs):
        super().__init__(app, **kwargs)
        self._attempts: Dict[str, List[float]] = defaultdict(list)
        self._seen = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.method != "POST" or request.url.path not in self.LIMITED_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.time()
        window = settings.auth_rate_limit_window
        window_start = now - window

        attempts = [ts for ts in self._attempts[client_ip] if ts > window_start]
        self._attempts[client_ip] = attempts

        if len(attempts) >= settings.auth_rate_limit_requests:
            retry_after = int(attempts[0] + window - now) + 1 if attempts else window
            logger.warning(
                "Auth rate limit exceeded for IP %s on %s: %d attempts in %ds",
                client_ip,
                request.url.path,
                len(attempts),
                window,
            )
            exc = RateLimitExceededError(retry_after=retry_after)
            return error_response(
                429,
                "rate_limit_exceeded",
                exc.message,
                exc.context,
                headers={"Retry-After": str(exc.retry_after)},
            )

        attempts.append(now)

        self._seen += 1
        if self._seen % self.CLEANUP_EVERY == 0:
            self._cleanup_inactive_ips(window_start)

        return await call_next(request)

    def _cleanup_inactive_ips(self, window_start: float) -> None:
        """Forget IPs with no attempt inside the current window."""
        inactive_ips = [
            ip for ip, timestamps in self._attempts.items()
            if not timestamps or timestamps[-1] < window_start
        ]
        for ip in inactive_ips:
            del self._attempts[ip]

        if inactive_ips:
            logger.debug("Cleaned up %d inactive IP entries", len(inactive_ips))
