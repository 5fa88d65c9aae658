"""
BoxIT Backend — Rate Limiting Middleware
=========================================

What:  Per-IP sliding-window limiter for the unauthenticated surfaces:
       /api/auth/* (credential guessing, email flooding) and
       /api/public/* (QR code enumeration).
How:   Each client IP keeps the timestamps of its recent requests. Entries
       older than the window are dropped; once `rate_limit_requests`
       remain, the request is answered with 429 and a Retry-After header.

State is in process memory, so each worker process counts on its own.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, List, Tuple

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from boxit.config import Settings
from boxit.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)

LIMITED_PREFIXES: Tuple[str, ...] = ("/api/auth/", "/api/public/")

CLEANUP_EVERY = 1000


class RateLimitMiddleware(BaseHTTPMiddleware):

    def __init__(self, app, settings: Settings, **kwargs):
        super().__init__(app, **kwargs)
        self.enabled = settings.rate_limit_enabled
        self.limit = settings.rate_limit_requests
        self.window = settings.rate_limit_window
        self._requests: Dict[str, List[float]] = defaultdict(list)
        self._seen = 0

    def _is_limited(self, path: str) -> bool:
        return self.enabled and path.startswith(LIMITED_PREFIXES)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if not self._is_limited(request.url.path):
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.time()
        window_start = now - self.window

        recent = [ts for ts in self._requests[client_ip] if ts > window_start]
        self._requests[client_ip] = recent

        if len(recent) >= self.limit:
            retry_after = int(recent[0] + self.window - now) + 1
            logger.warning(
                "Rate limit exceeded for IP %s: %d requests in %ds window",
                client_ip,
                len(recent),
                self.window,
            )
            return JSONResponse(
                status_code=429,
                content={
                    "error": "rate_limited",
                    "message": f"Too many requests. Please wait {retry_after} seconds before retrying.",
                    "details": {"retry_after": retry_after},
                    "request_id": request_id_var.get(""),
                },
                headers={"Retry-After": str(retry_after)},
            )

        recent.append(now)
        self._seen += 1
        if self._seen % CLEANUP_EVERY == 0:
            self._cleanup_inactive_ips(window_start)

        return await call_next(request)

    def _cleanup_inactive_ips(self, window_start: float) -> None:
        inactive = [
            ip for ip, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] < window_start
        ]
        for ip in inactive:
            del self._requests[ip]
        if inactive:
            logger.debug("Dropped %d idle rate-limit entries", len(inactive))
