"""
HTTP middleware for the REST API.

- SecurityHeadersMiddleware: conservative security headers on every response
- RateLimitMiddleware: fixed-window request limit per client IP
- UnhandledErrorMiddleware: JSON 500 body for uncaught exceptions
"""

import logging
import threading
import time

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware


logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests, please try again later."

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Permitted-Cross-Domain-Policies": "none",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Allow at most `max_requests` per client IP in each window.

    Counters live in process memory and reset when the window that
    started with a client's first request has elapsed.
    Expired clients are swept out at most once per window.
    """

    def __init__(self, app, max_requests: int = 100, window_seconds: int = 900, clock=time.monotonic):
        super().__init__(app)
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: dict[str, tuple[float, int]] = {}
        self._last_sweep = clock()
        self._lock = threading.Lock()

    def _drop_expired(self, now: float) -> None:
        """Forget clients whose window has elapsed. Caller holds the lock."""
        self._hits = {
            client: hit
            for client, hit in self._hits.items()
            if now - hit[0] < self.window_seconds
        }
        self._last_sweep = now

    def _register_hit(self, client: str) -> tuple[int, float]:
        now = self._clock()
        with self._lock:
            if now - self._last_sweep >= self.window_seconds:
                self._drop_expired(now)
            window_start, count = self._hits.get(client, (now, 0))
            if now - window_start >= self.window_seconds:
                window_start, count = now, 0
            count += 1
            self._hits[client] = (window_start, count)
        return count, window_start + self.window_seconds - now

    async def dispatch(self, request: Request, call_next):
        client = request.client.host if request.client else "unknown"
        count, reset_in = self._register_hit(client)
        remaining = max(self.max_requests - count, 0)

        if count > self.max_requests:
            logger.warning(f"Rate limit exceeded for {client}")
            response = JSONResponse(status_code=429, content={"message": RATE_LIMIT_MESSAGE})
            response.headers["Retry-After"] = str(int(reset_in) + 1)
        else:
            response = await call_next(request)

        response.headers["X-RateLimit-Limit"] = str(self.max_requests)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        return response


def server_error_response(exc: Exception, expose_errors: bool = False) -> JSONResponse:
    """500 body; the exception text is included only when exposing errors."""
    return JSONResponse(
        status_code=500,
        content={
            "message": "Something went wrong!",
            "error": str(exc) if expose_errors else {},
        },
    )


class UnhandledErrorMiddleware(BaseHTTPMiddleware):
    """
    Convert exceptions that escape the routes into the JSON 500 body.

    Must be the innermost middleware so CORS and security headers
    are still applied to the error response.
    """

    def __init__(self, app, expose_errors: bool = False):
        super().__init__(app)
        self.expose_errors = expose_errors

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            logger.exception(f"Unhandled error on {request.method} {request.url.path}")
            return server_error_response(exc, self.expose_errors)
