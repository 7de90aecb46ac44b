"""Redis-backed fixed-window rate limiting."""

import time
from typing import Any

import structlog
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from questboard.redis_client import get_redis

logger = structlog.get_logger()

# Probes must never be throttled.
_EXEMPT_PATHS = frozenset({"/health", "/ready"})


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Count requests per client IP per window; 429 once over the limit.

    Without Redis (not initialized, or unreachable) requests pass through
    unlimited.
    """

    def __init__(self, app: Any, requests_per_window: int = 100, window_seconds: int = 60) -> None:  # noqa: ANN401
        super().__init__(app)
        self.requests_per_window = requests_per_window
        self.window_seconds = window_seconds

    async def _hit(self, key: str) -> int | None:
        """Increment the window counter; None when Redis is unavailable."""
        try:
            redis = get_redis()
        except RuntimeError:
            return None
        try:
            pipe = redis.pipeline()
            pipe.incr(key)
            pipe.expire(key, self.window_seconds + 1)
            results: list[Any] = await pipe.execute()
        except RedisError as exc:
            logger.warning("rate_limit_unavailable", error=str(exc))
            return None
        return int(results[0])

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in _EXEMPT_PATHS or request.method == "OPTIONS":
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        window = int(time.time()) // self.window_seconds
        count = await self._hit(f"ratelimit:{client_ip}:{window}")
        if count is None:
            return await call_next(request)

        if count > self.requests_per_window:
            logger.info("rate_limited", client_ip=client_ip, path=request.url.path)
            return JSONResponse(
                status_code=429,
                content={"detail": "Rate limit exceeded. Try again later."},
                headers={
                    "Retry-After": str(self.window_seconds),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Limit": str(self.requests_per_window),
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Remaining"] = str(max(0, self.requests_per_window - count))
        response.headers["X-RateLimit-Limit"] = str(self.requests_per_window)
        return response
