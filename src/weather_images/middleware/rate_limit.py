"""Rate limiting middleware."""

import logging
from typing import Callable, Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from weather_images.config import RATE_LIMIT_ENABLED, RATE_LIMIT_REQUESTS_PER_SECOND
from weather_images.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Returns HTTP 429 once the global request rate is exceeded.

    Only image and lookup endpoints under /api/ are throttled.
    """

    # Paths under /api/ that should bypass rate limiting
    BYPASS_PATHS = {
        "/api",
    }

    def __init__(
        self,
        app,
        calls: int = RATE_LIMIT_REQUESTS_PER_SECOND,
        enabled: bool = RATE_LIMIT_ENABLED,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        """Initialize rate limit middleware.

        Args:
            app: ASGI application
            calls: Maximum requests per second
            enabled: Whether throttling is active
            rate_limiter: Limiter to use (creates default if None)
        """
        super().__init__(app)
        self.enabled = enabled
        self.rate_limiter = rate_limiter or RateLimiter(max_requests=calls)
        logger.info(f"Rate limit enabled: {self.enabled}, limit: {calls} req/sec")

    def _is_throttled_path(self, path: str) -> bool:
        return path.startswith("/api/") and path not in self.BYPASS_PATHS

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Check the limit before passing the request on.

        Args:
            request: Incoming HTTP request
            call_next: Next middleware/endpoint in chain

        Returns:
            HTTP response (either rate limit error or continued response)
        """
        if not self.enabled or not self._is_throttled_path(request.url.path):
            return await call_next(request)

        is_allowed, retry_after = await self.rate_limiter.is_allowed()

        if not is_allowed:
            client_host = request.client.host if request.client else "unknown"
            logger.warning(f"Rate limit exceeded for {client_host} accessing {request.method} {request.url.path}")

            return JSONResponse(
                status_code=429,
                content={
                    "detail": "Rate limit exceeded. Please try again later.",
                    "retry_after": retry_after
                },
                headers={"Retry-After": str(retry_after)}
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(self.rate_limiter.max_requests)
        response.headers["X-RateLimit-Window"] = str(self.rate_limiter.window_seconds)
        return response
