"""Global request throttle backed by Redis."""

import logging
import math
import time
import uuid
from typing import Optional

import redis.asyncio as redis

from weather_images.config import (
    REDIS_URL,
    RATE_LIMIT_REQUESTS_PER_SECOND,
    RATE_LIMIT_REDIS_KEY_PREFIX
)

logger = logging.getLogger(__name__)


class RateLimiter:
    """Sliding-window limiter shared by every process using the same Redis.

    Each request is a member of one sorted set scored by its arrival time.
    Requests are allowed when Redis is unavailable; rendering is protected by
    the image cache, the throttle only smooths bursts.
    """

    def __init__(
        self,
        redis_client: Optional[redis.Redis] = None,
        max_requests: int = RATE_LIMIT_REQUESTS_PER_SECOND,
        window_seconds: float = 1.0,
    ):
        """Initialize rate limiter.

        Args:
            redis_client: Optional Redis client. If None, creates new client.
            max_requests: Requests allowed per window
            window_seconds: Window length in seconds
        """
        self.redis_client = redis_client or redis.from_url(REDIS_URL)
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.key = f"{RATE_LIMIT_REDIS_KEY_PREFIX}:images"

    async def is_allowed(self) -> tuple[bool, int]:
        """Record a request and check it against the limit.

        Returns:
            Tuple of (is_allowed, retry_after_seconds)
        """
        now = time.time()
        member = f"{now:.6f}:{uuid.uuid4().hex[:8]}"

        try:
            pipe = self.redis_client.pipeline()
            pipe.zremrangebyscore(self.key, 0, now - self.window_seconds)
            pipe.zadd(self.key, {member: now})
            pipe.zcard(self.key)
            pipe.zrange(self.key, 0, 0, withscores=True)
            pipe.expire(self.key, max(1, math.ceil(self.window_seconds * 2)))
            _, _, request_count, oldest, _ = await pipe.execute()
        except Exception as e:
            logger.error(f"Rate limiter unavailable, allowing request: {e}")
            return True, 0

        if request_count <= self.max_requests:
            return True, 0

        oldest_score = oldest[0][1] if oldest else now
        retry_after = max(1, math.ceil(oldest_score + self.window_seconds - now))
        logger.debug(f"Rate limited: count={request_count}, max={self.max_requests}, retry_after={retry_after}")
        return False, retry_after

    async def close(self):
        """Close Redis connection."""
        if self.redis_client:
            await self.redis_client.aclose()
