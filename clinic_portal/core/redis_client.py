"""Redis connection, login rate limiting and the identity lookup cache.

Redis is optional at runtime: every helper here degrades to a pass-through
(cache miss, request allowed) when the server cannot be reached.
"""

from typing import cast

import redis
import structlog

from clinic_portal.config import settings

logger = structlog.get_logger(__name__)

# Socket-level failures surface as OSError subclasses in some redis-py paths
REDIS_ERRORS = (redis.RedisError, OSError)

_redis_client: redis.Redis | None = None


def get_redis_client() -> redis.Redis:
    """
    Return the process-wide Redis client, creating it on first use.

    Returns:
        Redis client instance
    """
    global _redis_client

    if _redis_client is None:
        _redis_client = redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            username=settings.redis_username,
            password=settings.redis_password,
            decode_responses=settings.redis_decode_responses,
            socket_connect_timeout=5,
            socket_keepalive=True,
            health_check_interval=30,
        )

    return _redis_client


async def check_redis_connection() -> bool:
    """Ping Redis; False when it is unreachable."""
    try:
        return bool(get_redis_client().ping())
    except REDIS_ERRORS as e:
        logger.warning("redis_ping_failed", error=str(e))
        return False


def close_redis_connection() -> None:
    global _redis_client

    if _redis_client is not None:
        _redis_client.close()
        _redis_client = None


class RateLimiter:
    """Fixed-window counter per key, used to throttle login attempts."""

    def __init__(self, redis_client: redis.Redis):
        self.redis = redis_client

    def check_rate_limit(self, key: str, limit: int, window: int = 60) -> bool:
        """
        Count a hit against ``key`` and report whether it is still allowed.

        The first hit opens a window of ``window`` seconds; later hits in the
        same window increment the counter until ``limit`` is reached.

        Args:
            key: Counter key, e.g. ``rate_limit:login:<path>:<ip>``
            limit: Hits allowed per window
            window: Window length in seconds

        Returns:
            True if within limit, False if exceeded. Also True when Redis is down.
        """
        try:
            current = cast(str | None, self.redis.get(key))

            if current is None:
                self.redis.setex(key, window, 1)
                return True

            if int(current) >= limit:
                return False

            self.redis.incr(key)
            return True
        except (*REDIS_ERRORS, ValueError) as e:
            logger.warning("rate_limit_unavailable", key=key, error=str(e))
            return True


class CacheManager:
    """String key/value cache over Redis; errors read as misses."""

    def __init__(self, redis_client: redis.Redis):
        self.redis = redis_client

    def get(self, key: str) -> str | None:
        try:
            return cast(str | None, self.redis.get(key))
        except REDIS_ERRORS as e:
            logger.warning("cache_get_failed", key=key, error=str(e))
            return None

    def set(self, key: str, value: str, ttl: int | None = None) -> bool:
        """
        Store ``value`` under ``key``.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Expiry in seconds; no expiry when omitted

        Returns:
            True if stored
        """
        try:
            if ttl:
                self.redis.setex(key, ttl, value)
            else:
                self.redis.set(key, value)
            return True
        except REDIS_ERRORS as e:
            logger.warning("cache_set_failed", key=key, error=str(e))
            return False

    def delete(self, key: str) -> bool:
        try:
            self.redis.delete(key)
            return True
        except REDIS_ERRORS as e:
            logger.warning("cache_delete_failed", key=key, error=str(e))
            return False
