"""Redis store for read-through caching of posts.

Handles:
- Caching with TTL policies
- Explicit invalidation on mutation

TTL policies:
- Post snapshots: CACHE_TTL_SECONDS (default 5 minutes)

The cache is never authoritative. Misses return None; transport errors
(`redis.RedisError`) propagate and callers decide how to degrade.
Misses are never cached.
"""

import logging

import redis.asyncio as redis

from app.settings import Settings

# TTL constants (in seconds)
TTL_POST_DEFAULT = 300  # 5 minutes

# Key prefixes
PREFIX_POST = "post:"

logger = logging.getLogger("uvicorn.error")


def post_cache_key(post_id: int) -> str:
    """Cache key for a single post snapshot (e.g. "post:42")."""
    return f"{PREFIX_POST}{post_id}"


class RedisCache:
    """Key-value cache with a fixed default TTL."""

    def __init__(self, client: redis.Redis, ttl: int = TTL_POST_DEFAULT):
        self._redis = client
        self.ttl = ttl

    @classmethod
    def from_settings(cls, settings: Settings) -> "RedisCache":
        """Create the Redis client from settings (connections are lazy)."""
        client = redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
        )
        return cls(client, ttl=settings.cache_ttl_seconds)

    async def ping(self) -> None:
        """Validate connectivity early."""
        await self._redis.ping()
        logger.info("Redis connected")

    async def close(self) -> None:
        """Close Redis connection."""
        await self._redis.aclose()

    # ============================================================
    # Generic cache operations
    # ============================================================

    async def get(self, key: str) -> str | None:
        """Get value from cache.

        Args:
            key: Cache key.

        Returns:
            Cached value or None if not found.
        """
        return await self._redis.get(key)

    async def set(self, key: str, value: str, ttl: int | None = None) -> None:
        """Set value in cache with TTL (last write wins).

        Args:
            key: Cache key.
            value: Value to cache.
            ttl: Time-to-live in seconds. None means the configured TTL;
                any explicit value, 0 included, is passed to Redis as given.
        """
        await self._redis.setex(key, self.ttl if ttl is None else ttl, value)

    async def delete(self, key: str) -> None:
        """Delete value from cache. Deleting a missing key is a no-op.

        Args:
            key: Cache key.
        """
        await self._redis.delete(key)
