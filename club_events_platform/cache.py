"""
Redis caching layer for public event listings.
"""

import json
import logging
from typing import Any, Optional

import redis.asyncio as redis
from redis.asyncio import Redis
from redis.exceptions import RedisError

from .config import get_settings

logger = logging.getLogger(__name__)


class CacheKeyBuilder:
    """Helper class for building consistent cache keys."""

    @staticmethod
    def event_list(filters_hash: str) -> str:
        """Build cache key for event listings."""
        return f"events:list:{filters_hash}"

    @staticmethod
    def event_detail(event_id: str) -> str:
        """Build cache key for event details."""
        return f"event:detail:{event_id}"


class RedisCache:
    """Redis cache manager with connection handling and operations."""

    def __init__(self):
        self.client: Optional[Redis] = None
        self.pool: Optional[redis.ConnectionPool] = None

    async def initialize(self) -> None:
        """Initialize Redis connection pool and client."""
        settings = get_settings()

        self.pool = redis.ConnectionPool.from_url(
            settings.redis_url,
            max_connections=settings.redis_max_connections,
            retry_on_timeout=True,
            socket_keepalive=True,
            health_check_interval=30
        )
        client = Redis(connection_pool=self.pool)

        # Only keep the client once the server answered
        await client.ping()
        self.client = client
        logger.info("Redis cache initialized successfully")

    async def close(self) -> None:
        """Close Redis connections."""
        if self.client:
            await self.client.aclose()
            self.client = None
        if self.pool:
            await self.pool.disconnect()
            self.pool = None
        logger.info("Redis cache connections closed")

    async def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache.

        Args:
            key: Cache key

        Returns:
            Cached value or None if not found
        """
        if not self.client:
            return None

        try:
            value = await self.client.get(key)
            if value:
                return json.loads(value)
            return None
        except (RedisError, ValueError) as e:
            logger.warning("Failed to get cache key %s: %s", key, e)
            return None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """
        Set value in cache.

        Args:
            key: Cache key
            value: JSON-serializable value to cache
            ttl: Time to live in seconds

        Returns:
            True if successful, False otherwise
        """
        if not self.client:
            return False

        try:
            serialized_value = json.dumps(value, default=str)
            if ttl:
                await self.client.setex(key, ttl, serialized_value)
            else:
                await self.client.set(key, serialized_value)
            return True
        except (RedisError, TypeError) as e:
            logger.warning("Failed to set cache key %s: %s", key, e)
            return False

    async def delete(self, key: str) -> bool:
        """Delete key from cache."""
        if not self.client:
            return False

        try:
            await self.client.delete(key)
            return True
        except RedisError as e:
            logger.warning("Failed to delete cache key %s: %s", key, e)
            return False

    async def delete_pattern(self, pattern: str) -> int:
        """
        Delete all keys matching a pattern.

        Args:
            pattern: Pattern to match (e.g., "events:*")

        Returns:
            Number of keys deleted
        """
        if not self.client:
            return 0

        try:
            keys = [key async for key in self.client.scan_iter(match=pattern)]
            if keys:
                await self.client.delete(*keys)
            return len(keys)
        except RedisError as e:
            logger.warning("Failed to delete keys with pattern %s: %s", pattern, e)
            return 0


# Global cache instance
cache = RedisCache()


async def init_cache() -> None:
    """Initialize the global cache instance, leaving it disabled when Redis is unreachable."""
    if not get_settings().enable_cache:
        logger.info("Event cache disabled by configuration")
        return

    try:
        await cache.initialize()
    except (RedisError, OSError) as e:
        logger.warning("Redis unavailable, serving events uncached: %s", e)
        await cache.close()


async def close_cache() -> None:
    """Close the global cache instance."""
    await cache.close()


def get_cache() -> RedisCache:
    """Get the global cache instance."""
    return cache


class CacheInvalidator:
    """Helper class for cache invalidation strategies."""

    @staticmethod
    async def invalidate_event_caches(event_id: str) -> None:
        """Invalidate the detail entry of an event and every listing."""
        await cache.delete(CacheKeyBuilder.event_detail(event_id))
        await cache.delete_pattern("events:list:*")
        logger.debug("Invalidated caches for event %s", event_id)

    @staticmethod
    async def invalidate_event_list_caches() -> None:
        """Invalidate all event listing caches."""
        await cache.delete_pattern("events:list:*")
        logger.debug("Invalidated event list caches")


class CacheTTL:
    """Cache TTL constants for different data types (seconds)."""

    EVENT_LIST = 120
    EVENT_DETAIL = 300
