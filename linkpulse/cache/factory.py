"""
Factory for creating cache instances.

The factory only builds; the application container calls it once at startup
and shares the result, so there is no hidden module-level singleton.
"""

import logging
from enum import Enum

from redis.exceptions import RedisError

from .strategies import CacheStrategy, RedisCache, InMemoryCache, NullCache

logger = logging.getLogger(__name__)


class CacheBackend(Enum):
    """Available cache backends"""
    REDIS = "redis"
    MEMORY = "memory"
    NULL = "null"


class CacheFactory:
    """Builds a cache strategy for a backend, falling back to memory if Redis is down."""

    @classmethod
    async def create(
        cls,
        backend: CacheBackend,
        redis_url: str = "redis://localhost:6379/0",
        socket_timeout: float = 2.0,
    ) -> CacheStrategy:
        """
        Create a cache instance.

        Args:
            backend: Type of cache backend (from enum)
            redis_url: Connection URL, used by the Redis backend only
            socket_timeout: Connect/read timeout for every Redis call

        Returns:
            Cache strategy instance
        """
        if backend == CacheBackend.REDIS:
            import redis.asyncio as redis

            client = redis.from_url(
                redis_url,
                decode_responses=True,
                socket_connect_timeout=socket_timeout,
                socket_timeout=socket_timeout,
            )
            try:
                # Test connection immediately
                await client.ping()
            except (RedisError, OSError) as e:
                logger.warning("Redis connection failed (%s), falling back to in-memory cache", e)
                await client.aclose()
                return InMemoryCache()

            logger.info("Redis cache initialized")
            return RedisCache(client)

        if backend == CacheBackend.MEMORY:
            logger.info("In-memory cache initialized")
            return InMemoryCache()

        if backend == CacheBackend.NULL:
            logger.info("Null cache initialized")
            return NullCache()

        raise ValueError(f"Unknown cache backend: {backend}")
