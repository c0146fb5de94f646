"""
Cache strategies using Strategy Pattern.
Allows switching between different cache backends (Redis, In-Memory, Null).

A cache is never the source of truth here: every strategy turns backend
failures into misses (reads) or no-ops (writes) so callers fall through to
the durable store.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class CacheStrategy(ABC):
    """
    Abstract base class for cache strategies.

    All methods are async because cache operations involve I/O (network for Redis).
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """
        Get value from cache.

        Returns:
            Cached value or None if not found (or the backend is unavailable)
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: str, ttl: int = 3600) -> bool:
        """
        Set value in cache with TTL (Time To Live) in seconds.

        Returns:
            True if successful, False otherwise
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """
        Delete key from cache.

        Returns:
            True if deleted, False if key didn't exist
        """
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        pass

    @abstractmethod
    async def mget(self, keys: Sequence[str]) -> List[Optional[str]]:
        """Get several values at once, None for each missing key"""
        pass

    @abstractmethod
    async def mset(self, mapping: Mapping[str, str], ttl: int = 3600) -> bool:
        """Set several values sharing one TTL"""
        pass

    @abstractmethod
    async def clear(self) -> bool:
        pass

    async def close(self) -> None:
        """Release backend resources"""
        return None


class RedisCache(CacheStrategy):
    """
    Redis cache implementation (redis.asyncio client).

    Every call is bounded by the client's socket timeouts; timeouts and
    connection errors are logged and degrade to a miss so resolution keeps
    working straight from the store.
    """

    def __init__(self, redis_client):
        """
        Initialize Redis cache.

        Args:
            redis_client: redis.asyncio.Redis instance (decode_responses=True)
        """
        self.redis = redis_client

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self.redis.get(key)
        except (RedisError, OSError, asyncio.TimeoutError) as e:
            logger.warning("Redis get failed for %s, treating as miss: %s", key, e)
            return None

    async def set(self, key: str, value: str, ttl: int = 3600) -> bool:
        try:
            return bool(await self.redis.set(key, value, ex=ttl))
        except (RedisError, OSError, asyncio.TimeoutError) as e:
            logger.warning("Redis set failed for %s: %s", key, e)
            return False

    async def delete(self, key: str) -> bool:
        try:
            return bool(await self.redis.delete(key))
        except (RedisError, OSError, asyncio.TimeoutError) as e:
            logger.warning("Redis delete failed for %s: %s", key, e)
            return False

    async def exists(self, key: str) -> bool:
        try:
            return bool(await self.redis.exists(key))
        except (RedisError, OSError, asyncio.TimeoutError) as e:
            logger.warning("Redis exists failed for %s: %s", key, e)
            return False

    async def mget(self, keys: Sequence[str]) -> List[Optional[str]]:
        if not keys:
            return []
        try:
            return list(await self.redis.mget(list(keys)))
        except (RedisError, OSError, asyncio.TimeoutError) as e:
            logger.warning("Redis mget failed, treating as misses: %s", e)
            return [None] * len(keys)

    async def mset(self, mapping: Mapping[str, str], ttl: int = 3600) -> bool:
        if not mapping:
            return True
        try:
            # MSET has no TTL, so pipeline one SET EX per key
            async with self.redis.pipeline(transaction=False) as pipe:
                for key, value in mapping.items():
                    pipe.set(key, value, ex=ttl)
                results = await pipe.execute()
            return all(results)
        except (RedisError, OSError, asyncio.TimeoutError) as e:
            logger.warning("Redis mset failed: %s", e)
            return False

    async def clear(self) -> bool:
        """Clear all Redis keys (use with caution!)"""
        try:
            await self.redis.flushdb()
            return True
        except (RedisError, OSError, asyncio.TimeoutError) as e:
            logger.warning("Redis clear failed: %s", e)
            return False

    async def close(self) -> None:
        await self.redis.aclose()


class InMemoryCache(CacheStrategy):
    """
    In-memory cache implementation using a Python dict.

    Good for development and tests; not shared between processes and lost on
    restart. TTLs are enforced lazily on read against `clock`, which tests
    can replace to move time forward.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._cache: Dict[str, Tuple[str, float]] = {}
        self._clock = clock

    def _live(self, key: str) -> Optional[str]:
        entry = self._cache.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._cache[key]
            return None
        return value

    async def get(self, key: str) -> Optional[str]:
        return self._live(key)

    async def set(self, key: str, value: str, ttl: int = 3600) -> bool:
        self._cache[key] = (value, self._clock() + ttl)
        return True

    async def delete(self, key: str) -> bool:
        if self._live(key) is None:
            return False
        del self._cache[key]
        return True

    async def exists(self, key: str) -> bool:
        return self._live(key) is not None

    async def mget(self, keys: Sequence[str]) -> List[Optional[str]]:
        return [self._live(key) for key in keys]

    async def mset(self, mapping: Mapping[str, str], ttl: int = 3600) -> bool:
        expires_at = self._clock() + ttl
        for key, value in mapping.items():
            self._cache[key] = (value, expires_at)
        return True

    async def clear(self) -> bool:
        self._cache.clear()
        return True


class NullCache(CacheStrategy):
    """
    Null Object Pattern - cache that does nothing.

    Every read is a miss, so every resolution goes to the store.
    """

    async def get(self, key: str) -> Optional[str]:
        return None

    async def set(self, key: str, value: str, ttl: int = 3600) -> bool:
        return True

    async def delete(self, key: str) -> bool:
        return True

    async def exists(self, key: str) -> bool:
        return False

    async def mget(self, keys: Sequence[str]) -> List[Optional[str]]:
        return [None] * len(keys)

    async def mset(self, mapping: Mapping[str, str], ttl: int = 3600) -> bool:
        return True

    async def clear(self) -> bool:
        return True
