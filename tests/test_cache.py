"""
Tests for cache strategies and the cache factory.
"""
import asyncio

from redis.exceptions import ConnectionError as RedisConnectionError, TimeoutError as RedisTimeoutError

from linkpulse.cache.factory import CacheBackend, CacheFactory
from linkpulse.cache.keys import analytics_key, url_key
from linkpulse.cache.strategies import InMemoryCache, NullCache, RedisCache


class TestInMemoryCache:
    """Test the TTL-enforcing in-memory cache"""

    def test_set_get_delete(self, cache):
        async def scenario():
            await cache.set("k", "v", ttl=10)
            value = await cache.get("k")
            deleted = await cache.delete("k")
            return value, deleted, await cache.get("k"), await cache.delete("k")

        assert asyncio.run(scenario()) == ("v", True, None, False)

    def test_entries_expire(self, cache, clock):
        async def scenario():
            await cache.set("k", "v", ttl=60)
            clock.advance(59)
            before = await cache.get("k")
            clock.advance(1)
            return before, await cache.get("k"), await cache.exists("k")

        assert asyncio.run(scenario()) == ("v", None, False)

    def test_mget_mset(self, cache, clock):
        async def scenario():
            await cache.mset({"a": "1", "b": "2"}, ttl=30)
            await cache.set("c", "3", ttl=5)
            clock.advance(10)
            return await cache.mget(["a", "b", "c", "missing"])

        assert asyncio.run(scenario()) == ["1", "2", None, None]

    def test_clear(self, cache):
        async def scenario():
            await cache.set("k", "v")
            await cache.clear()
            return await cache.exists("k")

        assert asyncio.run(scenario()) is False


class TestNullCache:
    def test_always_misses(self):
        cache = NullCache()

        async def scenario():
            await cache.set("k", "v")
            await cache.mset({"a": "1"})
            return await cache.get("k"), await cache.mget(["a", "b"]), await cache.exists("k")

        assert asyncio.run(scenario()) == (None, [None, None], False)


class FailingRedis:
    """Redis client stand-in whose every call fails"""

    def __init__(self, error):
        self.error = error

    async def get(self, key):
        raise self.error

    async def set(self, key, value, ex=None):
        raise self.error

    async def delete(self, key):
        raise self.error

    async def exists(self, key):
        raise self.error

    async def mget(self, keys):
        raise self.error


class TestRedisCacheDegrades:
    """Redis failures read as misses and failed writes, never exceptions"""

    def test_connection_errors(self):
        cache = RedisCache(FailingRedis(RedisConnectionError("refused")))

        async def scenario():
            return (
                await cache.get("k"),
                await cache.set("k", "v", ttl=10),
                await cache.delete("k"),
                await cache.exists("k"),
                await cache.mget(["a", "b"]),
            )

        assert asyncio.run(scenario()) == (None, False, False, False, [None, None])

    def test_timeouts(self):
        cache = RedisCache(FailingRedis(RedisTimeoutError("timed out")))

        assert asyncio.run(cache.get("k")) is None


class TestCacheFactory:
    def test_memory_backend(self):
        assert isinstance(asyncio.run(CacheFactory.create(CacheBackend.MEMORY)), InMemoryCache)

    def test_null_backend(self):
        assert isinstance(asyncio.run(CacheFactory.create(CacheBackend.NULL)), NullCache)

    def test_unreachable_redis_falls_back_to_memory(self):
        cache = asyncio.run(CacheFactory.create(
            CacheBackend.REDIS,
            redis_url="redis://127.0.0.1:1/0",
            socket_timeout=0.5,
        ))

        assert isinstance(cache, InMemoryCache)


def test_key_layout():
    assert url_key("abc1234") == "url:abc1234"
    assert analytics_key("topic", "launch") == "analytics:topic:launch"
