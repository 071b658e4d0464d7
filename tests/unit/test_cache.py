"""
Unit Tests - Order Cache
"""
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from storefront.serving import cache
from storefront.serving.cache import CacheManager


class FakeRedis:
    def __init__(self):
        self.store = {}
        self.ttls = {}

    async def get(self, key):
        return self.store.get(key)

    async def setex(self, key, ttl, value):
        self.store[key] = value
        self.ttls[key] = ttl

    async def delete(self, key):
        return 1 if self.store.pop(key, None) is not None else 0


class BrokenRedis:
    async def get(self, key):
        raise RedisConnectionError("connection reset")

    async def setex(self, key, ttl, value):
        raise RedisConnectionError("connection reset")

    async def delete(self, key):
        raise RedisConnectionError("connection reset")


@pytest.fixture
def redis(monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(cache, "_redis_client", fake)
    return fake


class TestCacheManager:
    """Tests for CacheManager"""

    async def test_disabled_cache_always_loads(self):
        calls = []

        async def load():
            calls.append(1)
            return {"order_number": "ORD-20260101-000001"}

        orders = CacheManager("orders")
        await orders.get_or_load("ORD-20260101-000001", load)
        await orders.get_or_load("ORD-20260101-000001", load)

        assert len(calls) == 2
        assert await orders.set("k", {"a": 1}) is False

    async def test_get_or_load_stores_once(self, redis):
        calls = []

        async def load():
            calls.append(1)
            return {"total": "1500.00"}

        orders = CacheManager("orders", default_ttl=300)
        first = await orders.get_or_load("ORD-1", load)
        second = await orders.get_or_load("ORD-1", load)

        assert first == second == {"total": "1500.00"}
        assert len(calls) == 1
        assert redis.ttls["orders:ORD-1"] == 300

    async def test_delete_invalidates(self, redis):
        orders = CacheManager("orders")
        await orders.set("ORD-1", {"status": "pending"})

        assert await orders.delete("ORD-1") is True
        assert await orders.get("ORD-1") is None

    async def test_redis_errors_fall_through(self, monkeypatch):
        monkeypatch.setattr(cache, "_redis_client", BrokenRedis())

        async def load():
            return {"status": "pending"}

        orders = CacheManager("orders")

        assert await orders.get_or_load("ORD-1", load) == {"status": "pending"}
        assert await orders.delete("ORD-1") is False
