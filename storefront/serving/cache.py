"""
Redis Cache Module

Read-through cache for public order tracking. Redis is optional: until
``init_redis`` succeeds, and whenever a Redis call fails, every read falls
through to the database and writes are skipped.
"""

import json
from typing import Any, Awaitable, Callable, Optional

import structlog
from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import RedisError

from storefront.config import get_settings

logger = structlog.get_logger(__name__)

_redis_pool: Optional[ConnectionPool] = None
_redis_client: Optional[Redis] = None


async def init_redis() -> Redis:
    """Connect and ping. On failure the cache stays disabled and the error propagates."""
    global _redis_pool, _redis_client

    if _redis_client is not None:
        return _redis_client

    redis_settings = get_settings().redis
    pool = ConnectionPool.from_url(
        redis_settings.get_url(),
        max_connections=redis_settings.max_connections,
        socket_timeout=redis_settings.socket_timeout,
        decode_responses=redis_settings.decode_responses,
    )
    client = Redis(connection_pool=pool)
    try:
        await client.ping()
    except (RedisError, OSError):
        await pool.disconnect()
        raise

    _redis_pool, _redis_client = pool, client
    logger.info("Redis connected", host=redis_settings.host)
    return client


async def close_redis() -> None:
    global _redis_pool, _redis_client

    if _redis_client is not None:
        await _redis_client.aclose()
    if _redis_pool is not None:
        await _redis_pool.disconnect()
    _redis_pool, _redis_client = None, None


def get_redis() -> Redis:
    if _redis_client is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return _redis_client


def is_redis_enabled() -> bool:
    return _redis_client is not None


class CacheManager:
    """
    JSON values under a key namespace.

    Example:
        orders_cache = CacheManager("orders", default_ttl=300)
        detail = await orders_cache.get_or_load(number, load_order_detail)
        await orders_cache.delete(number)
    """

    def __init__(self, namespace: str, default_ttl: int = 3600):
        self.namespace = namespace
        self.default_ttl = default_ttl

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    async def get(self, key: str) -> Optional[Any]:
        if not is_redis_enabled():
            return None
        try:
            raw = await get_redis().get(self._key(key))
        except RedisError as e:
            logger.warning("Cache read failed", namespace=self.namespace, key=key, error=str(e))
            return None
        return json.loads(raw) if raw is not None else None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        if not is_redis_enabled():
            return False
        try:
            await get_redis().setex(self._key(key), ttl or self.default_ttl, json.dumps(value, default=str))
        except RedisError as e:
            logger.warning("Cache write failed", namespace=self.namespace, key=key, error=str(e))
            return False
        return True

    async def delete(self, key: str) -> bool:
        if not is_redis_enabled():
            return False
        try:
            return await get_redis().delete(self._key(key)) > 0
        except RedisError as e:
            logger.warning("Cache delete failed", namespace=self.namespace, key=key, error=str(e))
            return False

    async def get_or_load(self, key: str, loader: Callable[[], Awaitable[Any]]) -> Any:
        """Cached value for ``key``; on a miss, ``loader()`` is awaited and stored."""
        cached = await self.get(key)
        if cached is not None:
            return cached
        value = await loader()
        await self.set(key, value)
        return value


orders_cache = CacheManager("orders", default_ttl=300)
