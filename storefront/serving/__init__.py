"""
Serving Module
"""
from .cache import CacheManager, init_redis, close_redis, get_redis, orders_cache
from .rate_limit import RateLimiter, RateLimitDecision

__all__ = [
    "CacheManager",
    "init_redis",
    "close_redis",
    "get_redis",
    "orders_cache",
    "RateLimiter",
    "RateLimitDecision",
]
