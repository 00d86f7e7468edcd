"""Redis-backed caches."""

from .presence_cache import PresenceCache
from .redis_client import RedisClient, close_redis, get_redis, init_redis

__all__ = [
    "PresenceCache",
    "RedisClient",
    "close_redis",
    "get_redis",
    "init_redis",
]
