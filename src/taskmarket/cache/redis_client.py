"""Process-wide async Redis connection used for presence markers."""

from __future__ import annotations

from functools import lru_cache
from typing import Any

import redis.asyncio as redis
import structlog

from taskmarket.api.config import get_cache_settings

logger = structlog.get_logger()


def _redact(url: str) -> str:
    if "@" not in url:
        return url
    scheme, _, rest = url.partition("://")
    return f"{scheme}://***@{rest.rsplit('@', 1)[-1]}"


class RedisClient:
    """Lazily connected pooled client.

    Args:
        redis_url: Connection URL, e.g. redis://localhost:6379/0
        max_connections: Pool size
    """

    def __init__(self, redis_url: str, max_connections: int = 20) -> None:
        self.redis_url = redis_url
        self.max_connections = max_connections
        self._pool: redis.ConnectionPool | None = None
        self._client: redis.Redis | None = None

    async def connect(self) -> None:
        """Open the pool and ping once; a second call is a no-op."""
        if self._client is not None:
            return
        self._pool = redis.ConnectionPool.from_url(
            self.redis_url,
            decode_responses=True,
            max_connections=self.max_connections,
        )
        self._client = redis.Redis(connection_pool=self._pool)
        await self._client.ping()
        logger.info("redis_connected", url=_redact(self.redis_url))

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        if self._pool is not None:
            await self._pool.disconnect()
            self._pool = None
        logger.info("redis_disconnected")

    @property
    def client(self) -> Any:
        if self._client is None:
            raise RuntimeError("Redis not connected; call connect() first")
        return self._client


@lru_cache(maxsize=1)
def get_redis() -> RedisClient:
    """Return the process-wide client built from cache settings."""
    settings = get_cache_settings()
    return RedisClient(settings.redis_url, max_connections=settings.redis_max_connections)


async def init_redis() -> RedisClient:
    client = get_redis()
    await client.connect()
    return client


async def close_redis() -> None:
    await get_redis().close()
    get_redis.cache_clear()
