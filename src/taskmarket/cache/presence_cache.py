"""Online presence tracking in Redis.

Each identified WebSocket user gets a marker key with a TTL, so a crashed
process cannot leave users online forever. Presence is advisory: Redis
errors are logged and reported as "offline".
"""

from __future__ import annotations

import structlog
from redis.exceptions import RedisError

from .redis_client import RedisClient

logger = structlog.get_logger()


class PresenceCache:
    """Online/offline markers keyed by user ID."""

    KEY_PREFIX = "presence:user:"

    def __init__(self, redis_client: RedisClient, ttl: int = 3600) -> None:
        """Initialize presence cache.

        Args:
            redis_client: Connected Redis client
            ttl: Marker lifetime in seconds
        """
        self._redis = redis_client
        self.ttl = ttl

    def _key(self, user_id: str) -> str:
        return f"{self.KEY_PREFIX}{user_id}"

    async def mark_online(self, user_id: str) -> None:
        """Record a user as online."""
        try:
            await self._redis.client.set(self._key(user_id), "1", ex=self.ttl)
        except RedisError as e:
            logger.warning("presence_update_failed", user_id=user_id, error=str(e))

    async def mark_offline(self, user_id: str) -> None:
        """Remove a user's online marker."""
        try:
            await self._redis.client.delete(self._key(user_id))
        except RedisError as e:
            logger.warning("presence_update_failed", user_id=user_id, error=str(e))

    async def online_among(self, user_ids: list[str]) -> set[str]:
        """Return the subset of user IDs that are online.

        Args:
            user_ids: Candidate user IDs

        Returns:
            IDs with a live marker
        """
        if not user_ids:
            return set()
        try:
            values = await self._redis.client.mget([self._key(u) for u in user_ids])
        except RedisError as e:
            logger.warning("presence_lookup_failed", error=str(e))
            return set()
        return {user_id for user_id, value in zip(user_ids, values, strict=True) if value}
