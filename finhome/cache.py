"""Redis cache used for token revocation and short-lived lookups."""

import json
from typing import Any, Optional

import redis.asyncio as aioredis
from redis.asyncio import Redis

from finhome.config import settings
from finhome.logging_config import get_logger

logger = get_logger(__name__)


class CacheManager:
    """Redis cache manager for the application.

    Every operation is a no-op when Redis is not connected, so the API keeps
    working (without token revocation) if Redis is down.
    """

    DEFAULT_TTL = 300

    PREFIX = "finhome:"

    def __init__(self) -> None:
        self.redis: Optional[Redis] = None

    async def connect(self) -> None:
        """Connect to Redis."""
        try:
            self.redis = await aioredis.from_url(
                settings.redis_url,
                max_connections=settings.redis_max_connections,
                encoding="utf-8",
                decode_responses=True,
            )
            await self.redis.ping()
            logger.info("Connected to Redis successfully")
        except Exception as e:
            self.redis = None
            logger.error("Failed to connect to Redis", error=str(e), exc_info=True)
            raise

    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None
            logger.info("Disconnected from Redis")

    def _make_key(self, key: str) -> str:
        return f"{self.PREFIX}{key}"

    async def get(self, key: str) -> Optional[Any]:
        """Get value from cache.

        Args:
            key: Cache key

        Returns:
            Cached value or None if not found
        """
        if not self.redis:
            return None

        try:
            value = await self.redis.get(self._make_key(key))
            return json.loads(value) if value else None
        except Exception as e:
            logger.error("Cache get error", key=key, error=str(e))
            return None

    async def set(self, key: str, value: Any, expire: Optional[int] = None) -> bool:
        """Set value in cache.

        Args:
            key: Cache key
            value: JSON-serializable value
            expire: Expiration time in seconds (defaults to DEFAULT_TTL)

        Returns:
            True if successful, False otherwise
        """
        if not self.redis:
            logger.warning("Redis not connected, skipping cache set", key=key)
            return False

        try:
            serialized = json.dumps(value, default=str)
            ttl = expire or self.DEFAULT_TTL
            await self.redis.setex(self._make_key(key), ttl, serialized)
            return True
        except Exception as e:
            logger.error("Cache set error", key=key, error=str(e))
            return False


# Global cache manager instance
cache_manager = CacheManager()
