"""Redis client for the access-token blacklist."""

from typing import Optional

import redis.asyncio as redis

from ..config import get_settings
from .logging import get_logger

logger = get_logger("redis")

BLACKLIST_PREFIX = "blacklist:"


class RedisClient:
    """Thin wrapper around redis.asyncio.

    Every operation degrades to a no-op when Redis is unreachable; callers
    must never be blocked by a cache outage.
    """

    def __init__(self):
        self.settings = get_settings()
        self.redis: Optional[redis.Redis] = None

    async def connect(self) -> None:
        """Connect to Redis (idempotent)."""
        if self.redis is not None:
            return
        client = redis.from_url(
            self.settings.redis_url,
            max_connections=self.settings.redis_max_connections,
            decode_responses=True,
        )
        try:
            await client.ping()
        except Exception as e:
            logger.error("Failed to connect to Redis", extra={"error": str(e)})
            await client.aclose()
            raise
        self.redis = client
        logger.info("Connected to Redis")

    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None
            logger.info("Disconnected from Redis")

    async def ping(self) -> bool:
        if not self.redis:
            return False
        return bool(await self.redis.ping())

    async def add_to_blacklist(self, token_jti: str, expire: int) -> bool:
        """Blacklist an access token id until it would have expired anyway."""
        if not self.redis or expire <= 0:
            return False
        try:
            return bool(await self.redis.setex(f"{BLACKLIST_PREFIX}{token_jti}", expire, "1"))
        except Exception as e:
            logger.error("Failed to blacklist token", extra={"error": str(e)})
            return False

    async def is_token_blacklisted(self, token_jti: str) -> bool:
        if not self.redis:
            return False
        try:
            return await self.redis.exists(f"{BLACKLIST_PREFIX}{token_jti}") > 0
        except Exception as e:
            logger.warning("Blacklist lookup failed", extra={"error": str(e)})
            return False


# Singleton instance
_redis_client: Optional[RedisClient] = None


def get_redis_client() -> RedisClient:
    """Get Redis client singleton."""
    global _redis_client
    if _redis_client is None:
        _redis_client = RedisClient()
    return _redis_client
