"""
Redis-backed string cache store.
"""

from typing import Optional

import redis.asyncio as redis

from shared.logging import get_logger


class RedisCacheStore:
    """Key-value store with get / set-with-TTL / delete over Redis.

    Errors are raised to the caller; best-effort handling lives in the
    cache manager.
    """

    def __init__(self, redis_url: str, *, socket_timeout: float = 5.0):
        self.redis_url = redis_url
        self.socket_timeout = socket_timeout
        self.logger = get_logger("fhir.cache.redis")

        self._redis: Optional[redis.Redis] = None

    async def _get_redis(self) -> redis.Redis:
        """Get Redis connection."""
        if self._redis is None:
            self._redis = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=self.socket_timeout,
                socket_timeout=self.socket_timeout,
            )
        return self._redis

    async def get_string(self, key: str) -> Optional[str]:
        redis_client = await self._get_redis()
        return await redis_client.get(key)

    async def set_string(self, key: str, value: str, ttl_seconds: int) -> None:
        redis_client = await self._get_redis()
        await redis_client.setex(key, ttl_seconds, value)
        self.logger.debug("Cached value", key=key, ttl=ttl_seconds)

    async def remove(self, key: str) -> None:
        redis_client = await self._get_redis()
        await redis_client.delete(key)

    async def remove_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern; returns the number removed."""
        redis_client = await self._get_redis()
        keys = [key async for key in redis_client.scan_iter(match=pattern)]
        if keys:
            await redis_client.delete(*keys)
            self.logger.debug("Cleared cache pattern", pattern=pattern, keys_count=len(keys))
        return len(keys)

    async def ping(self) -> bool:
        redis_client = await self._get_redis()
        return bool(await redis_client.ping())

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
