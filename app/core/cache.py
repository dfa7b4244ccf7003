"""
Leaderboard cache on Redis
Optional: with Redis disabled or down every lookup is a miss
"""

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

import redis.asyncio as redis
from redis.exceptions import RedisError

from app.core.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

CONNECT_ATTEMPTS = 3


class CacheManager:
    """
    JSON values in Redis with a TTL

    A failing Redis call marks the cache disconnected; after that, reads miss
    and writes are skipped until ``connect`` succeeds again.
    """

    def __init__(self):
        self.redis_client: Optional[redis.Redis] = None
        self.connected = False

    async def connect(self) -> bool:
        if not settings.REDIS_ENABLED:
            logger.info("Redis caching is disabled")
            return False
        if self.connected:
            return True

        for attempt in range(1, CONNECT_ATTEMPTS + 1):
            self.redis_client = redis.from_url(
                settings.get_redis_url(),
                max_connections=settings.REDIS_POOL_MAX_CONNECTIONS,
                decode_responses=True,
            )
            try:
                await self.redis_client.ping()
            except RedisError as e:
                logger.warning(f"Redis connection attempt {attempt}/{CONNECT_ATTEMPTS} failed: {e}")
                if attempt < CONNECT_ATTEMPTS:
                    await asyncio.sleep(attempt)
                continue
            self.connected = True
            logger.info("Connected to Redis")
            return True

        logger.error("Redis unreachable, serving without cache")
        return False

    async def disconnect(self) -> None:
        if self.redis_client is not None:
            await self.redis_client.aclose()
            logger.info("Disconnected from Redis")
        self.connected = False

    async def _call(self, action: str, default: T, op: Callable[[], Awaitable[T]]) -> T:
        if not self.connected:
            return default
        try:
            return await op()
        except RedisError as e:
            logger.error(f"Redis {action} failed, disabling cache: {e}")
            self.connected = False
            return default

    async def get(self, key: str) -> Optional[Any]:
        raw = await self._call("get", None, lambda: self.redis_client.get(key))
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Dropping undecodable cache entry {key}")
            await self.delete(key)
            return None

    async def set(self, key: str, value: Any, expire: Optional[int] = None) -> bool:
        payload = json.dumps(value, default=str)
        ttl = expire or settings.LEADERBOARD_CACHE_TTL
        return bool(await self._call("set", False, lambda: self.redis_client.setex(key, ttl, payload)))

    async def delete(self, key: str) -> bool:
        return bool(await self._call("delete", 0, lambda: self.redis_client.delete(key)))

    async def clear_pattern(self, pattern: str) -> int:
        """Delete every key matching ``pattern``; returns how many went"""

        async def scan_and_delete() -> int:
            keys = [key async for key in self.redis_client.scan_iter(match=pattern)]
            return await self.redis_client.delete(*keys) if keys else 0

        return await self._call("clear_pattern", 0, scan_and_delete)


cache_manager = CacheManager()


def leaderboard_key(quiz_id: str, limit: int) -> str:
    return f"leaderboard:{quiz_id}:{limit}"


async def invalidate_leaderboard(quiz_id: str) -> None:
    deleted = await cache_manager.clear_pattern(f"leaderboard:{quiz_id}:*")
    if deleted:
        logger.debug(f"Invalidated {deleted} leaderboard cache keys for quiz {quiz_id}")
