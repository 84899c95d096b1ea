"""Redis-backed cache for school lookups and revoked sessions"""
from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import redis.asyncio as redis

from src.infrastructure.config.settings import get_settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CacheService:
    """
    JSON values in Redis with a TTL.

    Holds public school lookups by slug and revoked-session markers. Redis is
    optional: while it is unreachable reads miss and writes report False, so
    callers always have the database to fall back on.
    """

    def __init__(self, redis_client: redis.Redis | None = None):
        self.redis = redis_client
        self.settings = get_settings()
        self._connected = redis_client is not None

    async def connect(self):
        """Open the connection at startup; a failure leaves the cache disabled"""
        if self.redis is not None:
            return

        client = redis.Redis(
            host=self.settings.redis_host,
            port=self.settings.redis_port,
            db=self.settings.redis_db,
            password=self.settings.redis_password or None,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_keepalive=True,
        )
        try:
            await client.ping()
        except (redis.ConnectionError, redis.TimeoutError) as e:
            logger.warning("Redis unreachable at %s:%s (%s); running without cache",
                           self.settings.redis_host, self.settings.redis_port, e)
            self._connected = False
            return

        self.redis = client
        self._connected = True
        logger.info("Redis cache connected: %s:%s", self.settings.redis_host, self.settings.redis_port)

    async def disconnect(self):
        if self.redis:
            await self.redis.close()
            self._connected = False
            logger.info("Redis cache disconnected")

    def is_available(self) -> bool:
        return self._connected and self.redis is not None

    async def get(self, key: str) -> Any | None:
        """Decoded value for key, or None on a miss"""

        async def read(client: redis.Redis) -> Any | None:
            raw = await client.get(key)
            logger.debug("Cache %s: %s", "HIT" if raw else "MISS", key)
            return json.loads(raw) if raw else None

        return await self._guarded("get", key, read, None)

    async def set(self, key: str, value: Any, ttl: int = 300) -> bool:
        async def write(client: redis.Redis) -> bool:
            await client.setex(key, ttl, json.dumps(value))
            return True

        return await self._guarded("set", key, write, False)

    async def delete(self, key: str) -> bool:
        async def remove(client: redis.Redis) -> bool:
            await client.delete(key)
            return True

        return await self._guarded("delete", key, remove, False)

    async def exists(self, key: str) -> bool:
        async def probe(client: redis.Redis) -> bool:
            return bool(await client.exists(key))

        return await self._guarded("exists", key, probe, False)

    async def _guarded(
        self,
        operation: str,
        key: str,
        call: Callable[[redis.Redis], Awaitable[T]],
        fallback: T,
    ) -> T:
        """Run call against Redis, answering fallback when it is down or errors"""
        if not self.is_available() or self.redis is None:
            return fallback
        try:
            return await call(self.redis)
        except (redis.RedisError, TypeError) as e:
            # TypeError: value is not JSON serializable
            logger.error("Cache %s failed for %s: %s", operation, key, e)
            return fallback
