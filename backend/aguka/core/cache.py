import hashlib
import json
import logging
from typing import Any, Optional

import redis.asyncio as aioredis
from redis.exceptions import ConnectionError as RedisConnectionError, TimeoutError as RedisTimeoutError

from .config import settings

logger = logging.getLogger(__name__)


class CacheManager:
    """Async Redis cache. Every operation degrades to a miss when Redis is unreachable."""

    def __init__(self, redis_url: Optional[str] = None, default_ttl: Optional[int] = None):
        self.redis_url = redis_url or settings.redis_url
        self.default_ttl = default_ttl or settings.cache_default_ttl
        self._async_client: Optional[aioredis.Redis] = None

    async def get_async_client(self) -> aioredis.Redis:
        if self._async_client is None:
            client = aioredis.from_url(
                self.redis_url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
                health_check_interval=30
            )
            await client.ping()
            self._async_client = client
        return self._async_client

    def _reset_on_connection_error(self, exc: Exception) -> None:
        if isinstance(exc, (RedisConnectionError, RedisTimeoutError)):
            self._async_client = None

    @staticmethod
    def make_key(prefix: str, *parts: str) -> str:
        digest = hashlib.sha256("\x1f".join(parts).encode("utf-8")).hexdigest()
        return f"{prefix}:{digest}"

    async def aget(self, key: str) -> Optional[Any]:
        try:
            client = await self.get_async_client()
            value = await client.get(key)
        except Exception as e:
            logger.warning(f"Cache get error for key '{key}': {e}")
            self._reset_on_connection_error(e)
            return None
        if value is None:
            return None
        try:
            return json.loads(value)
        except (json.JSONDecodeError, TypeError):
            logger.warning(f"Cache value for '{key}' is not JSON, ignoring")
            return None

    async def aset(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        try:
            client = await self.get_async_client()
            result = await client.setex(key, ttl or self.default_ttl, json.dumps(value, default=str))
            return bool(result)
        except Exception as e:
            logger.warning(f"Cache set error for key '{key}': {e}")
            self._reset_on_connection_error(e)
            return False

    async def adelete(self, key: str) -> bool:
        try:
            client = await self.get_async_client()
            return bool(await client.delete(key))
        except Exception as e:
            logger.warning(f"Cache delete error for key '{key}': {e}")
            self._reset_on_connection_error(e)
            return False

    async def ahealth_check(self) -> bool:
        try:
            client = await self.get_async_client()
            return bool(await client.ping())
        except Exception as e:
            logger.warning(f"Cache health check failed: {e}")
            return False

    async def aclose(self) -> None:
        if self._async_client is not None:
            await self._async_client.aclose()
            self._async_client = None


cache = CacheManager()
