"""
Async key-value cache with an in-process TTL backend and a Redis backend.

Both backends share the same interface so consumers (the analytics buffer)
can be pointed at either without code changes.
"""
from __future__ import annotations
import asyncio
import json
import logging
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Type

import redis.asyncio as aioredis
from pydantic import BaseModel
from redis.exceptions import RedisError

from .config import Settings
from .errors import CacheError

logger = logging.getLogger(__name__)


class BaseCache:
    async def get(self, key: str) -> Any:  # pragma: no cover - interface
        raise NotImplementedError

    async def set(self, key: str, value: Any, ttl_ms: Optional[int] = None) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    async def delete(self, key: str) -> bool:  # pragma: no cover - interface
        raise NotImplementedError

    async def has(self, key: str) -> bool:  # pragma: no cover - interface
        raise NotImplementedError

    async def clear(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    async def keys(self) -> List[str]:  # pragma: no cover - interface
        raise NotImplementedError

    async def size(self) -> int:  # pragma: no cover - interface
        raise NotImplementedError

    async def get_or_set(
        self,
        key: str,
        loader: Callable[[], Awaitable[Any]],
        ttl_ms: Optional[int] = None
    ) -> Any:
        val = await self.get(key)
        if val is not None:
            return val
        result = await loader()
        if result is not None:
            await self.set(key, result, ttl_ms)
        return result

    def initialize(self) -> None:
        """Start background housekeeping, if any (requires a running loop)"""

    async def destroy(self) -> None:
        """Release resources held by the cache"""


class InMemoryCache(BaseCache):
    """
    Dict-backed cache for single-process deployments.

    Entries carry an optional absolute expiry (monotonic seconds). Expired
    entries are dropped lazily on read and by a periodic cleanup task.
    """

    def __init__(self, cleanup_interval_ms: int = 60000):
        self._store: Dict[str, Tuple[Optional[float], Any]] = {}
        self._cleanup_interval_ms = cleanup_interval_ms
        self._cleanup_task: Optional[asyncio.Task] = None

    def _expired(self, expire_at: Optional[float]) -> bool:
        return expire_at is not None and time.monotonic() > expire_at

    async def get(self, key: str) -> Any:
        item = self._store.get(key)
        if item is None:
            return None
        expire_at, value = item
        if self._expired(expire_at):
            self._store.pop(key, None)
            return None
        return value

    async def set(self, key: str, value: Any, ttl_ms: Optional[int] = None) -> None:
        expire_at = time.monotonic() + ttl_ms / 1000.0 if ttl_ms else None
        self._store[key] = (expire_at, value)

    async def delete(self, key: str) -> bool:
        return self._store.pop(key, None) is not None

    async def has(self, key: str) -> bool:
        item = self._store.get(key)
        if item is None:
            return False
        if self._expired(item[0]):
            self._store.pop(key, None)
            return False
        return True

    async def clear(self) -> None:
        self._store.clear()

    async def keys(self) -> List[str]:
        return [
            key for key, (expire_at, _) in self._store.items()
            if not self._expired(expire_at)
        ]

    async def size(self) -> int:
        return len(await self.keys())

    def cleanup(self) -> int:
        """Drop expired entries, returning how many were removed"""
        now = time.monotonic()
        expired = [
            key for key, (expire_at, _) in self._store.items()
            if expire_at is not None and now > expire_at
        ]
        for key in expired:
            self._store.pop(key, None)
        return len(expired)

    async def _cleanup_loop(self) -> None:
        interval = self._cleanup_interval_ms / 1000.0
        while True:
            await asyncio.sleep(interval)
            removed = self.cleanup()
            if removed:
                logger.debug(f"Removed {removed} expired cache entries")

    def initialize(self) -> None:
        if self._cleanup_interval_ms > 0 and self._cleanup_task is None:
            self._cleanup_task = asyncio.get_running_loop().create_task(
                self._cleanup_loop()
            )

    async def destroy(self) -> None:
        if self._cleanup_task is not None:
            self._cleanup_task.cancel()
            try:
                await self._cleanup_task
            except asyncio.CancelledError:
                pass
            self._cleanup_task = None
        self._store.clear()


class RedisCache(BaseCache):
    """
    Redis-backed cache shared across processes.

    Keys are stored under ``namespace`` so ``keys``/``clear``/``size`` only
    see this cache's entries. When ``model`` is given, values are pydantic
    models serialized as JSON and revived on read; otherwise plain JSON.
    """

    def __init__(
        self,
        url: str,
        namespace: str = "cache:",
        model: Optional[Type[BaseModel]] = None,
        client: Optional[aioredis.Redis] = None
    ):
        self._r = client or aioredis.from_url(url, decode_responses=True)
        self._namespace = namespace
        self._model = model

    def _key(self, key: str) -> str:
        return f"{self._namespace}{key}"

    def _dumps(self, value: Any) -> str:
        if isinstance(value, BaseModel):
            return value.model_dump_json()
        return json.dumps(value, default=str)

    def _loads(self, raw: str) -> Any:
        if self._model is not None:
            return self._model.model_validate_json(raw)
        return json.loads(raw)

    async def _scan(self) -> List[str]:
        return [k async for k in self._r.scan_iter(match=f"{self._namespace}*")]

    async def ping(self) -> bool:
        try:
            return bool(await self._r.ping())
        except RedisError as e:
            raise CacheError("Redis is unreachable", details={"original_error": str(e)}) from e

    async def get(self, key: str) -> Any:
        try:
            raw = await self._r.get(self._key(key))
        except RedisError as e:
            raise CacheError("Cache read failed", details={"key": key, "original_error": str(e)}) from e
        if raw is None:
            return None
        return self._loads(raw)

    async def set(self, key: str, value: Any, ttl_ms: Optional[int] = None) -> None:
        try:
            await self._r.set(self._key(key), self._dumps(value), px=ttl_ms or None)
        except RedisError as e:
            raise CacheError("Cache write failed", details={"key": key, "original_error": str(e)}) from e

    async def delete(self, key: str) -> bool:
        try:
            return bool(await self._r.delete(self._key(key)))
        except RedisError as e:
            raise CacheError("Cache delete failed", details={"key": key, "original_error": str(e)}) from e

    async def has(self, key: str) -> bool:
        try:
            return bool(await self._r.exists(self._key(key)))
        except RedisError as e:
            raise CacheError("Cache lookup failed", details={"key": key, "original_error": str(e)}) from e

    async def clear(self) -> None:
        try:
            stored = await self._scan()
            if stored:
                await self._r.delete(*stored)
        except RedisError as e:
            raise CacheError("Cache clear failed", details={"original_error": str(e)}) from e

    async def keys(self) -> List[str]:
        try:
            stored = await self._scan()
        except RedisError as e:
            raise CacheError("Cache scan failed", details={"original_error": str(e)}) from e
        prefix_len = len(self._namespace)
        return [k[prefix_len:] for k in stored]

    async def size(self) -> int:
        return len(await self.keys())

    async def destroy(self) -> None:
        await self._r.aclose()


async def create_cache(
    settings: Settings,
    namespace: str = "cache:",
    model: Optional[Type[BaseModel]] = None,
    cleanup_interval_ms: int = 60000
) -> BaseCache:
    """Pick the cache backend from settings, falling back to in-process memory"""
    if settings.CACHE_BACKEND == "redis" and settings.REDIS_URL:
        cache = RedisCache(settings.REDIS_URL, namespace=namespace, model=model)
        try:
            await cache.ping()
            logger.info(f"Using Redis cache at {settings.REDIS_URL}")
            return cache
        except CacheError as e:
            logger.warning(f"Redis unavailable, falling back to in-memory cache: {e.message}")
            await cache.destroy()
    return InMemoryCache(cleanup_interval_ms=cleanup_interval_ms)
