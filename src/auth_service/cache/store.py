"""Key-value cache with per-entry expiry — backing store for OTP state."""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable

from redis.asyncio import Redis
from redis.exceptions import RedisError

from auth_service.config import Settings
from auth_service.errors import CacheUnavailableError

logger = logging.getLogger(__name__)


class CacheStore(ABC):
    """Minimal async key-value interface.

    Each call is atomic on its own; no multi-key transactions are offered.
    """

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the value stored at *key*, or ``None`` if absent/expired."""

    @abstractmethod
    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store *value* at *key*, replacing any previous value and TTL."""

    @abstractmethod
    async def delete(self, *keys: str) -> None:
        """Remove *keys*; missing keys are ignored."""

    async def get_many(self, *keys: str) -> list[str | None]:
        """Return the values of *keys* in order, ``None`` for absent ones."""
        return [await self.get(key) for key in keys]

    async def close(self) -> None:
        """Release any underlying connections."""


class RedisCache(CacheStore):
    """Redis-backed store; TTLs are enforced by Redis key expiry."""

    def __init__(self, client: Redis) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> RedisCache:
        return cls(Redis.from_url(url, decode_responses=True))

    async def get(self, key: str) -> str | None:
        try:
            return await self._client.get(key)
        except RedisError as exc:
            logger.exception("Redis GET failed for %s", key)
            raise CacheUnavailableError() from exc

    async def get_many(self, *keys: str) -> list[str | None]:
        if not keys:
            return []
        try:
            return await self._client.mget(keys)
        except RedisError as exc:
            logger.exception("Redis MGET failed for %s", ", ".join(keys))
            raise CacheUnavailableError() from exc

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            await self._client.set(key, value, ex=ttl_seconds)
        except RedisError as exc:
            logger.exception("Redis SET failed for %s", key)
            raise CacheUnavailableError() from exc

    async def delete(self, *keys: str) -> None:
        if not keys:
            return
        try:
            await self._client.delete(*keys)
        except RedisError as exc:
            logger.exception("Redis DEL failed for %s", ", ".join(keys))
            raise CacheUnavailableError() from exc

    async def close(self) -> None:
        await self._client.aclose()


class MemoryCache(CacheStore):
    """In-process store for development and tests.

    Each entry maps ``key → (value, expires_at)``. Expired entries are
    purged when read and swept on every write, so the dict holds only
    live keys. State is per-process only. *clock* returns seconds and can
    be replaced with a fake to simulate TTLs elapsing.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[str, float]] = {}

    async def get(self, key: str) -> str | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            self._entries.pop(key, None)
            return None
        return value

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        now = self._clock()
        expired = [k for k, (_, expires_at) in self._entries.items() if now >= expires_at]
        for k in expired:
            del self._entries[k]
        self._entries[key] = (value, now + ttl_seconds)

    async def delete(self, *keys: str) -> None:
        for key in keys:
            self._entries.pop(key, None)

    def __contains__(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and self._clock() < entry[1]


def create_cache(settings: Settings) -> CacheStore:
    """Build the cache backend selected by ``settings.cache_backend``."""
    if settings.cache_backend == "memory":
        logger.warning("Using in-memory cache — OTP state is not shared across processes")
        return MemoryCache()
    if settings.cache_backend == "redis":
        return RedisCache.from_url(settings.redis_url)
    raise ValueError(f"Unknown cache backend: {settings.cache_backend!r}")
