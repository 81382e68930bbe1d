"""Short-lived caches for policy entitlement lookups.

Both backends expose coroutine methods so lookups never block the event loop,
whether the entries live in process memory or in Redis.
"""

from __future__ import annotations

import json
import time
from typing import Any, Callable

import structlog
from redis.asyncio import Redis

from .config import Settings, get_settings

LOGGER = structlog.get_logger(__name__)


class PolicyCache:
    """In-process TTL cache. Time source is injectable for tests."""

    def __init__(
        self,
        *,
        ttl_seconds: int = 300,
        time_source: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._time = time_source
        self._entries: dict[str, tuple[float, Any]] = {}

    async def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._time() >= expires_at:
            self._entries.pop(key, None)
            return None
        return value

    async def set(self, key: str, value: Any) -> None:
        self._entries[key] = (self._time() + self.ttl_seconds, value)

    async def invalidate(self, key: str | None = None) -> None:
        """Drop one key, or everything when ``key`` is ``None``."""

        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)


class RedisPolicyCache(PolicyCache):
    """Redis-backed variant shared across worker processes.

    Values must be JSON serializable. Redis errors degrade to cache misses.
    """

    def __init__(
        self,
        client: Redis,
        *,
        key_prefix: str = "policy_cache",
        ttl_seconds: int = 300,
    ) -> None:
        super().__init__(ttl_seconds=ttl_seconds)
        self.client = client
        self.key_prefix = key_prefix

    def _key(self, suffix: str) -> str:
        return f"{self.key_prefix}:{suffix}"

    async def get(self, key: str) -> Any | None:
        redis_key = self._key(key)
        try:
            raw = await self.client.get(redis_key)
            if not raw:
                return None
            return json.loads(raw)
        except Exception as exc:
            LOGGER.warning("redis_cache_read_failed", key=redis_key, error=str(exc))
            return None

    async def set(self, key: str, value: Any) -> None:
        redis_key = self._key(key)
        try:
            await self.client.setex(redis_key, self.ttl_seconds, json.dumps(value))
        except Exception as exc:
            LOGGER.warning("redis_cache_write_failed", key=redis_key, error=str(exc))

    async def invalidate(self, key: str | None = None) -> None:
        try:
            if key is not None:
                await self.client.delete(self._key(key))
                return
            stale = [item async for item in self.client.scan_iter(match=self._key("*"))]
            if stale:
                await self.client.delete(*stale)
        except Exception as exc:
            LOGGER.warning("redis_cache_invalidate_failed", key=key, error=str(exc))


def build_policy_cache(settings: Settings | None = None) -> PolicyCache:
    """Return the cache backend selected by configuration."""

    settings = settings or get_settings()
    if settings.redis_policy_cache:
        return RedisPolicyCache(
            Redis.from_url(settings.redis_url),
            ttl_seconds=settings.policy_cache_ttl_seconds,
        )
    return PolicyCache(ttl_seconds=settings.policy_cache_ttl_seconds)


__all__ = ["PolicyCache", "RedisPolicyCache", "build_policy_cache"]
