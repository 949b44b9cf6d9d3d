"""Redis-backed JSON cache with an in-process fallback.

Only catalog responses are cached; the to-watch list is always read from the
store. When Redis is unreachable the first connection failure disables it for
``_REDIS_RETRY_BACKOFF_SECONDS`` and reads/writes go to a small TTL dict.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from hashlib import sha256
from typing import Any

from redis.asyncio import Redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from mediashelf.settings import get_settings

logger = logging.getLogger(__name__)

_DEFAULT_TTL_SECONDS = 3600
_REDIS_RETRY_BACKOFF_SECONDS = 30.0
_CATALOG_PREFIX = "catalog"

_local_cache: dict[str, tuple[float, Any]] = {}
_local_cache_lock = asyncio.Lock()

_redis_client: Redis | None = None
_client_lock = asyncio.Lock()
_redis_disabled_until = 0.0


async def local_cache_get(key: str) -> Any | None:
    """Return a value from the in-process fallback cache when it remains valid."""

    async with _local_cache_lock:
        cached_entry = _local_cache.get(key)
        if cached_entry is None:
            return None

        expires_at, value = cached_entry
        if expires_at < time.time():
            _local_cache.pop(key, None)
            return None
        return value


async def local_cache_set(key: str, value: Any, ttl: int | None = None) -> None:
    """Persist ``value`` in the in-process cache while respecting the supplied TTL."""

    ttl_seconds = ttl if ttl is not None and ttl > 0 else _DEFAULT_TTL_SECONDS
    async with _local_cache_lock:
        _local_cache[key] = (time.time() + ttl_seconds, value)


async def local_cache_clear_all() -> None:
    """Remove every entry from the in-process cache (used for test isolation)."""

    async with _local_cache_lock:
        _local_cache.clear()


def catalog_key(*parts: str | int) -> str:
    """Return the cache key for a catalog request described by ``parts``."""

    signature = "|".join(str(part).strip().lower() for part in parts)
    digest = sha256(signature.encode("utf-8")).hexdigest()[:16]
    return f"{_CATALOG_PREFIX}:{digest}:{signature}"


async def get_redis() -> Redis | None:
    """Get the shared Redis client, returning None while Redis is unavailable."""
    global _redis_client, _redis_disabled_until

    if time.monotonic() < _redis_disabled_until:
        logger.debug("Redis connection disabled after previous failure; skipping attempt.")
        return None

    async with _client_lock:
        if _redis_client is not None:
            return _redis_client

        client = Redis.from_url(
            get_settings().redis_url, decode_responses=True, encoding="utf-8"
        )
        try:
            await client.ping()
        except (RedisConnectionError, RedisTimeoutError, OSError) as exc:
            logger.warning(
                "Redis connection failed: %s. Falling back to in-process cache for %.0fs.",
                exc,
                _REDIS_RETRY_BACKOFF_SECONDS,
            )
            await client.aclose()
            _redis_disabled_until = time.monotonic() + _REDIS_RETRY_BACKOFF_SECONDS
            return None

        _redis_client = client
        logger.info("Redis connection established successfully")
        return _redis_client


class CacheClient:
    """JSON get/set facade over Redis that degrades to the local cache."""

    def __init__(self, redis: Redis | None) -> None:
        self._redis = redis

    async def get_json(self, key: str) -> Any:
        if self._redis is None:
            return await local_cache_get(key)
        try:
            payload = await self._redis.get(key)
        except (RedisConnectionError, RedisTimeoutError) as exc:
            logger.debug("Redis get failed for key %s: %s", key, exc)
            return await local_cache_get(key)
        if payload is None:
            return None
        try:
            return json.loads(payload)
        except json.JSONDecodeError:
            return None

    async def set_json(self, key: str, value: Any, ttl: int | None = None) -> None:
        if ttl is None:
            ttl = _DEFAULT_TTL_SECONDS
        if self._redis is None:
            await local_cache_set(key, value, ttl)
            return
        try:
            await self._redis.set(key, json.dumps(value, default=str), ex=ttl)
        except (RedisConnectionError, RedisTimeoutError) as exc:
            logger.debug("Redis set failed for key %s: %s", key, exc)
            await local_cache_set(key, value, ttl)

    async def delete(self, *keys: str) -> None:
        if not keys:
            return
        async with _local_cache_lock:
            for key in keys:
                _local_cache.pop(key, None)
        if self._redis is None:
            return
        try:
            await self._redis.delete(*keys)
        except (RedisConnectionError, RedisTimeoutError) as exc:
            logger.debug("Redis delete failed: %s", exc)


async def get_cache_client() -> CacheClient:
    redis = await get_redis()
    return CacheClient(redis)


async def close_redis() -> None:
    """Close the global Redis connection gracefully."""
    global _redis_client, _redis_disabled_until
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
    _redis_disabled_until = 0.0


__all__ = [
    "CacheClient",
    "catalog_key",
    "close_redis",
    "get_cache_client",
    "get_redis",
    "local_cache_clear_all",
    "local_cache_get",
    "local_cache_set",
]
