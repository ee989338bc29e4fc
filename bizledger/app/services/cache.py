"""
Report cache backed by Redis.

Aging and summary reports are expensive aggregates over the whole
journal. Results are cached under a key that embeds a generation
counter; any committed ledger mutation bumps the counter, so stale
entries are never read again and simply expire.

Redis being unavailable only costs performance: every failure is
logged and the caller recomputes.
"""

import json
import logging
from typing import Any, Awaitable, Callable, Optional

from redis.exceptions import RedisError

import bizledger.app.core.redis_client as redis_client_module

logger = logging.getLogger("bizledger.cache")

CACHE_PREFIX = "bizledger:reports:"
GENERATION_KEY = f"{CACHE_PREFIX}generation"


class CacheService:

    @staticmethod
    def _client():
        # Resolved at call time so the client can be swapped (tests)
        return redis_client_module.redis_client

    @staticmethod
    async def generation() -> str:
        value = await CacheService._client().get(GENERATION_KEY)
        if value is None:
            return "0"
        return value.decode() if isinstance(value, bytes) else str(value)

    @staticmethod
    async def build_key(name: str, *parts: Any) -> str:
        generation = await CacheService.generation()
        suffix = ":".join(str(p) for p in parts)
        return f"{CACHE_PREFIX}{name}:g{generation}" + (f":{suffix}" if suffix else "")

    @staticmethod
    async def get_json(key: str) -> Optional[Any]:
        try:
            raw = await CacheService._client().get(key)
        except (RedisError, OSError) as exc:
            logger.warning("Cache read failed for %s: %s", key, exc)
            return None
        if raw is None:
            return None
        return json.loads(raw)

    @staticmethod
    async def set_json(key: str, data: Any, ttl_seconds: int) -> None:
        try:
            await CacheService._client().set(key, json.dumps(data), ex=ttl_seconds)
        except (RedisError, OSError) as exc:
            logger.warning("Cache write failed for %s: %s", key, exc)

    @staticmethod
    async def invalidate_reports() -> None:
        """Bump the generation so every cached report is bypassed."""
        try:
            await CacheService._client().incr(GENERATION_KEY)
        except (RedisError, OSError) as exc:
            logger.warning("Cache invalidation failed: %s", exc)

    @staticmethod
    async def cached(
        name: str,
        parts: tuple,
        ttl_seconds: int,
        compute: Callable[[], Awaitable[Any]],
    ) -> Any:
        """
        Return the cached JSON value for (name, parts) or compute and store it.

        compute must return something json.dumps accepts.
        """
        try:
            key = await CacheService.build_key(name, *parts)
        except (RedisError, OSError) as exc:
            logger.warning("Cache unavailable, computing %s directly: %s", name, exc)
            return await compute()

        hit = await CacheService.get_json(key)
        if hit is not None:
            logger.debug("Cache hit %s", key)
            return hit

        data = await compute()
        await CacheService.set_json(key, data, ttl_seconds)
        return data
