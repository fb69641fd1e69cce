# ABOUTME: TTL cache store with an in-process backend and an optional Redis backend.
# ABOUTME: Redis is selected at startup after a health check; any Redis error falls back to memory for that call.

import json
import logging
import time
from typing import Any, Callable

import redis.asyncio as aioredis
from redis.exceptions import RedisError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

logger = logging.getLogger(__name__)


class MemoryCache:
    """Dict-backed TTL cache. Expired entries are evicted when read."""

    def __init__(self, time_func: Callable[[], float] = time.monotonic):
        self._time_func = time_func
        self._storage: dict[str, tuple[float, Any]] = {}

    async def get(self, key: str) -> Any:
        item = self._storage.get(key)
        if item is None:
            return None
        expires_at, value = item
        if self._time_func() > expires_at:
            self._storage.pop(key, None)
            return None
        return value

    async def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        self._storage[key] = (self._time_func() + ttl_seconds, value)

    def clear(self) -> None:
        self._storage.clear()

    def __len__(self) -> int:
        return len(self._storage)


class RedisCache:
    """JSON values in Redis, expired by Redis itself via EX."""

    def __init__(self, client: aioredis.Redis):
        self.client = client

    async def get(self, key: str) -> Any:
        raw = await self.client.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        await self.client.set(key, json.dumps(value), ex=max(1, int(ttl_seconds)))

    async def aclose(self) -> None:
        await self.client.aclose()


class CacheStore:
    """Cache facade used by the orchestrator.

    Prefers the remote backend when one is configured. Remote failures are logged and the
    operation is served from the in-process cache instead, so callers always see the same
    get/set contract.
    """

    def __init__(self, remote: RedisCache | None = None, memory: MemoryCache | None = None):
        self.remote = remote
        self.memory = memory or MemoryCache()

    @property
    def backend_name(self) -> str:
        return "redis" if self.remote is not None else "memory"

    async def get(self, key: str) -> Any:
        if self.remote is not None:
            try:
                value = await self.remote.get(key)
            except (RedisError, ValueError) as e:
                logger.warning("Redis get failed for %s, falling back to memory: %s", key, e)
            else:
                if value is not None:
                    return value
        return await self.memory.get(key)

    async def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        if self.remote is not None:
            try:
                await self.remote.set(key, value, ttl_seconds)
                return
            except (RedisError, TypeError, ValueError) as e:
                logger.warning("Redis set failed for %s, falling back to memory: %s", key, e)
        await self.memory.set(key, value, ttl_seconds)

    async def aclose(self) -> None:
        if self.remote is not None:
            await self.remote.aclose()


@retry(
    retry=retry_if_exception_type(RedisError),
    wait=wait_exponential(multiplier=0.2, max=2),
    stop=stop_after_attempt(3),
    reraise=True,
)
async def _ping(client: aioredis.Redis) -> None:
    await client.ping()


async def connect_redis(url: str) -> RedisCache | None:
    """Connect and health-check Redis. Returns None if it is unreachable."""
    try:
        client = aioredis.from_url(url, decode_responses=True, socket_connect_timeout=2)
    except ValueError as e:
        logger.warning("Invalid REDIS_URL, using in-memory cache: %s", e)
        return None
    try:
        await _ping(client)
    except RedisError as e:
        logger.warning("Redis unavailable, using in-memory cache: %s", e)
        await client.aclose()
        return None
    logger.info("Connected to Redis cache")
    return RedisCache(client)


async def build_cache_store(redis_url: str | None) -> CacheStore:
    remote = await connect_redis(redis_url) if redis_url else None
    return CacheStore(remote=remote)
