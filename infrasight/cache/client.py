import redis.asyncio as redis
import orjson
import datetime
import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, Optional
from infrasight.responses import dump_json
from infrasight.config import (
    REDIS_URL, REDIS_SOCKET_TIMEOUT, REDIS_HEALTH_CHECK_INTERVAL, SCAN_BATCH_SIZE, env_flag
)

OPERATION_TIMEOUT = 2

class RedisCache:
    """Redis-backed JSON cache.

    Reads and writes degrade to a miss or a no-op when Redis is down.
    Deletes return 0 when the cache is off or not connected, and let
    transport errors through so the caller decides how to absorb them.
    """

    def __init__(self, url: str = REDIS_URL, client=None, enabled: Optional[bool] = None):
        self.url = url
        self.client = client
        self.healthy = client is not None
        self.enabled = env_flag("CACHE_ENABLED") if enabled is None else enabled
        self.stats: Dict[str, int] = {"hits": 0, "misses": 0, "sets": 0, "invalidated": 0}

    async def connect(self):
        try:
            self.client = redis.from_url(
                self.url,
                encoding="utf-8",
                decode_responses=True,
                socket_timeout=REDIS_SOCKET_TIMEOUT,
                socket_connect_timeout=REDIS_SOCKET_TIMEOUT,
                retry_on_timeout=True,
                health_check_interval=REDIS_HEALTH_CHECK_INTERVAL
            )
            await self.client.ping()
            self.healthy = True
            print(f"[{datetime.datetime.now()}] Redis connection initialized ({self.url})")
        except Exception as e:
            self.healthy = False
            self.client = None
            print(f"[{datetime.datetime.now()}] Redis unavailable: {e}")

    async def close(self):
        if self.client is not None:
            await self.client.aclose()
            self.client = None
            self.healthy = False

    @property
    def available(self) -> bool:
        return self.enabled and self.client is not None and self.healthy

    async def get(self, key: str) -> Any:
        if not self.available:
            return None
        try:
            cached = await asyncio.wait_for(self.client.get(key), timeout=OPERATION_TIMEOUT)
            if cached is None:
                self.stats["misses"] += 1
                return None
            self.stats["hits"] += 1
            return orjson.loads(cached)
        except Exception as e:
            print(f"[{datetime.datetime.now()}] Cache get failed for {key}: {e}")
            return None

    async def set(self, key: str, value: Any, ttl: int = 60) -> bool:
        if not self.available:
            return False
        try:
            serialized = dump_json(value)
            await asyncio.wait_for(self.client.set(key, serialized, ex=ttl), timeout=OPERATION_TIMEOUT)
            self.stats["sets"] += 1
            return True
        except Exception as e:
            print(f"[{datetime.datetime.now()}] Cache set failed for {key}: {e}")
            return False

    async def get_or_set(self, key: str, fetch: Callable[[], Awaitable[Any]], ttl: int = 60) -> Any:
        cached = await self.get(key)
        if cached is not None:
            return cached

        fresh = await fetch()
        await self.set(key, fresh, ttl=ttl)
        return fresh

    async def exists(self, key: str) -> bool:
        if not self.available:
            return False
        try:
            return await self.client.exists(key) == 1
        except Exception:
            return False

    async def ttl(self, key: str) -> int:
        # -1: no expiry, -2: missing or unknown
        if not self.available:
            return -2
        try:
            return await self.client.ttl(key)
        except Exception:
            return -2

    async def delete(self, *keys: str) -> int:
        if not keys or not self.available:
            return 0
        deleted = await self.client.delete(*keys)
        self.stats["invalidated"] += deleted
        return deleted

    async def delete_pattern(self, pattern: str) -> int:
        if not self.available:
            return 0

        total_deleted = 0
        cursor = 0
        while True:
            cursor, keys = await self.client.scan(cursor=cursor, match=pattern, count=SCAN_BATCH_SIZE)
            if keys:
                total_deleted += await self.client.delete(*keys)
            if not cursor:
                break

        self.stats["invalidated"] += total_deleted
        return total_deleted

    async def health(self) -> dict:
        if not self.enabled:
            return {"healthy": False, "error": "disabled"}
        if self.client is None:
            return {"healthy": False, "error": "not_initialized"}

        try:
            start_time = time.time()
            await asyncio.wait_for(self.client.ping(), timeout=OPERATION_TIMEOUT)
            latency = (time.time() - start_time) * 1000
            self.healthy = True
            return {
                "healthy": True,
                "latency_ms": f"{latency:.1f}",
                "stats": dict(self.stats)
            }
        except Exception as e:
            self.healthy = False
            return {"healthy": False, "error": str(e)}
