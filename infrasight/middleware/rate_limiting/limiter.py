import asyncio
import datetime
import math
import time
import uuid
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple
from .config import RateLimitConfig

EXPIRY_BUFFER_SECONDS = 10

@dataclass
class RateLimitResult:
    allowed: bool
    current: int
    limit: float
    reset_in: int
    remaining: float
    retry_after: Optional[int] = None
    rule: Optional[str] = None

    @property
    def usage_ratio(self) -> float:
        return self.current / self.limit if self.limit else math.inf

def _open_result(config: RateLimitConfig) -> RateLimitResult:
    return RateLimitResult(allowed=True, current=0, limit=config.max, reset_in=0, remaining=config.max,
                           rule=config.name)

def rate_limit_key(name: str, identifier: str) -> str:
    return f"ratelimit:{name}:{identifier}"

class SlidingWindowLimiter:
    """Sliding-window limiter on Redis sorted sets, scored by request time.

    Fails open: without Redis, or when Redis errors, every request is allowed.
    """

    def __init__(self, client=None):
        self.client = client
        self.stats: Dict[str, int] = {"checked": 0, "denied": 0, "errors": 0}
        self.denied_by_rule: Dict[str, int] = {}

    async def check(self, identifier: str, config: RateLimitConfig) -> RateLimitResult:
        if self.client is None:
            return _open_result(config)

        key = rate_limit_key(config.name, identifier)
        now_ms = int(time.time() * 1000)
        window_start = now_ms - config.window_seconds * 1000
        member = f"{now_ms}:{uuid.uuid4().hex[:6]}"

        try:
            pipeline = self.client.pipeline()
            pipeline.zremrangebyscore(key, 0, window_start)
            pipeline.zcard(key)
            pipeline.zadd(key, {member: now_ms})
            pipeline.expire(key, config.window_seconds + EXPIRY_BUFFER_SECONDS)
            results = await pipeline.execute()
            current_count = int(results[1] or 0)
        except Exception as e:
            self.stats["errors"] += 1
            print(f"[{datetime.datetime.now()}] Rate limit check failed for {config.name}:{identifier}: {e}")
            return _open_result(config)

        self.stats["checked"] += 1
        allowed = current_count < config.max
        reset_in = math.ceil(config.window_seconds)

        if not allowed:
            self.stats["denied"] += 1
            self.denied_by_rule[config.name] = self.denied_by_rule.get(config.name, 0) + 1
            print(f"[{datetime.datetime.now()}] Rate limit exceeded: {config.name} "
                  f"{identifier[:8]}... ({current_count + 1}/{config.max})")

        return RateLimitResult(
            allowed=allowed,
            current=current_count + 1,
            limit=config.max,
            reset_in=reset_in,
            remaining=max(0, config.max - current_count - 1) if allowed else 0,
            retry_after=None if allowed else reset_in,
            rule=config.name
        )

    async def check_multiple(self, limits: Iterable[Tuple[str, RateLimitConfig]]) -> RateLimitResult:
        limits = list(limits)
        if not limits:
            return RateLimitResult(allowed=True, current=0, limit=math.inf, reset_in=0, remaining=math.inf)

        results = await asyncio.gather(*(self.check(identifier, config) for identifier, config in limits))

        for result in results:
            if not result.allowed:
                return result

        most_used = results[0]
        for result in results[1:]:
            if result.usage_ratio > most_used.usage_ratio:
                most_used = result
        return most_used

    async def status(self, identifier: str, config: RateLimitConfig) -> RateLimitResult:
        if self.client is None:
            return _open_result(config)

        key = rate_limit_key(config.name, identifier)
        window_start = int(time.time() * 1000) - config.window_seconds * 1000

        try:
            pipeline = self.client.pipeline()
            pipeline.zremrangebyscore(key, 0, window_start)
            pipeline.zcard(key)
            results = await pipeline.execute()
            current_count = int(results[1] or 0)
        except Exception:
            return _open_result(config)

        return RateLimitResult(
            allowed=current_count < config.max,
            current=current_count,
            limit=config.max,
            reset_in=config.window_seconds,
            remaining=max(0, config.max - current_count),
            rule=config.name
        )

    async def reset(self, identifier: str, name: str) -> bool:
        if self.client is None:
            return False
        try:
            await self.client.delete(rate_limit_key(name, identifier))
            return True
        except Exception as e:
            print(f"[{datetime.datetime.now()}] Failed to reset rate limit {name}:{identifier}: {e}")
            return False

    def get_stats(self) -> dict:
        return {
            **self.stats,
            "denied_by_rule": dict(self.denied_by_rule),
            "backend": "redis" if self.client is not None else "disabled"
        }
