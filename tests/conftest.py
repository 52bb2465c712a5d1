import datetime
import fnmatch

import orjson
import pytest

from infrasight.models import Device

NOW = datetime.datetime(2025, 6, 15, 12, 0, tzinfo=datetime.timezone.utc)


class MemoryCache:
    """Dict-backed stand-in for RedisCache; records every delete call."""

    def __init__(self):
        self.data = {}
        self.deleted_keys = []
        self.deleted_patterns = []

    async def get(self, key):
        value = self.data.get(key)
        return orjson.loads(value) if value is not None else None

    async def set(self, key, value, ttl=60):
        self.data[key] = orjson.dumps(value)
        return True

    async def get_or_set(self, key, fetch, ttl=60):
        cached = await self.get(key)
        if cached is not None:
            return cached
        fresh = await fetch()
        await self.set(key, fresh, ttl=ttl)
        return fresh

    async def delete(self, *keys):
        self.deleted_keys.extend(keys)
        removed = [k for k in keys if k in self.data]
        for key in removed:
            del self.data[key]
        return len(removed)

    async def delete_pattern(self, pattern):
        self.deleted_patterns.append(pattern)
        matched = [k for k in self.data if fnmatch.fnmatchcase(k, pattern)]
        for key in matched:
            del self.data[key]
        return len(matched)

    async def health(self):
        return {"healthy": True, "backend": "memory"}

    @property
    def calls(self):
        return len(self.deleted_keys) + len(self.deleted_patterns)


class FailingCache(MemoryCache):
    async def delete(self, *keys):
        self.deleted_keys.extend(keys)
        raise ConnectionError("redis down")

    async def delete_pattern(self, pattern):
        self.deleted_patterns.append(pattern)
        raise ConnectionError("redis down")


class FakePipeline:
    def __init__(self, redis):
        self.redis = redis
        self.commands = []

    def __getattr__(self, name):
        def queue(*args, **kwargs):
            self.commands.append((name, args, kwargs))
            return self
        return queue

    async def execute(self):
        if self.redis.fail:
            raise ConnectionError("redis down")
        results = []
        for name, args, kwargs in self.commands:
            results.append(await getattr(self.redis, name)(*args, **kwargs))
        self.commands = []
        return results


class FakeRedis:
    """Just enough of redis.asyncio.Redis for the cache client and the limiter."""

    def __init__(self, fail=False):
        self.fail = fail
        self.strings = {}
        self.zsets = {}
        self.expiries = {}
        self._scan_keys = []

    def _check(self):
        if self.fail:
            raise ConnectionError("redis down")

    def pipeline(self):
        return FakePipeline(self)

    async def ping(self):
        self._check()
        return True

    async def get(self, key):
        self._check()
        return self.strings.get(key)

    async def set(self, key, value, ex=None):
        self._check()
        self.strings[key] = value.decode() if isinstance(value, bytes) else value
        if ex is not None:
            self.expiries[key] = ex
        return True

    async def exists(self, key):
        self._check()
        return int(key in self.strings or key in self.zsets)

    async def ttl(self, key):
        self._check()
        if key not in self.strings and key not in self.zsets:
            return -2
        return self.expiries.get(key, -1)

    async def delete(self, *keys):
        self._check()
        removed = 0
        for key in keys:
            if self.strings.pop(key, None) is not None or self.zsets.pop(key, None) is not None:
                removed += 1
            self.expiries.pop(key, None)
        return removed

    async def scan(self, cursor=0, match=None, count=None):
        self._check()
        # iterate over the key set as it was when the scan started
        if cursor == 0:
            self._scan_keys = sorted(k for k in list(self.strings) + list(self.zsets)
                                     if match is None or fnmatch.fnmatchcase(k, match))
        keys = self._scan_keys
        batch = count or 10
        page = keys[cursor:cursor + batch]
        next_cursor = cursor + batch if cursor + batch < len(keys) else 0
        return next_cursor, page

    async def zremrangebyscore(self, key, minimum, maximum):
        zset = self.zsets.get(key, {})
        stale = [m for m, score in zset.items() if minimum <= score <= maximum]
        for member in stale:
            del zset[member]
        return len(stale)

    async def zcard(self, key):
        return len(self.zsets.get(key, {}))

    async def zadd(self, key, mapping):
        zset = self.zsets.setdefault(key, {})
        added = sum(1 for m in mapping if m not in zset)
        zset.update(mapping)
        return added

    async def expire(self, key, seconds):
        self.expiries[key] = seconds
        return True

    async def aclose(self):
        return None


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def memory_cache():
    return MemoryCache()


@pytest.fixture
def failing_cache():
    return FailingCache()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def broken_redis():
    return FakeRedis(fail=True)


@pytest.fixture
def make_device():
    def _make(device_id="device_001", status="active", battery_level=None, error_count=0,
              last_seen=NOW, next_maintenance=None, warranty_expiry=None,
              building_id="bldg_a", floor=1, **extra):
        return Device.model_validate({
            "device_id": device_id,
            "serial_number": f"SN-{device_id}",
            "status": status,
            "health": {
                "last_seen": last_seen,
                "battery_level": battery_level,
                "error_count": error_count,
                "uptime_percentage": 99.5
            },
            "metadata": {
                "next_maintenance": next_maintenance,
                "warranty_expiry": warranty_expiry,
                **extra.pop("metadata", {})
            },
            "location": {"building_id": building_id, "floor": floor, "room_name": "Lab"},
            **extra
        })
    return _make
