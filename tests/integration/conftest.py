import pytest
from fastapi.testclient import TestClient

from infrasight.core import create_app
from infrasight.middleware.rate_limiting import SlidingWindowLimiter


@pytest.fixture
def limiter(fake_redis):
    return SlidingWindowLimiter(fake_redis)


@pytest.fixture
def client(memory_cache, limiter):
    app = create_app(cache_client=memory_cache, limiter=limiter)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def acme():
    return {"X-Org-Id": "acme", "X-Forwarded-For": "203.0.113.5"}


@pytest.fixture
def device_payload():
    def _payload(device_id="d1", **overrides):
        payload = {
            "device_id": device_id,
            "serial_number": f"SN-{device_id}",
            "manufacturer": "Acme",
            "location": {"building_id": "b1", "floor": 2, "room_name": "Plant room"},
            "health": {"battery_level": 80},
        }
        payload.update(overrides)
        return payload
    return _payload
