import os
from typing import Mapping, Optional

def env_int(key: str, default: int, environ: Optional[Mapping[str, str]] = None) -> int:
    source = os.environ if environ is None else environ
    value = source.get(key)
    if not value:
        return default
    # strict: "12abc" is rejected and falls back, no leading-digit parsing
    try:
        return int(value.strip())
    except (ValueError, TypeError):
        return default

def env_flag(key: str, environ: Optional[Mapping[str, str]] = None) -> bool:
    # only the literal "false" disables a flag
    source = os.environ if environ is None else environ
    return source.get(key) != "false"

def env_enabled(key: str, environ: Optional[Mapping[str, str]] = None) -> bool:
    # opt-in: only the literal "true" enables
    source = os.environ if environ is None else environ
    return source.get(key) == "true"

REDIS_URL = os.environ.get("REDIS_URL", "redis://localhost")
REDIS_SOCKET_TIMEOUT = 3
REDIS_HEALTH_CHECK_INTERVAL = 30

DEFAULT_ORG_ID = "default"

CACHE_TTL_METADATA = env_int("CACHE_METADATA_TTL", 600)
CACHE_TTL_HEALTH = env_int("CACHE_HEALTH_TTL", 30)
CACHE_TTL_DEVICE = 300
CACHE_TTL_READINGS_LATEST = 10
CACHE_TTL_ANALYTICS = 60
CACHE_TTL_DEVICES_LIST = 30
CACHE_TTL_MAINTENANCE_FORECAST = 120

SCAN_BATCH_SIZE = 100

SERVICE_NAME = "InfraSight"
SERVICE_VERSION = "2.0.0"
