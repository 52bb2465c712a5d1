from dataclasses import dataclass
from typing import Dict, Mapping, Optional
from infrasight.config import env_int, env_flag

DEFAULT_WINDOW_SECONDS = 60

INGEST_PATH = "/api/v2/readings/ingest"

# Prefix match: "/api/v2/healthz" is exempt as well.
RATE_LIMIT_EXEMPT_PATHS = (
    "/api/health",
    "/api/v2/metrics",
    "/api/v2/health",
)

MUTATION_METHODS = ("POST", "PUT", "PATCH", "DELETE")

@dataclass(frozen=True)
class RateLimitConfig:
    name: str
    max: int
    window_seconds: int

    def to_dict(self) -> dict:
        return {"name": self.name, "max": self.max, "window_seconds": self.window_seconds}

@dataclass(frozen=True)
class EndpointLimits:
    per_ip: RateLimitConfig
    per_device: Optional[RateLimitConfig] = None

def create_rate_limit_config(name: str, max: int, window_seconds: int) -> RateLimitConfig:
    return RateLimitConfig(name=name, max=max, window_seconds=window_seconds)

def build_rate_limit_configs(environ: Optional[Mapping[str, str]] = None) -> Dict[str, EndpointLimits]:
    return {
        INGEST_PATH: EndpointLimits(
            per_device=RateLimitConfig(
                "ingest:device", env_int("RATE_LIMIT_INGEST_PER_DEVICE", 1000, environ), DEFAULT_WINDOW_SECONDS
            ),
            per_ip=RateLimitConfig(
                "ingest:ip", env_int("RATE_LIMIT_INGEST_PER_IP", 10000, environ), DEFAULT_WINDOW_SECONDS
            )
        ),
        "MUTATION_DEFAULT": EndpointLimits(
            per_ip=RateLimitConfig(
                "mutation:ip", env_int("RATE_LIMIT_MUTATIONS_PER_IP", 100, environ), DEFAULT_WINDOW_SECONDS
            )
        ),
        "READ_DEFAULT": EndpointLimits(
            per_ip=RateLimitConfig(
                "read:ip", env_int("RATE_LIMIT_READS_PER_IP", 1000, environ), DEFAULT_WINDOW_SECONDS
            )
        )
    }

def is_rate_limit_enabled(environ: Optional[Mapping[str, str]] = None) -> bool:
    return env_flag("RATE_LIMIT_ENABLED", environ)

def is_rate_limit_exempt(path: str) -> bool:
    return any(path.startswith(exempt) for exempt in RATE_LIMIT_EXEMPT_PATHS)

def get_rate_limit_config(path: str, method: str,
                          environ: Optional[Mapping[str, str]] = None) -> Optional[EndpointLimits]:
    if not is_rate_limit_enabled(environ):
        return None

    if is_rate_limit_exempt(path):
        return None

    configs = build_rate_limit_configs(environ)
    if path in configs:
        return configs[path]

    if method.upper() in MUTATION_METHODS:
        return configs["MUTATION_DEFAULT"]
    return configs["READ_DEFAULT"]

def get_rules_info(environ: Optional[Mapping[str, str]] = None) -> dict:
    info = {}
    for name, limits in build_rate_limit_configs(environ).items():
        info[name] = {"per_ip": limits.per_ip.to_dict()}
        if limits.per_device:
            info[name]["per_device"] = limits.per_device.to_dict()
    return info
