from .config import (
    RateLimitConfig, EndpointLimits, get_rate_limit_config, is_rate_limit_enabled,
    is_rate_limit_exempt, create_rate_limit_config, build_rate_limit_configs
)
from .limiter import SlidingWindowLimiter, RateLimitResult
from .middleware import rate_limit_middleware, get_client_ip

__all__ = [
    'RateLimitConfig', 'EndpointLimits', 'get_rate_limit_config', 'is_rate_limit_enabled',
    'is_rate_limit_exempt', 'create_rate_limit_config', 'build_rate_limit_configs',
    'SlidingWindowLimiter', 'RateLimitResult', 'rate_limit_middleware', 'get_client_ip'
]
