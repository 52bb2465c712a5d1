import datetime
from fastapi import APIRouter, Request
from infrasight.config import SERVICE_NAME, SERVICE_VERSION
from infrasight.middleware.rate_limiting.config import get_rules_info, is_rate_limit_enabled

router = APIRouter()

@router.get("/api/health")
async def liveness():
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "timestamp_utc": datetime.datetime.now(datetime.timezone.utc).isoformat()
    }

@router.get("/api/v2/health")
async def component_health(request: Request):
    cache_health = await request.app.state.cache.health()
    limiter = request.app.state.rate_limiter

    return {
        "status": "healthy" if cache_health.get("healthy") else "degraded",
        "timestamp_utc": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "components": {
            "cache": cache_health,
            "rate_limiter": {
                "enabled": is_rate_limit_enabled(),
                "rules": get_rules_info(),
                "stats": limiter.get_stats() if limiter is not None else None
            }
        }
    }
