from typing import Literal, Optional
from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from infrasight.config import env_enabled

router = APIRouter()

PROMETHEUS_CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"

@router.get("/api/v2/metrics")
async def metrics(request: Request, format: Optional[Literal["json", "prometheus"]] = Query(None)):
    if not env_enabled("ENABLE_METRICS"):
        return JSONResponse(
            status_code=404,
            content={"error": "not_found", "detail": "Metrics are disabled. Set ENABLE_METRICS=true to enable."}
        )

    collector = request.app.state.metrics
    cache_stats = getattr(request.app.state.cache, "stats", None)

    if format == "json":
        limiter = request.app.state.rate_limiter
        return collector.snapshot(cache_stats, limiter.get_stats() if limiter is not None else None)

    return PlainTextResponse(collector.prometheus(cache_stats), media_type=PROMETHEUS_CONTENT_TYPE)
