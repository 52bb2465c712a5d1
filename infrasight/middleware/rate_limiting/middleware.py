import orjson
from typing import Optional
from fastapi import Request
from fastapi.responses import JSONResponse
from .config import INGEST_PATH, get_rate_limit_config
from .limiter import RateLimitResult

CLIENT_IP_HEADERS = (
    "x-forwarded-for",
    "x-real-ip",
    "cf-connecting-ip",
    "x-client-ip",
    "x-cluster-client-ip",
)

def get_client_ip(request: Request) -> str:
    for header in CLIENT_IP_HEADERS:
        value = request.headers.get(header)
        if value:
            ip = value.split(",")[0].strip()
            if ip:
                return ip
    return "unknown"

def extract_device_id(body: bytes) -> Optional[str]:
    try:
        data = orjson.loads(body)
    except orjson.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None

    readings = data.get("readings")
    if isinstance(readings, list) and readings:
        data = readings[0] if isinstance(readings[0], dict) else {}

    metadata = data.get("metadata")
    if isinstance(metadata, dict) and metadata.get("device_id"):
        return str(metadata["device_id"])
    if data.get("device_id"):
        return str(data["device_id"])
    return None

def rate_limit_headers(result: RateLimitResult) -> dict:
    headers = {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(result.reset_in)
    }
    if result.retry_after is not None:
        headers["Retry-After"] = str(result.retry_after)
    return headers

async def rate_limit_middleware(request: Request, call_next):
    limiter = getattr(request.app.state, "rate_limiter", None)
    path = str(request.url.path)
    limits = get_rate_limit_config(path, request.method)

    if limiter is None or limits is None:
        return await call_next(request)

    client_ip = get_client_ip(request)
    to_check = [(client_ip, limits.per_ip)]

    if limits.per_device and path.startswith(INGEST_PATH):
        device_id = extract_device_id(await request.body())
        if device_id:
            to_check.append((device_id, limits.per_device))

    result = await limiter.check_multiple(to_check)

    if not result.allowed:
        metrics = getattr(request.app.state, "metrics", None)
        if metrics is not None:
            # "ingest:device" -> "device"
            metrics.record_rate_limit_hit((result.rule or "unknown").rsplit(":", 1)[-1])
            metrics.record_error("rate_limit_exceeded")
        return JSONResponse(
            status_code=429,
            content={
                "error": "rate_limit_exceeded",
                "detail": "Too many requests",
                "retry_after": result.retry_after,
                "limit": result.limit,
                "current": result.current
            },
            headers=rate_limit_headers(result)
        )

    response = await call_next(request)
    response.headers.update(rate_limit_headers(result))
    return response
