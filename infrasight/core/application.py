import time
import traceback
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from infrasight.cache import CacheInvalidator, RedisCache
from infrasight.config import SERVICE_NAME, SERVICE_VERSION
from infrasight.devices import DeviceStore
from infrasight.middleware.rate_limiting import rate_limit_middleware
from infrasight.monitoring import MetricsCollector
from infrasight.responses import PrettyJSONResponse
from infrasight.routers import analytics, cache, devices, health, metadata, metrics, readings
from .startup import register_lifecycle

def _record_error(request: Request, code: str):
    collector = getattr(request.app.state, "metrics", None)
    if collector is not None:
        collector.record_error(code)

async def generic_exception_handler(request: Request, exc: Exception):
    print("="*80)
    print(f"Unhandled exception for request: {request.method} {request.url}")
    traceback.print_exception(type(exc), exc, exc.__traceback__)
    print("="*80)

    _record_error(request, "internal_error")
    return JSONResponse(
        status_code=500,
        content={"error": "internal_error", "detail": "An unexpected server error occurred."},
    )

async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]
    _record_error(request, "validation_error")
    return PrettyJSONResponse(
        status_code=400,
        content={"error": "validation_error", "detail": errors},
    )

async def metrics_middleware(request: Request, call_next):
    start_time = time.time()
    collector = request.app.state.metrics
    try:
        response = await call_next(request)
    except Exception:
        collector.record_request(request.method, _route_path(request), 500, (time.time() - start_time) * 1000)
        raise

    collector.record_request(request.method, _route_path(request), response.status_code,
                             (time.time() - start_time) * 1000)
    return response

def _route_path(request: Request) -> str:
    # route template, so /devices/d1 and /devices/d2 share one series
    route = request.scope.get("route")
    return getattr(route, "path", "unmatched")

def create_app(cache_client=None, store=None, limiter=None) -> FastAPI:
    app = FastAPI(
        default_response_class=PrettyJSONResponse,
        debug=False,
        title=SERVICE_NAME,
        version=SERVICE_VERSION,
        description="IoT infrastructure monitoring API"
    )

    app.add_exception_handler(Exception, generic_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    _setup_state(app, cache_client, store, limiter)
    app.middleware("http")(rate_limit_middleware)
    app.middleware("http")(metrics_middleware)
    _setup_routers(app)
    register_lifecycle(app)

    return app

def _setup_state(app: FastAPI, cache_client, store, limiter):
    app.state.owns_cache = cache_client is None
    app.state.cache = cache_client if cache_client is not None else RedisCache()
    app.state.store = store if store is not None else DeviceStore()
    app.state.invalidator = CacheInvalidator(app.state.cache)
    app.state.rate_limiter = limiter
    app.state.metrics = MetricsCollector()

def _setup_routers(app: FastAPI):
    app.include_router(health.router)
    app.include_router(metrics.router)
    app.include_router(devices.router)
    app.include_router(readings.router)
    app.include_router(metadata.router)
    app.include_router(analytics.router)
    app.include_router(cache.router)
