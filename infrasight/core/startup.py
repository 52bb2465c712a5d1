import datetime
from fastapi import FastAPI
from infrasight.config import SERVICE_VERSION
from infrasight.middleware.rate_limiting import SlidingWindowLimiter

async def startup_handler(app: FastAPI):
    print(f"[{datetime.datetime.now()}] Starting InfraSight v{SERVICE_VERSION}...")

    cache = app.state.cache
    if app.state.owns_cache:
        await cache.connect()

    if app.state.rate_limiter is None:
        available = getattr(cache, "available", False)
        app.state.rate_limiter = SlidingWindowLimiter(cache.client if available else None)
        if available:
            print(f"[{datetime.datetime.now()}] Rate limiter initialized")
        else:
            print(f"[{datetime.datetime.now()}] Rate limiter running without Redis, requests fail open")

    print(f"[{datetime.datetime.now()}] Server ready")

async def shutdown_handler(app: FastAPI):
    print(f"[{datetime.datetime.now()}] Shutting down InfraSight...")

    if app.state.owns_cache:
        await app.state.cache.close()

    print(f"[{datetime.datetime.now()}] Shutdown complete")

def register_lifecycle(app: FastAPI):
    @app.on_event("startup")
    async def startup():
        await startup_handler(app)

    @app.on_event("shutdown")
    async def shutdown():
        await shutdown_handler(app)
