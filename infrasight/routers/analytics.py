import time
import datetime
from typing import Literal, Optional
from fastapi import APIRouter, Depends, Query
from infrasight.analytics import build_health_analytics, build_maintenance_forecast
from infrasight.cache import keys
from infrasight.config import CACHE_TTL_HEALTH, CACHE_TTL_MAINTENANCE_FORECAST
from .dependencies import get_cache, get_org_id, get_store

router = APIRouter(prefix="/api/v2/analytics")

@router.get("/maintenance-forecast")
async def maintenance_forecast(
    days_ahead: int = Query(7, ge=1, le=365, description="Warning horizon in days"),
    severity_threshold: Literal["critical", "warning", "all"] = Query("all"),
    building_id: Optional[str] = Query(None, max_length=100),
    floor: Optional[int] = Query(None),
    org_id: str = Depends(get_org_id),
    store=Depends(get_store),
    cache=Depends(get_cache)
):
    start_time = time.time()
    cache_key = keys.analytics_key(org_id, "maintenance-forecast", {
        "days_ahead": days_ahead,
        "severity_threshold": severity_threshold,
        "building_id": building_id,
        "floor": floor
    })

    async def fetch():
        devices = await store.list_devices(org_id, building_id=building_id, floor=floor)
        return build_maintenance_forecast(
            devices,
            days_ahead=days_ahead,
            severity_threshold=severity_threshold,
            building_id=building_id,
            floor=floor
        )

    response = await cache.get_or_set(cache_key, fetch, ttl=CACHE_TTL_MAINTENANCE_FORECAST)

    elapsed_ms = (time.time() - start_time) * 1000
    print(f"[{datetime.datetime.now()}] Maintenance forecast for org={org_id} in {elapsed_ms:.1f}ms ({cache_key})")
    return response

@router.get("/health")
async def health_analytics(
    building_id: Optional[str] = Query(None, max_length=100),
    floor: Optional[int] = Query(None),
    department: Optional[str] = Query(None, max_length=100),
    offline_threshold_minutes: int = Query(5, ge=1, le=10080),
    battery_warning_threshold: int = Query(20, ge=0, le=100),
    org_id: str = Depends(get_org_id),
    store=Depends(get_store),
    cache=Depends(get_cache)
):
    async def fetch():
        devices = await store.list_devices(org_id, building_id=building_id, floor=floor, department=department)
        return build_health_analytics(
            devices,
            offline_threshold_minutes=offline_threshold_minutes,
            battery_warning_threshold=battery_warning_threshold,
            building_id=building_id,
            floor=floor,
            department=department
        )

    # thresholds change the alert lists, so they are part of the key
    cache_key = keys.health_key(org_id, {
        "building_id": building_id,
        "floor": floor,
        "department": department,
        "offline_threshold_minutes": offline_threshold_minutes,
        "battery_warning_threshold": battery_warning_threshold
    })
    return await cache.get_or_set(cache_key, fetch, ttl=CACHE_TTL_HEALTH)
