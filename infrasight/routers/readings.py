from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import ValidationError
from infrasight.cache import keys
from infrasight.config import CACHE_TTL_READINGS_LATEST
from infrasight.models import Reading, ReadingsBatch
from .dependencies import get_cache, get_invalidator, get_metrics, get_org_id, get_store

router = APIRouter(prefix="/api/v2/readings")

def _split_csv(value: Optional[str]) -> list:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]

def parse_ingest_body(body) -> list:
    if isinstance(body, dict) and "readings" in body:
        return ReadingsBatch.model_validate(body).readings
    return [Reading.model_validate(body)]

@router.post("/ingest", status_code=201)
async def ingest_readings(
    request: Request,
    org_id: str = Depends(get_org_id),
    store=Depends(get_store),
    invalidator=Depends(get_invalidator),
    metrics=Depends(get_metrics)
):
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Request body must be valid JSON")

    try:
        readings = parse_ingest_body(body)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid readings: {e.error_count()} error(s)")

    accepted_ids, rejected = await store.record_readings(org_id, readings)
    metrics.record_ingestion(len(readings), len(rejected))
    if not accepted_ids:
        raise HTTPException(status_code=400, detail="No readings matched a registered device")

    await invalidator.invalidate_device_readings(org_id, accepted_ids)
    await invalidator.invalidate_devices(org_id, accepted_ids)
    await invalidator.invalidate_health_cache(org_id)

    return {
        "accepted": len(readings) - len(rejected),
        "rejected": rejected,
        "devices": accepted_ids
    }

@router.get("/latest")
async def latest_readings(
    device_ids: Optional[str] = Query(None, description="Comma separated device ids"),
    types: Optional[str] = Query(None, description="Comma separated reading types"),
    org_id: str = Depends(get_org_id),
    store=Depends(get_store),
    cache=Depends(get_cache)
):
    device_list, type_list = _split_csv(device_ids), _split_csv(types)

    async def fetch():
        readings = await store.latest_readings(org_id, device_list, type_list)
        return {"total": len(readings), "readings": readings}

    cache_key = keys.latest_readings_key(org_id, device_list, type_list)
    return await cache.get_or_set(cache_key, fetch, ttl=CACHE_TTL_READINGS_LATEST)
