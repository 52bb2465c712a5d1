from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import ValidationError
from infrasight.cache import keys
from infrasight.config import CACHE_TTL_DEVICE, CACHE_TTL_DEVICES_LIST
from infrasight.devices import DeviceExistsError, DeviceNotFoundError
from infrasight.models import BulkStatusUpdate, Device, DeviceStatus, DeviceUpdate
from infrasight.severity import calculate_device_severity
from .dependencies import get_cache, get_invalidator, get_org_id, get_store

router = APIRouter(prefix="/api/v2/devices")

def device_with_severity(device: Device) -> dict:
    return {**device.to_json(), "severity": calculate_device_severity(device).to_dict()}

@router.get("")
async def list_devices(
    status: Optional[DeviceStatus] = Query(None, description="Filter by device status"),
    building_id: Optional[str] = Query(None, max_length=100),
    floor: Optional[int] = Query(None),
    org_id: str = Depends(get_org_id),
    store=Depends(get_store),
    cache=Depends(get_cache)
):
    status_value = status.value if status else None
    filters = {"status": status_value, "building_id": building_id, "floor": floor}

    async def fetch():
        devices = await store.list_devices(org_id, status=status_value, building_id=building_id, floor=floor)
        return {
            "total": len(devices),
            "filters": filters,
            "devices": [device_with_severity(d) for d in devices]
        }

    return await cache.get_or_set(keys.devices_list_key(org_id, filters), fetch, ttl=CACHE_TTL_DEVICES_LIST)

@router.post("/bulk-status")
async def bulk_update_status(
    body: BulkStatusUpdate,
    org_id: str = Depends(get_org_id),
    store=Depends(get_store),
    invalidator=Depends(get_invalidator)
):
    updated, missing = await store.bulk_update_status(org_id, body.device_ids, body.status)
    if updated:
        await invalidator.invalidate_all_devices(org_id)
    return {"status": body.status.value, "updated": updated, "not_found": missing}

@router.get("/{device_id}")
async def get_device(
    device_id: str,
    org_id: str = Depends(get_org_id),
    store=Depends(get_store),
    cache=Depends(get_cache)
):
    cache_key = keys.device_key(org_id, device_id)
    cached = await cache.get(cache_key)
    if cached is not None:
        return cached

    try:
        device = await store.get(org_id, device_id)
    except DeviceNotFoundError:
        raise HTTPException(status_code=404, detail=f"Device '{device_id}' not found")

    payload = device_with_severity(device)
    await cache.set(cache_key, payload, ttl=CACHE_TTL_DEVICE)
    return payload

@router.post("", status_code=201)
async def create_device(
    device: Device,
    org_id: str = Depends(get_org_id),
    store=Depends(get_store),
    invalidator=Depends(get_invalidator)
):
    try:
        created = await store.create(org_id, device)
    except DeviceExistsError:
        raise HTTPException(status_code=409, detail=f"Device '{device.device_id}' already exists")

    await invalidator.invalidate_on_device_create(org_id)
    return device_with_severity(created)

@router.patch("/{device_id}")
async def update_device(
    device_id: str,
    update: DeviceUpdate,
    org_id: str = Depends(get_org_id),
    store=Depends(get_store),
    invalidator=Depends(get_invalidator)
):
    try:
        updated = await store.update(org_id, device_id, update)
    except DeviceNotFoundError:
        raise HTTPException(status_code=404, detail=f"Device '{device_id}' not found")
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid device update: {e.error_count()} error(s)")

    await invalidator.invalidate_device(org_id, device_id)
    return device_with_severity(updated)

@router.delete("/{device_id}")
async def delete_device(
    device_id: str,
    org_id: str = Depends(get_org_id),
    store=Depends(get_store),
    invalidator=Depends(get_invalidator)
):
    try:
        deleted = await store.delete(org_id, device_id)
    except DeviceNotFoundError:
        raise HTTPException(status_code=404, detail=f"Device '{device_id}' not found")

    await invalidator.invalidate_device(org_id, device_id)
    return {"device_id": device_id, "deleted_at": deleted.deleted_at.isoformat()}
