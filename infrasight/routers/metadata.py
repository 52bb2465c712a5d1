from fastapi import APIRouter, Depends
from infrasight.analytics import build_device_metadata
from infrasight.cache import keys
from infrasight.config import CACHE_TTL_METADATA
from .dependencies import get_cache, get_org_id, get_store

router = APIRouter()

@router.get("/api/v2/metadata")
async def device_metadata(
    org_id: str = Depends(get_org_id),
    store=Depends(get_store),
    cache=Depends(get_cache)
):
    async def fetch():
        return build_device_metadata(await store.list_devices(org_id))

    return await cache.get_or_set(keys.metadata_key(org_id), fetch, ttl=CACHE_TTL_METADATA)
