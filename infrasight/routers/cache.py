from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from infrasight.cache import InvalidationEvent
from .dependencies import get_invalidator, get_org_id

router = APIRouter(prefix="/api/v2/cache")

class InvalidationRequest(BaseModel):
    event: InvalidationEvent
    device_id: Optional[str] = Field(None, min_length=1, max_length=100)

@router.post("/invalidate")
async def invalidate(
    body: InvalidationRequest,
    org_id: str = Depends(get_org_id),
    invalidator=Depends(get_invalidator)
):
    try:
        invalidated = await invalidator.invalidate(body.event, org_id, body.device_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"event": body.event.value, "org_id": org_id, "invalidated": invalidated}

@router.delete("")
async def clear_all(invalidator=Depends(get_invalidator)):
    cleared = await invalidator.clear_all_caches()
    return {"cleared": cleared}
