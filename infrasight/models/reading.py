import datetime
from typing import List, Optional
from pydantic import BaseModel, Field
from .device import utcnow

class ReadingMetadata(BaseModel):
    device_id: str = Field(..., min_length=1, max_length=100)
    type: str = Field(..., min_length=1, max_length=50)
    unit: Optional[str] = None

class Reading(BaseModel):
    metadata: ReadingMetadata
    timestamp: datetime.datetime = Field(default_factory=utcnow)
    value: float

class ReadingsBatch(BaseModel):
    readings: List[Reading] = Field(..., min_length=1, max_length=10000)
