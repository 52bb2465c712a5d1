import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)

class DeviceStatus(str, Enum):
    ACTIVE = "active"
    OFFLINE = "offline"
    MAINTENANCE = "maintenance"
    ERROR = "error"

class DeviceHealth(BaseModel):
    last_seen: datetime.datetime = Field(default_factory=utcnow)
    battery_level: Optional[float] = Field(None, ge=0, le=100)
    error_count: int = Field(0, ge=0)
    uptime_percentage: float = Field(100.0, ge=0, le=100)

class DeviceMetadata(BaseModel):
    next_maintenance: Optional[datetime.datetime] = None
    last_maintenance: Optional[datetime.datetime] = None
    warranty_expiry: Optional[datetime.datetime] = None
    department: Optional[str] = None
    tags: List[str] = Field(default_factory=list)

class DeviceLocation(BaseModel):
    building_id: str = Field(..., min_length=1, max_length=100)
    floor: int = 0
    room_name: Optional[str] = None

class Device(BaseModel):
    """Device record as consumed by the classifiers.

    Validated once at the HTTP boundary so the severity and forecast code
    can trust every field it reads.
    """

    device_id: str = Field(..., min_length=1, max_length=100)
    serial_number: str = Field(..., min_length=1, max_length=100)
    manufacturer: Optional[str] = None
    device_model: Optional[str] = None
    status: DeviceStatus = DeviceStatus.ACTIVE
    health: DeviceHealth = Field(default_factory=DeviceHealth)
    metadata: DeviceMetadata = Field(default_factory=DeviceMetadata)
    location: DeviceLocation
    created_at: datetime.datetime = Field(default_factory=utcnow)
    updated_at: datetime.datetime = Field(default_factory=utcnow)
    deleted_at: Optional[datetime.datetime] = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def to_json(self) -> dict:
        return self.model_dump(mode="json")

class DeviceHealthUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    last_seen: Optional[datetime.datetime] = None
    battery_level: Optional[float] = Field(None, ge=0, le=100)
    error_count: Optional[int] = Field(None, ge=0)
    uptime_percentage: Optional[float] = Field(None, ge=0, le=100)

class DeviceMetadataUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    next_maintenance: Optional[datetime.datetime] = None
    last_maintenance: Optional[datetime.datetime] = None
    warranty_expiry: Optional[datetime.datetime] = None
    department: Optional[str] = None
    tags: Optional[List[str]] = None

class DeviceLocationUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    building_id: Optional[str] = Field(None, min_length=1, max_length=100)
    floor: Optional[int] = None
    room_name: Optional[str] = None

class DeviceUpdate(BaseModel):
    """Partial update. Only fields present in the request body are applied."""
    model_config = ConfigDict(extra="forbid")

    serial_number: Optional[str] = Field(None, min_length=1, max_length=100)
    manufacturer: Optional[str] = None
    device_model: Optional[str] = None
    status: Optional[DeviceStatus] = None
    health: Optional[DeviceHealthUpdate] = None
    metadata: Optional[DeviceMetadataUpdate] = None
    location: Optional[DeviceLocationUpdate] = None

class BulkStatusUpdate(BaseModel):
    device_ids: List[str] = Field(..., min_length=1, max_length=1000)
    status: DeviceStatus
