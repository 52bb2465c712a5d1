from .device import (
    Device, DeviceHealth, DeviceMetadata, DeviceLocation, DeviceStatus,
    DeviceUpdate, DeviceHealthUpdate, DeviceMetadataUpdate, DeviceLocationUpdate,
    BulkStatusUpdate, utcnow
)
from .reading import Reading, ReadingMetadata, ReadingsBatch

__all__ = [
    'Device', 'DeviceHealth', 'DeviceMetadata', 'DeviceLocation', 'DeviceStatus',
    'DeviceUpdate', 'DeviceHealthUpdate', 'DeviceMetadataUpdate', 'DeviceLocationUpdate',
    'BulkStatusUpdate', 'utcnow', 'Reading', 'ReadingMetadata', 'ReadingsBatch'
]
