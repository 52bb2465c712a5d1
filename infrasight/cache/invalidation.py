"""
Cache invalidation on writes.

Each mutation maps to a directive: exact keys plus wildcard patterns, all
scoped by organisation. Applying a directive is best effort. A cache
outage is logged and never fails the write that triggered it.
"""
import asyncio
import datetime
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Sequence, Tuple
from .keys import (
    device_key, device_pattern, devices_list_pattern, metadata_pattern,
    health_pattern, readings_pattern
)

GLOBAL_PATTERNS = (
    "org:*:device:*",
    "org:*:devices:*",
    "org:*:metadata:*",
    "org:*:health:*",
    "org:*:readings:*",
    "org:*:analytics:*"
)

class InvalidationEvent(str, Enum):
    DEVICE_CREATED = "device_created"
    DEVICE_UPDATED = "device_updated"
    DEVICE_DELETED = "device_deleted"
    DEVICES_BULK_UPDATED = "devices_bulk_updated"
    READINGS_INGESTED = "readings_ingested"
    HEALTH_CHANGED = "health_changed"
    METADATA_CHANGED = "metadata_changed"
    FULL_CLEAR = "full_clear"

@dataclass(frozen=True)
class InvalidationDirective:
    keys: Tuple[str, ...] = ()
    patterns: Tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.keys and not self.patterns

def device_directive(org_id: str, device_id: str) -> InvalidationDirective:
    # lists, counts and health stats may all include this device
    return InvalidationDirective(
        keys=(device_key(org_id, device_id),),
        patterns=(devices_list_pattern(org_id), metadata_pattern(org_id), health_pattern(org_id))
    )

def all_devices_directive(org_id: str) -> InvalidationDirective:
    return InvalidationDirective(patterns=(
        device_pattern(org_id),
        devices_list_pattern(org_id),
        metadata_pattern(org_id),
        health_pattern(org_id)
    ))

def device_create_directive(org_id: str) -> InvalidationDirective:
    # a new device has no per-device entry yet
    return InvalidationDirective(patterns=(
        devices_list_pattern(org_id),
        metadata_pattern(org_id),
        health_pattern(org_id)
    ))

def readings_directive(org_id: str) -> InvalidationDirective:
    # health depends on last_seen, which ingestion updates
    return InvalidationDirective(patterns=(readings_pattern(org_id), health_pattern(org_id)))

def devices_directive(org_id: str, device_ids: Sequence[str]) -> InvalidationDirective:
    # ingestion moves last_seen, which feeds the severity of cached devices and lists
    if not device_ids:
        return InvalidationDirective()
    return InvalidationDirective(
        keys=tuple(device_key(org_id, device_id) for device_id in device_ids),
        patterns=(devices_list_pattern(org_id),)
    )

def device_readings_directive(org_id: str, device_ids: Sequence[str]) -> InvalidationDirective:
    if not device_ids:
        return InvalidationDirective()
    return InvalidationDirective(patterns=(readings_pattern(org_id),))

def health_directive(org_id: str) -> InvalidationDirective:
    return InvalidationDirective(patterns=(health_pattern(org_id),))

def metadata_directive(org_id: str) -> InvalidationDirective:
    return InvalidationDirective(patterns=(metadata_pattern(org_id),))

def full_clear_directive() -> InvalidationDirective:
    return InvalidationDirective(patterns=GLOBAL_PATTERNS)

def directive_for_event(event, org_id: Optional[str] = None, device_id: Optional[str] = None) -> InvalidationDirective:
    event = InvalidationEvent(event)

    if event == InvalidationEvent.FULL_CLEAR:
        return full_clear_directive()

    if not org_id:
        raise ValueError(f"{event.value} requires an organization id")

    if event in (InvalidationEvent.DEVICE_UPDATED, InvalidationEvent.DEVICE_DELETED):
        if not device_id:
            raise ValueError(f"{event.value} requires a device id")
        return device_directive(org_id, device_id)

    builders = {
        InvalidationEvent.DEVICE_CREATED: device_create_directive,
        InvalidationEvent.DEVICES_BULK_UPDATED: all_devices_directive,
        InvalidationEvent.READINGS_INGESTED: readings_directive,
        InvalidationEvent.HEALTH_CHANGED: health_directive,
        InvalidationEvent.METADATA_CHANGED: metadata_directive
    }
    return builders[event](org_id)

class CacheInvalidator:
    """Applies invalidation directives against an injected cache client.

    The client needs two coroutines: ``delete(key)`` and
    ``delete_pattern(pattern)``, both returning the number of keys removed.
    """

    def __init__(self, cache):
        self.cache = cache

    async def apply(self, directive: InvalidationDirective, label: str = "Cache", context: str = "") -> bool:
        if directive.is_empty:
            return True

        suffix = f" ({context})" if context else ""
        try:
            operations = [self.cache.delete(key) for key in directive.keys]
            operations += [self.cache.delete_pattern(pattern) for pattern in directive.patterns]
            await asyncio.gather(*operations)
        except Exception as e:
            print(f"[{datetime.datetime.now()}] {label} cache invalidation failed{suffix}: {e}")
            return False

        print(f"[{datetime.datetime.now()}] {label} cache invalidated{suffix}")
        return True

    async def invalidate(self, event, org_id: Optional[str] = None, device_id: Optional[str] = None) -> bool:
        directive = directive_for_event(event, org_id, device_id)
        return await self.apply(directive, InvalidationEvent(event).value, f"org={org_id}" if org_id else "")

    async def invalidate_device(self, org_id: str, device_id: str) -> bool:
        return await self.apply(device_directive(org_id, device_id), "Device", f"org={org_id} device={device_id}")

    async def invalidate_all_devices(self, org_id: str) -> bool:
        return await self.apply(all_devices_directive(org_id), "All devices", f"org={org_id}")

    async def invalidate_on_device_create(self, org_id: str) -> bool:
        return await self.apply(device_create_directive(org_id), "Device create", f"org={org_id}")

    async def invalidate_readings(self, org_id: str) -> bool:
        return await self.apply(readings_directive(org_id), "Readings", f"org={org_id}")

    async def invalidate_device_readings(self, org_id: str, device_ids: Iterable[str]) -> bool:
        device_ids = list(device_ids)
        return await self.apply(
            device_readings_directive(org_id, device_ids),
            "Device readings",
            f"org={org_id} devices={len(device_ids)}"
        )

    async def invalidate_devices(self, org_id: str, device_ids: Iterable[str]) -> bool:
        device_ids = list(device_ids)
        return await self.apply(
            devices_directive(org_id, device_ids),
            "Devices",
            f"org={org_id} devices={len(device_ids)}"
        )

    async def invalidate_health_cache(self, org_id: str) -> bool:
        return await self.apply(health_directive(org_id), "Health", f"org={org_id}")

    async def invalidate_metadata(self, org_id: str) -> bool:
        return await self.apply(metadata_directive(org_id), "Metadata", f"org={org_id}")

    async def clear_all_caches(self) -> bool:
        return await self.apply(full_clear_directive(), "Full")
