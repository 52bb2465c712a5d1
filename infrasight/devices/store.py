import asyncio
from typing import Dict, Iterable, List, Optional, Tuple
from infrasight.models import Device, DeviceStatus, DeviceUpdate, Reading, utcnow
from infrasight.severity.dates import as_utc

class DeviceNotFoundError(LookupError):
    pass

class DeviceExistsError(ValueError):
    pass

def _deep_merge(base: dict, patch: dict) -> dict:
    merged = dict(base)
    for key, value in patch.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged

class DeviceStore:
    """In-memory device registry, partitioned by organisation.

    Deleted devices are kept with ``deleted_at`` set and hidden from reads.
    """

    def __init__(self):
        self._devices: Dict[str, Dict[str, Device]] = {}
        self._latest_readings: Dict[str, Dict[Tuple[str, str], dict]] = {}
        self._lock = asyncio.Lock()

    def _org(self, org_id: str) -> Dict[str, Device]:
        return self._devices.setdefault(org_id, {})

    async def list_devices(self, org_id: str, status: Optional[str] = None, building_id: Optional[str] = None,
                           floor: Optional[int] = None, department: Optional[str] = None,
                           include_deleted: bool = False) -> List[Device]:
        devices = []
        for device in self._org(org_id).values():
            if device.is_deleted and not include_deleted:
                continue
            if status is not None and device.status.value != status:
                continue
            if building_id is not None and device.location.building_id != building_id:
                continue
            if floor is not None and device.location.floor != floor:
                continue
            if department is not None and device.metadata.department != department:
                continue
            devices.append(device)
        return sorted(devices, key=lambda d: d.device_id)

    async def get(self, org_id: str, device_id: str) -> Device:
        device = self._org(org_id).get(device_id)
        if device is None or device.is_deleted:
            raise DeviceNotFoundError(device_id)
        return device

    async def create(self, org_id: str, device: Device) -> Device:
        async with self._lock:
            existing = self._org(org_id).get(device.device_id)
            if existing is not None and not existing.is_deleted:
                raise DeviceExistsError(device.device_id)
            now = utcnow()
            device = device.model_copy(update={"created_at": now, "updated_at": now, "deleted_at": None})
            self._org(org_id)[device.device_id] = device
            return device

    async def update(self, org_id: str, device_id: str, update: DeviceUpdate) -> Device:
        async with self._lock:
            device = await self.get(org_id, device_id)
            merged = _deep_merge(device.model_dump(), update.model_dump(exclude_unset=True))
            merged["updated_at"] = utcnow()
            updated = Device.model_validate(merged)
            self._org(org_id)[device_id] = updated
            return updated

    async def delete(self, org_id: str, device_id: str) -> Device:
        async with self._lock:
            device = await self.get(org_id, device_id)
            now = utcnow()
            deleted = device.model_copy(update={"deleted_at": now, "updated_at": now})
            self._org(org_id)[device_id] = deleted
            return deleted

    async def bulk_update_status(self, org_id: str, device_ids: Iterable[str],
                                 status: DeviceStatus) -> Tuple[List[str], List[str]]:
        updated, missing = [], []
        async with self._lock:
            now = utcnow()
            for device_id in device_ids:
                device = self._org(org_id).get(device_id)
                if device is None or device.is_deleted:
                    missing.append(device_id)
                    continue
                self._org(org_id)[device_id] = device.model_copy(update={"status": status, "updated_at": now})
                updated.append(device_id)
        return updated, missing

    async def record_readings(self, org_id: str, readings: Iterable[Reading]) -> Tuple[List[str], List[dict]]:
        accepted_ids, rejected = [], []
        async with self._lock:
            latest = self._latest_readings.setdefault(org_id, {})
            for index, reading in enumerate(readings):
                device_id = reading.metadata.device_id
                device = self._org(org_id).get(device_id)
                if device is None or device.is_deleted:
                    rejected.append({"index": index, "device_id": device_id, "error": "unknown_device"})
                    continue

                timestamp = as_utc(reading.timestamp)
                slot = (device_id, reading.metadata.type)
                current = latest.get(slot)
                if current is None or current["timestamp"] <= timestamp:
                    latest[slot] = {
                        "device_id": device_id,
                        "type": reading.metadata.type,
                        "value": reading.value,
                        "unit": reading.metadata.unit,
                        "timestamp": timestamp
                    }

                if timestamp > as_utc(device.health.last_seen):
                    health = device.health.model_copy(update={"last_seen": timestamp})
                    device = device.model_copy(update={"health": health})
                    self._org(org_id)[device_id] = device

                if device_id not in accepted_ids:
                    accepted_ids.append(device_id)
        return accepted_ids, rejected

    async def latest_readings(self, org_id: str, device_ids: Iterable[str] = (),
                              types: Iterable[str] = ()) -> List[dict]:
        device_ids, types = set(device_ids), set(types)
        results = []
        for (device_id, reading_type), entry in self._latest_readings.get(org_id, {}).items():
            if device_ids and device_id not in device_ids:
                continue
            if types and reading_type not in types:
                continue
            results.append({**entry, "timestamp": entry["timestamp"].isoformat()})
        return sorted(results, key=lambda r: (r["device_id"], r["type"]))
