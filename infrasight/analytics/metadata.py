from collections import Counter
from typing import Iterable
from infrasight.models import Device

def build_device_metadata(devices: Iterable[Device]) -> dict:
    devices = list(devices)
    status_counts = Counter(d.status.value for d in devices)

    return {
        "total_devices": len(devices),
        "status_counts": dict(sorted(status_counts.items())),
        "manufacturers": sorted({d.manufacturer for d in devices if d.manufacturer}),
        "buildings": sorted({d.location.building_id for d in devices}),
        "floors": sorted({d.location.floor for d in devices}),
        "departments": sorted({d.metadata.department for d in devices if d.metadata.department}),
        "tags": sorted({tag for d in devices for tag in d.metadata.tags})
    }
