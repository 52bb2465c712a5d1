from typing import Iterable, Mapping, Optional

PREFIX_DEVICE = "device"
PREFIX_DEVICES_LIST = "devices:list"
PREFIX_METADATA = "metadata"
PREFIX_HEALTH = "health"
PREFIX_READINGS_LATEST = "readings:latest"
PREFIX_ANALYTICS = "analytics"

def serialize_params(params: Optional[Mapping[str, object]] = None) -> str:
    if not params:
        return "default"
    parts = [f"{key}:{params[key]}" for key in sorted(params) if params[key] is not None]
    return ":".join(parts) if parts else "default"

def org_prefix(org_id: str) -> str:
    return f"org:{org_id}"

def device_key(org_id: str, device_id: str) -> str:
    return f"{org_prefix(org_id)}:{PREFIX_DEVICE}:{device_id}"

def devices_list_key(org_id: str, filters: Optional[Mapping[str, object]] = None) -> str:
    return f"{org_prefix(org_id)}:{PREFIX_DEVICES_LIST}:{serialize_params(filters)}"

def metadata_key(org_id: str, params: Optional[Mapping[str, object]] = None) -> str:
    return f"{org_prefix(org_id)}:{PREFIX_METADATA}:{serialize_params(params)}"

def health_key(org_id: str, filters: Optional[Mapping[str, object]] = None) -> str:
    return f"{org_prefix(org_id)}:{PREFIX_HEALTH}:{serialize_params(filters)}"

def latest_readings_key(org_id: str, device_ids: Iterable[str] = (), types: Iterable[str] = ()) -> str:
    params = {
        "devices": ",".join(sorted(device_ids)) or "all",
        "types": ",".join(sorted(types)) or "all"
    }
    return f"{org_prefix(org_id)}:{PREFIX_READINGS_LATEST}:{serialize_params(params)}"

def analytics_key(org_id: str, endpoint: str, params: Optional[Mapping[str, object]] = None) -> str:
    return f"{org_prefix(org_id)}:{PREFIX_ANALYTICS}:{endpoint}:{serialize_params(params)}"

def device_pattern(org_id: str) -> str:
    return f"{org_prefix(org_id)}:{PREFIX_DEVICE}:*"

def devices_list_pattern(org_id: str) -> str:
    return f"{org_prefix(org_id)}:{PREFIX_DEVICES_LIST}:*"

def metadata_pattern(org_id: str) -> str:
    return f"{org_prefix(org_id)}:{PREFIX_METADATA}:*"

def health_pattern(org_id: str) -> str:
    return f"{org_prefix(org_id)}:{PREFIX_HEALTH}:*"

def readings_pattern(org_id: str) -> str:
    return f"{org_prefix(org_id)}:{PREFIX_READINGS_LATEST}:*"

def analytics_pattern(org_id: str) -> str:
    return f"{org_prefix(org_id)}:{PREFIX_ANALYTICS}:*"
