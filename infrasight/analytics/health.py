"""
Fleet health dashboard.

Summarises uptime and the active ratio, buckets devices by severity and
builds alert lists: offline, low battery, error state, maintenance due and
at-risk devices for predictive maintenance. Every alert list reports the
full count and at most ALERT_LIST_LIMIT devices.
"""
import datetime
import math
from collections import Counter
from typing import Iterable, List, Optional
from infrasight.models import Device, DeviceStatus
from infrasight.severity import (
    categorize_devices_by_severity, get_device_severity_counts, get_severity_icon
)
from infrasight.severity.dates import as_utc, get_days_until, resolve_now

DEFAULT_OFFLINE_THRESHOLD_MINUTES = 5
DEFAULT_BATTERY_WARNING_THRESHOLD = 20
MAINTENANCE_DUE_DAYS = 7
ALERT_LIST_LIMIT = 10

RISK_BATTERY_THRESHOLD = 15
RISK_MAINTENANCE_DAYS = 3
RISK_ERROR_COUNT = 10

ISSUE_TYPE_ORDER = (
    "battery_critical",
    "maintenance_overdue",
    "maintenance_due",
    "high_error_count"
)

def _iso(value: Optional[datetime.datetime]) -> Optional[str]:
    return as_utc(value).isoformat() if value is not None else None

def _brief(device: Device) -> dict:
    return {
        "device_id": device.device_id,
        "serial_number": device.serial_number,
        "room_name": device.location.room_name
    }

def _alert(devices: List[dict], **extra) -> dict:
    return {"count": len(devices), "devices": devices[:ALERT_LIST_LIMIT], **extra}

def _is_at_risk(device: Device, now: datetime.datetime) -> bool:
    battery = device.health.battery_level
    next_maintenance = device.metadata.next_maintenance
    return (
        (battery is not None and battery < RISK_BATTERY_THRESHOLD)
        or (next_maintenance is not None
            and as_utc(next_maintenance) <= now + datetime.timedelta(days=RISK_MAINTENANCE_DAYS))
        or device.health.error_count > RISK_ERROR_COUNT
    )

def classify_risk(device: Device, now: Optional[datetime.datetime] = None) -> Optional[dict]:
    """Issue type for an at-risk device, or None when the device is not at risk.

    Battery wins over maintenance, which wins over the error count. A
    maintenance date only decides the type when it is overdue or at most
    RISK_MAINTENANCE_DAYS away.
    """
    now = resolve_now(now)
    if not _is_at_risk(device, now):
        return None

    battery = device.health.battery_level
    next_maintenance = device.metadata.next_maintenance
    issue_type = None
    days_until = None

    if battery is not None and battery < RISK_BATTERY_THRESHOLD:
        issue_type = "battery_critical"
    else:
        if next_maintenance is not None:
            days_until = get_days_until(next_maintenance, now)
            if days_until < 0:
                issue_type = "maintenance_overdue"
            elif days_until <= RISK_MAINTENANCE_DAYS:
                issue_type = "maintenance_due"
        if issue_type is None and device.health.error_count > RISK_ERROR_COUNT:
            issue_type = "high_error_count"

    return {
        **_brief(device),
        "issue_type": issue_type,
        "days_until": days_until,
        "severity": "critical" if issue_type else "warning"
    }

def _issue_rank(item: dict) -> int:
    if item["issue_type"] in ISSUE_TYPE_ORDER:
        return ISSUE_TYPE_ORDER.index(item["issue_type"])
    return len(ISSUE_TYPE_ORDER)

def predictive_maintenance_items(devices: Iterable[Device], now: Optional[datetime.datetime] = None) -> List[dict]:
    now = resolve_now(now)
    items = [item for item in (classify_risk(d, now) for d in devices) if item is not None]
    return sorted(items, key=_issue_rank)

def uptime_stats(devices: List[Device]) -> dict:
    if not devices:
        return {"avg_uptime": 100, "min_uptime": 100, "max_uptime": 100, "total_errors": 0}
    uptimes = [d.health.uptime_percentage for d in devices]
    return {
        "avg_uptime": round(sum(uptimes) / len(uptimes), 2),
        "min_uptime": min(uptimes),
        "max_uptime": max(uptimes),
        "total_errors": sum(d.health.error_count for d in devices)
    }

def build_health_analytics(devices: Iterable[Device], now: Optional[datetime.datetime] = None,
                           offline_threshold_minutes: int = DEFAULT_OFFLINE_THRESHOLD_MINUTES,
                           battery_warning_threshold: float = DEFAULT_BATTERY_WARNING_THRESHOLD,
                           building_id: Optional[str] = None, floor: Optional[int] = None,
                           department: Optional[str] = None) -> dict:
    now = resolve_now(now)
    devices = list(devices)

    total = len(devices)
    active = sum(1 for d in devices if d.status == DeviceStatus.ACTIVE)
    status_counts = Counter(d.status.value for d in devices)

    offline_cutoff = now - datetime.timedelta(minutes=offline_threshold_minutes)
    maintenance_cutoff = now + datetime.timedelta(days=MAINTENANCE_DUE_DAYS)

    offline = [
        {**_brief(d), "status": d.status.value, "last_seen": _iso(d.health.last_seen)}
        for d in devices if as_utc(d.health.last_seen) < offline_cutoff
    ]
    low_battery = [
        {**_brief(d), "battery_level": d.health.battery_level}
        for d in devices
        if d.health.battery_level is not None and d.health.battery_level < battery_warning_threshold
    ]
    errors = [
        {**_brief(d), "error_count": d.health.error_count}
        for d in devices if d.status == DeviceStatus.ERROR
    ]
    maintenance_due = [
        {
            **_brief(d),
            "next_maintenance": _iso(d.metadata.next_maintenance),
            "last_maintenance": _iso(d.metadata.last_maintenance)
        }
        for d in devices
        if d.metadata.next_maintenance is not None and as_utc(d.metadata.next_maintenance) <= maintenance_cutoff
    ]
    at_risk = predictive_maintenance_items(devices, now)

    by_severity = categorize_devices_by_severity(devices, now)

    return {
        "summary": {
            "total_devices": total,
            "active_devices": active,
            "health_score": math.floor(active / total * 100 + 0.5) if total else 100,
            "uptime_stats": uptime_stats(devices),
            "severity_counts": get_device_severity_counts(devices, now)
        },
        "status_breakdown": [
            {"status": status, "count": count} for status, count in sorted(status_counts.items())
        ],
        "severity_breakdown": {
            severity: {
                "icon": get_severity_icon(severity),
                "devices": [d.device_id for d in bucket]
            }
            for severity, bucket in by_severity.items()
        },
        "alerts": {
            "offline_devices": _alert(offline, threshold_minutes=offline_threshold_minutes),
            "low_battery_devices": _alert(low_battery, threshold_percent=battery_warning_threshold),
            "error_devices": _alert(errors),
            "maintenance_due": _alert(maintenance_due),
            "predictive_maintenance": _alert(at_risk)
        },
        "filters_applied": {
            "building_id": building_id,
            "floor": floor,
            "department": department
        },
        "generated_at": now.isoformat()
    }
