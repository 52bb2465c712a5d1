"""
Predictive maintenance forecast.

Devices are sorted into critical, warning and watch buckets. The first
matching bucket wins, so a device appears in at most one list. The
severity threshold only trims the response after categorisation.
"""
import datetime
from dataclasses import dataclass, field
from typing import Iterable, List, Optional
from infrasight.models import Device
from infrasight.severity.dates import as_utc, resolve_now

CRITICAL_BATTERY_THRESHOLD = 15
WARNING_BATTERY_THRESHOLD = 30
CRITICAL_MAINTENANCE_DAYS = 3
WARRANTY_WATCH_DAYS = 30
DEFAULT_DAYS_AHEAD = 7

SEVERITY_THRESHOLDS = ("critical", "warning", "all")

@dataclass
class ForecastBuckets:
    critical: List[Device] = field(default_factory=list)
    warning: List[Device] = field(default_factory=list)
    watch: List[Device] = field(default_factory=list)

def _before(value: Optional[datetime.datetime], limit: datetime.datetime) -> bool:
    return value is not None and as_utc(value) < limit

def _battery_below(device: Device, threshold: float) -> bool:
    battery = device.health.battery_level
    return battery is not None and battery < threshold

def classify_forecast_bucket(device: Device, days_ahead: int = DEFAULT_DAYS_AHEAD,
                             now: Optional[datetime.datetime] = None) -> Optional[str]:
    now = resolve_now(now)
    next_maintenance = device.metadata.next_maintenance

    critical_date = now + datetime.timedelta(days=CRITICAL_MAINTENANCE_DAYS)
    warning_date = now + datetime.timedelta(days=days_ahead)
    warranty_date = now + datetime.timedelta(days=WARRANTY_WATCH_DAYS)

    if (_battery_below(device, CRITICAL_BATTERY_THRESHOLD)
            or _before(next_maintenance, now)
            or _before(next_maintenance, critical_date)):
        return "critical"

    if _battery_below(device, WARNING_BATTERY_THRESHOLD) or _before(next_maintenance, warning_date):
        return "warning"

    if _before(device.metadata.warranty_expiry, warranty_date):
        return "watch"

    return None

def categorize_forecast(devices: Iterable[Device], days_ahead: int = DEFAULT_DAYS_AHEAD,
                        now: Optional[datetime.datetime] = None) -> ForecastBuckets:
    now = resolve_now(now)
    buckets = ForecastBuckets()
    for device in devices:
        bucket = classify_forecast_bucket(device, days_ahead, now)
        if bucket is not None:
            getattr(buckets, bucket).append(device)
    return buckets

def average_battery(devices: Iterable[Device]) -> Optional[float]:
    levels = [d.health.battery_level for d in devices if d.health.battery_level is not None]
    if not levels:
        return None
    return sum(levels) / len(levels)

def apply_severity_threshold(response: dict, severity_threshold: str) -> dict:
    if severity_threshold == "critical":
        return {
            **response,
            "warning": [],
            "watch": [],
            "summary": {**response["summary"], "warning_count": 0, "watch_count": 0}
        }
    if severity_threshold == "warning":
        return {
            **response,
            "watch": [],
            "summary": {**response["summary"], "watch_count": 0}
        }
    return response

def build_maintenance_forecast(devices: Iterable[Device], days_ahead: int = DEFAULT_DAYS_AHEAD,
                               severity_threshold: str = "all", building_id: Optional[str] = None,
                               floor: Optional[int] = None,
                               now: Optional[datetime.datetime] = None) -> dict:
    if severity_threshold not in SEVERITY_THRESHOLDS:
        raise ValueError(f"severity_threshold must be one of {SEVERITY_THRESHOLDS}")

    now = resolve_now(now)
    devices = list(devices)
    buckets = categorize_forecast(devices, days_ahead, now)

    overdue = [d for d in buckets.critical if _before(d.metadata.next_maintenance, now)]

    response = {
        "critical": [d.to_json() for d in buckets.critical],
        "warning": [d.to_json() for d in buckets.warning],
        "watch": [d.to_json() for d in buckets.watch],
        "summary": {
            "total_at_risk": len(buckets.critical) + len(buckets.warning) + len(buckets.watch),
            "critical_count": len(buckets.critical),
            "warning_count": len(buckets.warning),
            "watch_count": len(buckets.watch),
            "avg_battery_all": average_battery(devices),
            "maintenance_overdue": [d.to_json() for d in overdue]
        },
        "filters_applied": {
            "days_ahead": days_ahead,
            "building_id": building_id,
            "floor": floor
        }
    }

    return apply_severity_threshold(response, severity_threshold)
