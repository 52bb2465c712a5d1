"""
Device severity classification.

A device is graded critical, warning or healthy from its status, battery,
error count, last contact and maintenance schedule. Critical checks run
first and all of them are collected; warning checks only run when no
critical check matched.
"""
import datetime
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional
from infrasight.models import Device, DeviceStatus
from .dates import SECONDS_PER_DAY, SECONDS_PER_HOUR, as_utc, is_within_days, resolve_now

BATTERY_CRITICAL_THRESHOLD = 15
BATTERY_LOW_THRESHOLD = 30
ERROR_COUNT_CRITICAL_THRESHOLD = 10
MAINTENANCE_DUE_DAYS = 7
NOT_RESPONDING_HOURS = 1

class Severity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    HEALTHY = "healthy"

@dataclass(frozen=True)
class SeverityReason:
    code: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"code": self.code, "message": self.message}

@dataclass
class SeverityResult:
    severity: Severity
    reasons: List[SeverityReason] = field(default_factory=list)

    @property
    def codes(self) -> List[str]:
        return [reason.code for reason in self.reasons]

    def to_dict(self) -> dict:
        return {
            "severity": self.severity.value,
            "reasons": [reason.to_dict() for reason in self.reasons]
        }

HEALTHY_REASON = SeverityReason("HEALTHY", "All systems normal")

def _format_number(value: float):
    return int(value) if float(value).is_integer() else value

def _critical_reasons(device: Device, now: datetime.datetime) -> List[SeverityReason]:
    reasons = []
    battery = device.health.battery_level

    if device.status == DeviceStatus.ERROR:
        reasons.append(SeverityReason("STATUS_ERROR", "Device is in error state"))

    if battery is not None and battery < BATTERY_CRITICAL_THRESHOLD:
        reasons.append(SeverityReason(
            "BATTERY_CRITICAL", f"Battery critically low: {_format_number(battery)}%"
        ))

    if device.health.error_count > ERROR_COUNT_CRITICAL_THRESHOLD:
        reasons.append(SeverityReason(
            "HIGH_ERROR_COUNT", f"High error count: {device.health.error_count} errors"
        ))

    next_maintenance = device.metadata.next_maintenance
    if next_maintenance is not None and as_utc(next_maintenance) < now:
        elapsed = (now - as_utc(next_maintenance)).total_seconds()
        days_overdue = math.floor(elapsed / SECONDS_PER_DAY)
        reasons.append(SeverityReason(
            "MAINTENANCE_OVERDUE", f"Maintenance overdue by {days_overdue} days"
        ))

    return reasons

def _warning_reasons(device: Device, now: datetime.datetime) -> List[SeverityReason]:
    reasons = []
    battery = device.health.battery_level

    if device.status == DeviceStatus.MAINTENANCE:
        reasons.append(SeverityReason("IN_MAINTENANCE", "Device is in maintenance mode"))

    if battery is not None and battery < BATTERY_LOW_THRESHOLD:
        reasons.append(SeverityReason("BATTERY_LOW", f"Battery low: {_format_number(battery)}%"))

    next_maintenance = device.metadata.next_maintenance
    if next_maintenance is not None and is_within_days(next_maintenance, MAINTENANCE_DUE_DAYS, now):
        remaining = (as_utc(next_maintenance) - now).total_seconds()
        days_until = math.ceil(remaining / SECONDS_PER_DAY)
        reasons.append(SeverityReason("MAINTENANCE_DUE", f"Maintenance due in {days_until} days"))

    # offline devices are reported once, as OFFLINE
    last_seen = device.health.last_seen
    if last_seen is not None and device.status != DeviceStatus.OFFLINE:
        hours_since = (now - as_utc(last_seen)).total_seconds() / SECONDS_PER_HOUR
        if hours_since > NOT_RESPONDING_HOURS:
            minutes = math.floor(hours_since * 60)
            reasons.append(SeverityReason("NOT_RESPONDING", f"No communication for {minutes} minutes"))

    if device.status == DeviceStatus.OFFLINE:
        reasons.append(SeverityReason("OFFLINE", "Device is offline"))

    return reasons

def calculate_device_severity(device: Device, now: Optional[datetime.datetime] = None) -> SeverityResult:
    now = resolve_now(now)

    critical = _critical_reasons(device, now)
    if critical:
        return SeverityResult(Severity.CRITICAL, critical)

    warnings = _warning_reasons(device, now)
    if warnings:
        return SeverityResult(Severity.WARNING, warnings)

    return SeverityResult(Severity.HEALTHY, [HEALTHY_REASON])

def categorize_devices_by_severity(devices: Iterable[Device], now: Optional[datetime.datetime] = None) -> Dict[str, List[Device]]:
    now = resolve_now(now)
    buckets = {severity.value: [] for severity in Severity}
    for device in devices:
        result = calculate_device_severity(device, now)
        buckets[result.severity.value].append(device)
    return buckets

def get_device_severity_counts(devices: Iterable[Device], now: Optional[datetime.datetime] = None) -> Dict[str, int]:
    devices = list(devices)
    buckets = categorize_devices_by_severity(devices, now)
    return {
        "critical": len(buckets["critical"]),
        "warning": len(buckets["warning"]),
        "healthy": len(buckets["healthy"]),
        "total": len(devices)
    }
