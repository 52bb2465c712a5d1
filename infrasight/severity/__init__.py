from .classifier import (
    Severity, SeverityReason, SeverityResult, calculate_device_severity,
    categorize_devices_by_severity, get_device_severity_counts
)
from .presentation import get_severity_color, get_severity_icon
from .dates import is_within_days, get_days_until, is_past, format_relative_date, as_utc

__all__ = [
    'Severity', 'SeverityReason', 'SeverityResult', 'calculate_device_severity',
    'categorize_devices_by_severity', 'get_device_severity_counts',
    'get_severity_color', 'get_severity_icon',
    'is_within_days', 'get_days_until', 'is_past', 'format_relative_date', 'as_utc'
]
