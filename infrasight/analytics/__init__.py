from .maintenance_forecast import (
    ForecastBuckets, build_maintenance_forecast, categorize_forecast,
    classify_forecast_bucket, apply_severity_threshold, average_battery, SEVERITY_THRESHOLDS
)
from .health import (
    build_health_analytics, classify_risk, predictive_maintenance_items, uptime_stats, ISSUE_TYPE_ORDER
)
from .metadata import build_device_metadata

__all__ = [
    'ForecastBuckets', 'build_maintenance_forecast', 'categorize_forecast',
    'classify_forecast_bucket', 'apply_severity_threshold', 'average_battery',
    'SEVERITY_THRESHOLDS', 'build_health_analytics', 'classify_risk', 'predictive_maintenance_items',
    'uptime_stats', 'ISSUE_TYPE_ORDER', 'build_device_metadata'
]
