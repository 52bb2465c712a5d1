"""Tests for device severity classification rules and tier short-circuiting."""

import datetime

import pytest

from infrasight.severity import (
    Severity,
    calculate_device_severity,
    categorize_devices_by_severity,
    get_device_severity_counts,
)

DAY = datetime.timedelta(days=1)
HOUR = datetime.timedelta(hours=1)


def test_healthy_device_reports_single_healthy_reason(make_device, now) -> None:
    result = calculate_device_severity(make_device(battery_level=80), now=now)

    assert result.to_dict() == {
        "severity": "healthy",
        "reasons": [{"code": "HEALTHY", "message": "All systems normal"}],
    }


def test_error_status_is_critical_and_suppresses_warning_checks(make_device, now) -> None:
    device = make_device(status="error", battery_level=20, last_seen=now - 5 * HOUR)

    result = calculate_device_severity(device, now=now)

    assert result.severity == Severity.CRITICAL
    assert result.codes == ["STATUS_ERROR"]
    assert "NOT_RESPONDING" not in result.codes
    assert "BATTERY_LOW" not in result.codes


def test_all_critical_reasons_are_accumulated_in_order(make_device, now) -> None:
    device = make_device(
        status="error",
        battery_level=5,
        error_count=42,
        next_maintenance=now - 3 * DAY - HOUR,
    )

    result = calculate_device_severity(device, now=now)

    assert result.severity == Severity.CRITICAL
    assert result.codes == ["STATUS_ERROR", "BATTERY_CRITICAL", "HIGH_ERROR_COUNT", "MAINTENANCE_OVERDUE"]
    assert result.reasons[1].message == "Battery critically low: 5%"
    assert result.reasons[2].message == "High error count: 42 errors"
    assert result.reasons[3].message == "Maintenance overdue by 3 days"


@pytest.mark.parametrize(
    ("battery", "expected"),
    [(14, "critical"), (15, "warning"), (29, "warning"), (30, "healthy"), (100, "healthy")],
)
def test_battery_thresholds(make_device, now, battery, expected) -> None:
    result = calculate_device_severity(make_device(battery_level=battery), now=now)
    assert result.severity.value == expected


def test_zero_battery_is_critical(make_device, now) -> None:
    result = calculate_device_severity(make_device(battery_level=0), now=now)
    assert result.codes == ["BATTERY_CRITICAL"]


def test_device_without_battery_is_never_penalised(make_device, now) -> None:
    result = calculate_device_severity(make_device(battery_level=None), now=now)
    assert result.severity == Severity.HEALTHY


@pytest.mark.parametrize(("error_count", "expected"), [(10, "healthy"), (11, "critical")])
def test_error_count_threshold(make_device, now, error_count, expected) -> None:
    result = calculate_device_severity(make_device(error_count=error_count), now=now)
    assert result.severity.value == expected


def test_overdue_maintenance_floors_elapsed_days(make_device, now) -> None:
    result = calculate_device_severity(make_device(next_maintenance=now - 2 * HOUR), now=now)

    assert result.severity == Severity.CRITICAL
    assert result.reasons[0].message == "Maintenance overdue by 0 days"


def test_maintenance_due_within_week_rounds_days_up(make_device, now) -> None:
    result = calculate_device_severity(make_device(next_maintenance=now + 2 * DAY + HOUR), now=now)

    assert result.severity == Severity.WARNING
    assert result.codes == ["MAINTENANCE_DUE"]
    assert result.reasons[0].message == "Maintenance due in 3 days"


def test_maintenance_exactly_seven_days_out_is_due(make_device, now) -> None:
    result = calculate_device_severity(make_device(next_maintenance=now + 7 * DAY), now=now)
    assert result.codes == ["MAINTENANCE_DUE"]


def test_maintenance_beyond_a_week_is_healthy(make_device, now) -> None:
    result = calculate_device_severity(make_device(next_maintenance=now + 8 * DAY), now=now)
    assert result.severity == Severity.HEALTHY


def test_stale_device_is_not_responding(make_device, now) -> None:
    result = calculate_device_severity(make_device(last_seen=now - 90 * datetime.timedelta(minutes=1)), now=now)

    assert result.severity == Severity.WARNING
    assert result.codes == ["NOT_RESPONDING"]
    assert result.reasons[0].message == "No communication for 90 minutes"


def test_last_seen_exactly_one_hour_ago_is_still_responding(make_device, now) -> None:
    result = calculate_device_severity(make_device(last_seen=now - HOUR), now=now)
    assert result.severity == Severity.HEALTHY


def test_offline_device_reports_offline_only(make_device, now) -> None:
    result = calculate_device_severity(make_device(status="offline", last_seen=now - 10 * HOUR), now=now)

    assert result.severity == Severity.WARNING
    assert result.codes == ["OFFLINE"]


def test_warning_reasons_accumulate(make_device, now) -> None:
    device = make_device(status="maintenance", battery_level=25, next_maintenance=now + DAY, last_seen=now - 2 * HOUR)

    result = calculate_device_severity(device, now=now)

    assert result.codes == ["IN_MAINTENANCE", "BATTERY_LOW", "MAINTENANCE_DUE", "NOT_RESPONDING"]
    assert result.reasons[1].message == "Battery low: 25%"


def test_naive_timestamps_are_treated_as_utc(make_device, now) -> None:
    device = make_device(next_maintenance=(now - 2 * DAY).replace(tzinfo=None))

    result = calculate_device_severity(device, now=now)

    assert result.codes == ["MAINTENANCE_OVERDUE"]


def test_categorize_and_count_devices(make_device, now) -> None:
    devices = [
        make_device("d1", status="error"),
        make_device("d2", battery_level=20),
        make_device("d3", status="offline"),
        make_device("d4"),
    ]

    buckets = categorize_devices_by_severity(devices, now=now)
    counts = get_device_severity_counts(devices, now=now)

    assert [d.device_id for d in buckets["critical"]] == ["d1"]
    assert [d.device_id for d in buckets["warning"]] == ["d2", "d3"]
    assert [d.device_id for d in buckets["healthy"]] == ["d4"]
    assert counts == {"critical": 1, "warning": 2, "healthy": 1, "total": 4}
