"""Tests for severity color and icon lookups."""

import pytest

from infrasight.severity import Severity, get_severity_color, get_severity_icon


@pytest.mark.parametrize(
    ("severity", "icon"),
    [("critical", "AlertCircle"), ("warning", "AlertTriangle"), ("healthy", "CheckCircle")],
)
def test_icon_per_severity(severity, icon) -> None:
    assert get_severity_icon(severity) == icon
    assert get_severity_icon(Severity(severity)) == icon


def test_color_classes_for_critical() -> None:
    assert get_severity_color("critical") == {
        "bg": "bg-red-50 dark:bg-red-900/20",
        "text": "text-red-900 dark:text-red-200",
        "border": "border-red-500",
        "badge": "bg-red-600 text-white",
    }


def test_every_color_set_has_the_same_slots() -> None:
    for severity in Severity:
        assert set(get_severity_color(severity)) == {"bg", "text", "border", "badge"}


def test_returned_colors_are_a_copy() -> None:
    colors = get_severity_color(Severity.WARNING)
    colors["bg"] = "changed"

    assert get_severity_color(Severity.WARNING)["bg"] == "bg-amber-50 dark:bg-amber-900/20"


@pytest.mark.parametrize("lookup", [get_severity_color, get_severity_icon])
def test_unknown_severity_is_rejected(lookup) -> None:
    with pytest.raises(ValueError, match="Unknown severity"):
        lookup("catastrophic")
