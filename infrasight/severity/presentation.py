from typing import Dict, Union
from .classifier import Severity

SEVERITY_COLORS = {
    Severity.CRITICAL: {
        "bg": "bg-red-50 dark:bg-red-900/20",
        "text": "text-red-900 dark:text-red-200",
        "border": "border-red-500",
        "badge": "bg-red-600 text-white"
    },
    Severity.WARNING: {
        "bg": "bg-amber-50 dark:bg-amber-900/20",
        "text": "text-amber-900 dark:text-amber-200",
        "border": "border-amber-500",
        "badge": "bg-amber-600 text-white"
    },
    Severity.HEALTHY: {
        "bg": "bg-green-50 dark:bg-green-900/20",
        "text": "text-green-900 dark:text-green-200",
        "border": "border-green-500",
        "badge": "bg-green-600 text-white"
    }
}

SEVERITY_ICONS = {
    Severity.CRITICAL: "AlertCircle",
    Severity.WARNING: "AlertTriangle",
    Severity.HEALTHY: "CheckCircle"
}

def _as_severity(severity: Union[str, Severity]) -> Severity:
    try:
        return Severity(severity)
    except ValueError:
        raise ValueError(f"Unknown severity: {severity!r}") from None

def get_severity_color(severity: Union[str, Severity]) -> Dict[str, str]:
    return dict(SEVERITY_COLORS[_as_severity(severity)])

def get_severity_icon(severity: Union[str, Severity]) -> str:
    return SEVERITY_ICONS[_as_severity(severity)]
