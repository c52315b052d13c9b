# iot_monitor/models/alert.py
from dataclasses import dataclass


SEVERITY_RANK = {
    "info": 0,
    "warning": 1,
    "critical": 2,
}

SEVERITY_TITLES = {
    "critical": "Immediate action required",
    "warning": "Warning",
    "info": "Status update",
}


def severity_for_level(alert_level: str | None) -> str:
    """Map a gateway alert_level onto an entry severity."""
    if alert_level == "critical":
        return "critical"
    if alert_level == "warning":
        return "warning"
    return "info"


def title_for(severity: str) -> str:
    return SEVERITY_TITLES.get(severity, SEVERITY_TITLES["info"])


def at_least(severity: str, minimum: str) -> bool:
    return SEVERITY_RANK.get(severity, 0) >= SEVERITY_RANK.get(minimum, 0)


@dataclass(frozen=True)
class AlertEntry:
    id: int              # creation time in ms, unique per session
    severity: str        # info, warning, critical
    message: str
    timestamp: str       # HH:MM:SS capture time
    category: str = "system"
