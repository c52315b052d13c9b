# iot_monitor/services/output_formatter.py

from __future__ import annotations

import json
from dataclasses import asdict
from typing import Iterable, List, Optional

from iot_monitor.models.alert import AlertEntry
from iot_monitor.models.snapshot import HistoryPoint, SensorSnapshot

# Reading thresholds that flag a card on the dashboard.
HIGH_TEMPERATURE_C = 28.0
HIGH_HUMIDITY_PCT = 50.0
HIGH_POWER_W = 500.0


def reading_indicators(snapshot: SensorSnapshot) -> List[str]:
    """Human hints for readings that need attention; absent sensors are skipped."""
    hints: list[str] = []
    if snapshot.temperature is not None and snapshot.temperature >= HIGH_TEMPERATURE_C:
        hints.append("temperature high: cooling needed")
    if snapshot.humidity is not None and snapshot.humidity >= HIGH_HUMIDITY_PCT:
        hints.append("humidity high: dehumidifier needed")
    if snapshot.motion:
        hints.append("motion detected")
    if snapshot.power is not None and snapshot.power >= HIGH_POWER_W:
        hints.append("power draw high")
    return hints


def _fmt(value: Optional[float], unit: str, digits: int = 1) -> str:
    if value is None:
        return "--"
    return f"{value:.{digits}f}{unit}"


def _motion_text(motion: Optional[bool]) -> str:
    if motion is None:
        return "--"
    return "detected" if motion else "none"


def emit_human(
    snapshot: Optional[SensorSnapshot],
    status: str,
    alerts: Iterable[AlertEntry] = (),
    *,
    error: Optional[str] = None,
) -> None:
    print(f"Gateway status: {status}")
    if error:
        print(f"  Error: {error}")
    if snapshot is None:
        print("No snapshot received yet.")
    else:
        print(f"Mode: {snapshot.system_mode or 'Initializing...'}")
        print(f"  {snapshot.system_message or 'Waiting for system data.'}")
        print(
            f"Temperature={_fmt(snapshot.temperature, '°C')}, "
            f"Humidity={_fmt(snapshot.humidity, '%')}, "
            f"Motion={_motion_text(snapshot.motion)}"
        )
        print(
            f"Power={_fmt(snapshot.power, ' W', 0)}, "
            f"Current={_fmt(snapshot.current, ' A', 2)}, "
            f"People={snapshot.people_count if snapshot.people_count is not None else '--'}"
        )
        for hint in reading_indicators(snapshot):
            print(f"  ! {hint}")

    alert_list = list(alerts)
    if alert_list:
        print(f"\n=== ALERT LOG ({len(alert_list)}) ===")
        for entry in alert_list:
            print(f"[{entry.timestamp}] {entry.severity.upper():8s} {entry.message}")


def emit_json(
    snapshot: Optional[SensorSnapshot],
    status: str,
    alerts: Iterable[AlertEntry] = (),
    *,
    error: Optional[str] = None,
) -> None:
    payload = {
        "status": status,
        "error": error,
        "snapshot": asdict(snapshot) if snapshot is not None else None,
        "indicators": reading_indicators(snapshot) if snapshot is not None else [],
        "alerts": [asdict(entry) for entry in alerts],
    }
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def emit_history(points: Iterable[HistoryPoint], *, as_json: bool = False) -> None:
    items = list(points)
    if as_json:
        print(json.dumps([asdict(p) for p in items], indent=2))
        return
    if not items:
        print("No history data.")
        return
    for point in items:
        print(
            f"{point.timestamp}  "
            f"T={_fmt(point.temperature, '°C')}  "
            f"H={_fmt(point.humidity, '%')}  "
            f"motion={_motion_text(point.motion)}"
        )
