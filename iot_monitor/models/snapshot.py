# iot_monitor/models/snapshot.py
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from iot_monitor.exceptions import MalformedPayload


ALERT_LEVELS = ("normal", "warning", "critical")

_LOG = logging.getLogger("iot_monitor.snapshot")


def _as_float(payload: Mapping[str, Any], key: str) -> Optional[float]:
    value = payload.get(key)
    if value is None or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        _LOG.debug("Ignoring non-numeric %s=%r", key, value)
        return None
    if not math.isfinite(result):
        _LOG.debug("Ignoring non-finite %s=%r", key, value)
        return None
    return result


def _as_count(payload: Mapping[str, Any], key: str) -> Optional[int]:
    value = _as_float(payload, key)
    if value is None:
        return None
    if value < 0 or value != int(value):
        _LOG.debug("Ignoring invalid %s=%r", key, payload.get(key))
        return None
    return int(value)


def _as_motion(value: Any) -> Optional[bool]:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ("1", "true", "yes", "on"):
            return True
        if text in ("0", "false", "no", "off"):
            return False
    _LOG.debug("Ignoring unrecognised motion=%r", value)
    return None


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


@dataclass(frozen=True)
class SensorSnapshot:
    temperature: float | None = None    # °C
    humidity: float | None = None       # %RH
    motion: bool | None = None
    current: float | None = None        # A
    power: float | None = None          # W
    people_count: int | None = None
    system_mode: str | None = None      # ACTIVE, HOLD, ECO, ...
    system_message: str | None = None
    alert_level: str | None = None      # normal, warning, critical
    transport_error: str | None = None  # gateway reachable but its upstream failed
    timestamp: str | None = None

    @property
    def has_message(self) -> bool:
        return bool(self.system_message)

    @classmethod
    def from_payload(cls, payload: Any) -> "SensorSnapshot":
        """
        Build a snapshot from a decoded gateway response.

        Fields the gateway omits stay ``None``; a missing sensor is never
        reported as zero.
        """
        if not isinstance(payload, dict):
            raise MalformedPayload(
                f"expected a JSON object, got {type(payload).__name__}"
            )

        level = payload.get("alert_level")
        if level is not None:
            level = str(level).strip().lower() or None

        upstream_error = payload.get("transport_error")
        if upstream_error is None:
            upstream_error = payload.get("error")

        return cls(
            temperature=_as_float(payload, "temperature"),
            humidity=_as_float(payload, "humidity"),
            motion=_as_motion(payload.get("motion")),
            current=_as_float(payload, "current"),
            power=_as_float(payload, "power"),
            people_count=_as_count(payload, "people_count"),
            system_mode=_as_text(payload.get("system_mode")),
            system_message=_as_text(payload.get("system_message")),
            alert_level=level,
            transport_error=_as_text(upstream_error),
            timestamp=_as_text(payload.get("timestamp")),
        )


@dataclass(frozen=True)
class HistoryPoint:
    timestamp: str
    temperature: float | None
    humidity: float | None
    motion: bool | None

    @classmethod
    def from_payload(cls, payload: Any) -> Optional["HistoryPoint"]:
        if not isinstance(payload, dict) or not payload.get("timestamp"):
            return None
        return cls(
            timestamp=str(payload["timestamp"]),
            temperature=_as_float(payload, "temperature"),
            humidity=_as_float(payload, "humidity"),
            motion=_as_motion(payload.get("motion")),
        )
