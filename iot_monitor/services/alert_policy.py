# iot_monitor/services/alert_policy.py

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Dict, Optional

from iot_monitor.config import AlertConfig
from iot_monitor.models.alert import AlertEntry, severity_for_level
from iot_monitor.models.snapshot import SensorSnapshot


SYSTEM_CATEGORY = "system"


@dataclass(frozen=True)
class DedupState:
    """Suppression memory carried between poll cycles.

    Replaced as a whole, and only when an entry is actually logged.
    """

    last_message: Optional[str] = None
    last_fired_ms: Dict[str, int] = field(default_factory=dict)
    last_entry_id: int = 0


@dataclass(frozen=True)
class AlertDecision:
    entry: Optional[AlertEntry] = None
    state: Optional[DedupState] = None
    reason: str = ""

    @property
    def emit(self) -> bool:
        return self.entry is not None

    @classmethod
    def suppress(cls, reason: str) -> "AlertDecision":
        return cls(reason=reason)


def _epoch_ms(now: datetime) -> int:
    return int(now.timestamp() * 1000)


class AlertPolicy:
    """
    Decides whether a snapshot produces a new alert entry.

    ``evaluate`` is a pure function of the snapshot, the dedup state and the
    supplied ``now``; it never mutates ``state``.
    """

    name = "base"

    def evaluate(self, snapshot: SensorSnapshot, state: DedupState, now: datetime) -> AlertDecision:
        raise NotImplementedError

    # ------------------------------------------------------------------
    def _build(
        self,
        snapshot: SensorSnapshot,
        state: DedupState,
        now: datetime,
        *,
        severity: str,
        category: str = SYSTEM_CATEGORY,
    ) -> AlertDecision:
        now_ms = _epoch_ms(now)
        entry_id = max(now_ms, state.last_entry_id + 1)
        entry = AlertEntry(
            id=entry_id,
            severity=severity,
            message=snapshot.system_message or "",
            timestamp=now.strftime("%H:%M:%S"),
            category=category,
        )
        fired = dict(state.last_fired_ms)
        fired[category] = now_ms
        next_state = replace(
            state,
            last_message=snapshot.system_message,
            last_fired_ms=fired,
            last_entry_id=entry_id,
        )
        return AlertDecision(entry=entry, state=next_state, reason="emit")


class ThresholdCooldownPolicy(AlertPolicy):
    """Critical-only alerts, rate limited per category by a fixed window."""

    name = "threshold"

    def __init__(self, cooldown_seconds: float = 60.0, category: str = SYSTEM_CATEGORY):
        self.cooldown_ms = int(cooldown_seconds * 1000)
        self.category = category

    def evaluate(self, snapshot: SensorSnapshot, state: DedupState, now: datetime) -> AlertDecision:
        if not snapshot.has_message:
            return AlertDecision.suppress("no message")
        if snapshot.alert_level != "critical":
            return AlertDecision.suppress("not critical")

        last = state.last_fired_ms.get(self.category)
        if last is not None and _epoch_ms(now) - last < self.cooldown_ms:
            return AlertDecision.suppress("cooldown")

        return self._build(snapshot, state, now, severity="critical", category=self.category)


class MessageTransitionPolicy(AlertPolicy):
    """Alert on every change of system_message; identical messages never repeat."""

    name = "transition"

    def evaluate(self, snapshot: SensorSnapshot, state: DedupState, now: datetime) -> AlertDecision:
        if not snapshot.has_message:
            return AlertDecision.suppress("no message")
        if snapshot.system_message == state.last_message:
            return AlertDecision.suppress("unchanged")

        # A return to a "normal" message is reported like any other change.
        return self._build(
            snapshot,
            state,
            now,
            severity=severity_for_level(snapshot.alert_level),
        )


def build_policy(cfg: AlertConfig) -> AlertPolicy:
    if cfg.policy == "threshold":
        return ThresholdCooldownPolicy(cooldown_seconds=cfg.cooldown_seconds)
    return MessageTransitionPolicy()
