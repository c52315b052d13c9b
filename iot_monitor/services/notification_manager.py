# iot_monitor/services/notification_manager.py

from __future__ import annotations

from typing import Iterable, List

from iot_monitor.config import AlertConfig
from iot_monitor.models.alert import AlertEntry, title_for
from iot_monitor.services.notifiers.console import NotificationSink


class NotificationManager:
    """Coordinates outbound notifications across every configured sink."""

    def __init__(self, sinks: Iterable[NotificationSink], log, *, duration_ms: int = AlertConfig.toast_duration_ms):
        self.log = log
        self.sinks: List[NotificationSink] = list(sinks)
        self.duration_ms = duration_ms

    # ------------------------------------------------------------------
    def dispatch(self, entry: AlertEntry, unread: int) -> None:
        """Toast a freshly logged entry and refresh the badge."""
        title = title_for(entry.severity)
        for sink in self.sinks:
            try:
                sink.notify(entry.severity, title, entry.message, self.duration_ms)
            except Exception as exc:
                self.log.warning("Notification sink %s failed: %s", type(sink).__name__, exc)
        self.update_badge(unread)

    # ------------------------------------------------------------------
    def update_badge(self, count: int) -> None:
        for sink in self.sinks:
            try:
                sink.update_badge(count)
            except Exception as exc:
                self.log.warning("Badge update on %s failed: %s", type(sink).__name__, exc)

    # ------------------------------------------------------------------
    def send_test_notification(self, severity: str = "info") -> None:
        self.log.info("Sending %s test notification to %d sink(s)...", severity, len(self.sinks))
        title = title_for(severity)
        for sink in self.sinks:
            try:
                sink.notify(severity, title, "Test notification from IoT gateway monitor", self.duration_ms)
            except Exception as exc:
                self.log.warning("Test notification via %s failed: %s", type(sink).__name__, exc)
