# iot_monitor/services/notifiers/console.py

from __future__ import annotations

import logging


class NotificationSink:
    """Surface that shows alerts to the operator; the core only decides what to send."""

    def notify(self, severity: str, title: str, message: str, duration_ms: int) -> None:
        raise NotImplementedError

    def update_badge(self, count: int) -> None:
        """Unread counter; sinks without a badge ignore it."""


_LEVELS = {
    "critical": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
}


class ConsoleNotifier(NotificationSink):
    """Terminal toast: one log line per alert plus a badge line when it changes."""

    def __init__(self, log, *, echo: bool = True):
        self.log = log
        self.echo = echo
        self._badge = 0

    def notify(self, severity: str, title: str, message: str, duration_ms: int) -> None:
        level = _LEVELS.get(severity, logging.INFO)
        self.log.log(level, "[%s] %s: %s", severity.upper(), title, message)
        if self.echo:
            print(f"*** {title} *** {message}")

    def update_badge(self, count: int) -> None:
        if count == self._badge:
            return
        self._badge = count
        self.log.debug("Unread alerts: %d", count)

    @property
    def badge(self) -> int:
        return self._badge
