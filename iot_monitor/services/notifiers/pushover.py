# iot_monitor/services/notifiers/pushover.py

from __future__ import annotations

import urllib.error
import urllib.parse
import urllib.request

from iot_monitor.config import PushoverConfig
from iot_monitor.models.alert import at_least
from iot_monitor.services.notifiers.console import NotificationSink


class PushoverNotifier(NotificationSink):
    """Minimal Pushover client with helpful logging and validation."""

    API_URL = "https://api.pushover.net/1/messages.json"

    def __init__(self, cfg: PushoverConfig, log):
        self.cfg = cfg
        self.log = log
        self._enabled = bool(cfg.enabled and cfg.token and cfg.user)

    @property
    def enabled(self) -> bool:
        return self._enabled

    # ------------------------------------------------------------------
    def _post(self, title: str, message: str, priority: int = 0) -> bool:
        if not self._enabled:
            self.log.debug("[Pushover] Disabled; skipping message: %s", title)
            return False

        data = urllib.parse.urlencode(
            {
                "token": self.cfg.token,
                "user": self.cfg.user,
                "title": title,
                "message": message,
                "priority": priority,
            }
        ).encode("utf-8")

        req = urllib.request.Request(self.API_URL, data=data)

        try:
            urllib.request.urlopen(req, timeout=10)
            self.log.info("[Pushover] Sent notification: %s", title)
            return True
        except urllib.error.URLError as exc:
            self.log.warning("[Pushover] Failed to send message: %s", exc)
            return False

    # ------------------------------------------------------------------
    def notify(self, severity: str, title: str, message: str, duration_ms: int) -> None:
        # Push messages are not transient, so duration_ms does not apply.
        if not at_least(severity, self.cfg.min_severity):
            self.log.debug("[Pushover] %s below min_severity=%s; not pushed", severity, self.cfg.min_severity)
            return
        priority = 1 if severity == "critical" else 0
        self._post(title, message, priority=priority)

