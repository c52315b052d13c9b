# iot_monitor/tests/fakes.py

from concurrent.futures import Future
from datetime import datetime, timedelta

from iot_monitor.models.snapshot import SensorSnapshot
from iot_monitor.services.gateway_client import FetchResult
from iot_monitor.services.notifiers.console import NotificationSink


def snap(message=None, level=None, **values) -> SensorSnapshot:
    return SensorSnapshot(system_message=message, alert_level=level, **values)


def ok(message=None, level=None, **values) -> FetchResult:
    return FetchResult.success(snap(message, level, **values))


def failed(kind="transport") -> FetchResult:
    return FetchResult.failure(kind, f"{kind} failure")


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 6, 1, 12, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


class ScriptedGateway:
    """Returns queued FetchResults in call order; repeats the last one."""

    def __init__(self, results):
        self.results = list(results)
        self.calls = 0

    def fetch_latest(self) -> FetchResult:
        result = self.results[min(self.calls, len(self.results) - 1)]
        self.calls += 1
        if isinstance(result, Exception):
            raise result
        return result


class RecordingSink(NotificationSink):
    def __init__(self):
        self.toasts = []
        self.badges = []

    def notify(self, severity, title, message, duration_ms):
        self.toasts.append((severity, title, message, duration_ms))

    def update_badge(self, count):
        self.badges.append(count)


class InlineExecutor:
    """Runs submitted work immediately on the caller's thread."""

    def submit(self, fn):
        future = Future()
        try:
            future.set_result(fn())
        except Exception as exc:
            future.set_exception(exc)
        return future


class ManualExecutor:
    """Hands out futures that the test resolves explicitly, in any order."""

    def __init__(self):
        self.pending = []

    def submit(self, fn):
        future = Future()
        self.pending.append(future)
        return future

    def resolve(self, index, result):
        self.pending[index].set_result(result)
