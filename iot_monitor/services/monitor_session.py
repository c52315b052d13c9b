# iot_monitor/services/monitor_session.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from iot_monitor.logging import PollLogEntry, StructuredLog
from iot_monitor.models.alert import AlertEntry
from iot_monitor.models.snapshot import SensorSnapshot
from iot_monitor.services.alert_log import AlertLog
from iot_monitor.services.alert_policy import AlertPolicy, DedupState
from iot_monitor.services.gateway_client import FetchResult
from iot_monitor.services.notification_manager import NotificationManager


STATUS_CONNECTING = "connecting"
STATUS_OK = "ok"
STATUS_UPSTREAM_ERROR = "upstream-error"
STATUS_UNREACHABLE = "unreachable"


@dataclass
class CycleOutcome:
    sequence: int
    outcome: str  # ok, failed, stale, discarded
    entry: Optional[AlertEntry] = None


class MonitorSession:
    """
    Everything one monitoring session remembers between poll cycles:
    the alert log, the dedup state, the last displayed snapshot and the
    connection status.

    Results must be handed in from a single thread; the poller guarantees
    that ``apply`` is never re-entered.
    """

    def __init__(
        self,
        policy: AlertPolicy,
        log,
        *,
        notifier: NotificationManager | None = None,
        alert_log: AlertLog | None = None,
        structured_log: StructuredLog | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.policy = policy
        self.log = log
        self.notifier = notifier
        self.alert_log = alert_log or AlertLog()
        self.structured_log = structured_log
        self.clock = clock

        self.dedup = DedupState()
        self.snapshot: SensorSnapshot | None = None
        self.last_error: str | None = None
        self.consecutive_failures = 0
        self._status = STATUS_CONNECTING
        self._last_classified_seq = 0
        self._closed = False

    # ------------------------------------------------------------------
    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def connection_status(self) -> str:
        return self._status

    def close(self) -> None:
        """Tear down; results that arrive afterwards are dropped."""
        if not self._closed:
            self.log.debug("Monitor session closed with %d logged alert(s)", len(self.alert_log))
        self._closed = True

    # ------------------------------------------------------------------
    def apply(self, sequence: int, result: FetchResult) -> CycleOutcome:
        """Fold one resolved fetch into the session state."""
        if self._closed:
            self.log.debug("Discarding poll #%d result after session teardown", sequence)
            return CycleOutcome(sequence, "discarded")

        now = self.clock()

        if not result.ok:
            self.consecutive_failures += 1
            self.last_error = result.error
            self._status = STATUS_UNREACHABLE
            self.log.debug(
                "Poll #%d failed (%s, %d in a row); keeping last snapshot",
                sequence,
                result.kind,
                self.consecutive_failures,
            )
            outcome = CycleOutcome(sequence, "failed")
            self._record(now, outcome, result.error)
            return outcome

        snapshot = result.snapshot
        self.consecutive_failures = 0
        self.snapshot = snapshot
        if snapshot.transport_error:
            self.last_error = snapshot.transport_error
            self._status = STATUS_UPSTREAM_ERROR
        else:
            self.last_error = None
            self._status = STATUS_OK

        if sequence <= self._last_classified_seq:
            # An older request resolved late: display it, but never let it
            # rewind the dedup slot past a fresher message.
            self.log.debug(
                "Poll #%d resolved after #%d; skipping alert classification",
                sequence,
                self._last_classified_seq,
            )
            outcome = CycleOutcome(sequence, "stale")
            self._record(now, outcome, None)
            return outcome

        self._last_classified_seq = sequence
        decision = self.policy.evaluate(snapshot, self.dedup, now)
        entry = None
        if decision.emit:
            entry = decision.entry
            self.alert_log.append(entry)
            self.dedup = decision.state
            self.log.info("New %s alert: %s", entry.severity, entry.message)
            if self.notifier is not None:
                self.notifier.dispatch(entry, self.alert_log.unread_count)
        else:
            self.log.debug("Poll #%d produced no alert (%s)", sequence, decision.reason)

        outcome = CycleOutcome(sequence, "ok", entry)
        self._record(now, outcome, snapshot.transport_error)
        return outcome

    # ------------------------------------------------------------------
    def clear_log(self) -> None:
        """User action: empty the alert log. Dedup state is left as is."""
        self.alert_log.clear()
        if self.notifier is not None:
            self.notifier.update_badge(0)

    def mark_read(self) -> None:
        self.alert_log.mark_read()
        if self.notifier is not None:
            self.notifier.update_badge(0)

    # ------------------------------------------------------------------
    def _record(self, now: datetime, outcome: CycleOutcome, error: str | None) -> None:
        if self.structured_log is None or not self.structured_log.enabled:
            return
        self.structured_log.write(
            PollLogEntry(
                timestamp=now.isoformat(),
                sequence=outcome.sequence,
                outcome=outcome.outcome,
                connection_status=self._status,
                snapshot=self.snapshot if outcome.outcome != "failed" else None,
                alert=outcome.entry,
                error=error,
            )
        )
