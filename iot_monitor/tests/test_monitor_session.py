import json
from types import SimpleNamespace

from iot_monitor.logging import StructuredLog
from iot_monitor.services.alert_log import AlertLog
from iot_monitor.services.alert_policy import MessageTransitionPolicy, ThresholdCooldownPolicy
from iot_monitor.services.monitor_session import MonitorSession
from iot_monitor.services.notification_manager import NotificationManager
from iot_monitor.logging import get_logger

from .fakes import FakeClock, RecordingSink, failed, ok


LOG = get_logger("session-test")


def _session(policy=None, **kwargs):
    sink = RecordingSink()
    clock = kwargs.pop("clock", None) or FakeClock()
    session = MonitorSession(
        policy or MessageTransitionPolicy(),
        LOG,
        notifier=NotificationManager([sink], LOG, duration_ms=4000),
        clock=clock,
        **kwargs,
    )
    return session, sink, clock


def test_unchanged_message_logs_exactly_once():
    session, sink, clock = _session()
    for seq in range(1, 21):
        session.apply(seq, ok("All clear", "normal"))
        clock.advance(5)

    assert len(session.alert_log) == 1
    assert len(sink.toasts) == 1
    assert sink.toasts[0] == ("info", "Status update", "All clear", 4000)


def test_emit_dispatches_toast_and_badge():
    session, sink, _ = _session()

    outcome = session.apply(1, ok("Overheat", "critical"))

    assert outcome.outcome == "ok"
    assert outcome.entry.severity == "critical"
    assert sink.toasts == [("critical", "Immediate action required", "Overheat", 4000)]
    assert sink.badges == [1]


def test_transport_failure_leaves_state_untouched():
    session, sink, _ = _session()
    session.apply(1, ok("M1", "warning", temperature=22.0))
    dedup_before = session.dedup
    entries_before = session.alert_log.entries()
    snapshot_before = session.snapshot

    outcome = session.apply(2, failed("transport"))

    assert outcome.outcome == "failed"
    assert session.dedup is dedup_before
    assert session.alert_log.entries() == entries_before
    assert session.snapshot is snapshot_before
    assert session.connection_status == "unreachable"
    assert session.consecutive_failures == 1

    # next cycle proceeds normally
    session.apply(3, ok("M1", "warning"))
    assert len(session.alert_log) == 1
    session.apply(4, ok("M2", "warning"))
    assert [e.message for e in session.alert_log.entries()] == ["M2", "M1"]
    assert session.connection_status == "ok"
    assert session.consecutive_failures == 0


def test_malformed_payload_treated_like_transport_failure():
    session, _, _ = _session()
    session.apply(1, ok("M1"))

    session.apply(2, failed("malformed"))
    session.apply(3, failed("transport"))

    assert session.consecutive_failures == 2
    assert len(session.alert_log) == 1
    assert session.dedup.last_message == "M1"


def test_upstream_error_is_visible_but_polling_continues():
    session, _, _ = _session()

    session.apply(1, ok(None, None, transport_error="sensor bus timeout"))
    assert session.connection_status == "upstream-error"
    assert session.last_error == "sensor bus timeout"
    assert len(session.alert_log) == 0

    session.apply(2, ok("Back online", "normal"))
    assert session.connection_status == "ok"
    assert session.last_error is None
    assert len(session.alert_log) == 1


def test_stale_result_updates_display_but_not_dedup():
    session, sink, _ = _session()

    session.apply(2, ok("fresh"))
    outcome = session.apply(1, ok("stale"))

    assert outcome.outcome == "stale"
    assert session.snapshot.system_message == "stale"  # last resolved wins display
    assert session.dedup.last_message == "fresh"
    assert [e.message for e in session.alert_log.entries()] == ["fresh"]
    assert len(sink.toasts) == 1


def test_results_after_close_are_discarded():
    session, sink, _ = _session()
    session.apply(1, ok("M1"))
    session.close()

    outcome = session.apply(2, ok("M2"))

    assert outcome.outcome == "discarded"
    assert session.snapshot.system_message == "M1"
    assert len(session.alert_log) == 1
    assert len(sink.toasts) == 1


def test_clear_log_keeps_dedup_state():
    session, sink, _ = _session()
    session.apply(1, ok("M1"))

    session.clear_log()

    assert session.alert_log.entries() == []
    assert sink.badges[-1] == 0
    session.apply(2, ok("M1"))
    assert session.alert_log.entries() == []  # still deduplicated


def test_mark_read_resets_badge():
    session, sink, _ = _session()
    session.apply(1, ok("M1"))
    session.apply(2, ok("M2"))
    assert sink.badges[-1] == 2

    session.mark_read()
    assert session.alert_log.unread_count == 0
    assert sink.badges[-1] == 0


def test_cooldown_policy_notifications_through_session():
    session, sink, clock = _session(ThresholdCooldownPolicy(cooldown_seconds=60))

    session.apply(1, ok("Overheat", "critical"))
    clock.advance(10)
    session.apply(2, ok("Overheat", "critical"))
    assert len(sink.toasts) == 1

    clock.advance(60)
    session.apply(3, ok("Overheat", "critical"))
    assert len(sink.toasts) == 2


def test_session_without_notifier_still_logs():
    session = MonitorSession(
        MessageTransitionPolicy(),
        SimpleNamespace(debug=lambda *a, **k: None, info=lambda *a, **k: None),
        alert_log=AlertLog(capacity=2),
        clock=FakeClock(),
    )
    for seq, msg in enumerate(["a", "b", "c"], start=1):
        session.apply(seq, ok(msg))

    assert [e.message for e in session.alert_log.entries()] == ["c", "b"]


def test_structured_log_records_each_cycle(tmp_path):
    path = tmp_path / "polls.jsonl"
    session, _, _ = _session(structured_log=StructuredLog(str(path), enabled=True))

    session.apply(1, ok("M1", "warning", temperature=21.5))
    session.apply(2, failed())

    lines = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
    assert [line["outcome"] for line in lines] == ["ok", "failed"]
    assert lines[0]["snapshot"]["temperature"] == 21.5
    assert lines[0]["alert"]["message"] == "M1"
    assert lines[1]["snapshot"] is None
    assert lines[1]["connection_status"] == "unreachable"
