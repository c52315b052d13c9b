import json

from iot_monitor.models.alert import AlertEntry
from iot_monitor.models.snapshot import HistoryPoint, SensorSnapshot
from iot_monitor.services.output_formatter import (
    emit_history,
    emit_human,
    emit_json,
    reading_indicators,
)


def test_indicators_flag_high_readings():
    snap = SensorSnapshot(temperature=28.0, humidity=55.0, motion=True, power=650.0)
    assert reading_indicators(snap) == [
        "temperature high: cooling needed",
        "humidity high: dehumidifier needed",
        "motion detected",
        "power draw high",
    ]


def test_indicators_skip_absent_sensors():
    assert reading_indicators(SensorSnapshot()) == []
    assert reading_indicators(SensorSnapshot(temperature=22.0, humidity=40.0, motion=False, power=120.0)) == []


def test_emit_human_shows_placeholders(capsys):
    emit_human(SensorSnapshot(system_mode="ECO"), "ok")
    out = capsys.readouterr().out
    assert "Mode: ECO" in out
    assert "Temperature=--" in out
    assert "People=--" in out


def test_emit_human_lists_alerts(capsys):
    alerts = [AlertEntry(id=2, severity="critical", message="Overheat", timestamp="10:00:05")]
    emit_human(None, "unreachable", alerts, error="HTTP 502")
    out = capsys.readouterr().out
    assert "No snapshot received yet." in out
    assert "Error: HTTP 502" in out
    assert "CRITICAL" in out and "Overheat" in out


def test_emit_json_payload(capsys):
    alerts = [AlertEntry(id=2, severity="info", message="All clear", timestamp="10:00:05")]
    emit_json(SensorSnapshot(power=700.0), "upstream-error", alerts, error="bus timeout")

    payload = json.loads(capsys.readouterr().out)
    assert payload["status"] == "upstream-error"
    assert payload["snapshot"]["power"] == 700.0
    assert payload["indicators"] == ["power draw high"]
    assert payload["alerts"][0]["message"] == "All clear"


def test_emit_history(capsys):
    emit_history([HistoryPoint("2024-06-01T10:00:00Z", 24.0, None, True)])
    out = capsys.readouterr().out
    assert "T=24.0°C" in out and "H=--" in out and "motion=detected" in out

    emit_history([])
    assert "No history data." in capsys.readouterr().out
