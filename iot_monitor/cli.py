# iot_monitor/cli.py
import argparse

def build_parser():
    parser = argparse.ArgumentParser(
        prog="iot-monitor",
        description="IoT gateway telemetry and alert monitor"
    )

    parser.add_argument(
        "--config",
        default="iot_monitor.conf",
        help="Path to configuration file"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable verbose debug logging"
    )

    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress stdout output"
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Emit JSON instead of human-readable text"
    )

    sub = parser.add_subparsers(dest="command", required=True)

    # Continuous polling
    cmd_watch = sub.add_parser("watch", help="Poll the gateway until interrupted")
    cmd_watch.add_argument(
        "--interval",
        type=float,
        help="Override [polling] interval_seconds",
    )
    cmd_watch.add_argument(
        "--cycles",
        type=int,
        help="Stop after this many polls",
    )

    # One-shot poll
    sub.add_parser("once", help="Fetch one snapshot and print it")

    # Scripted gateway
    cmd_sim = sub.add_parser(
        "simulate",
        help="Run the alert pipeline against a scripted gateway scenario",
    )
    cmd_sim.add_argument(
        "--scenario",
        help="Override [simulation] scenario name",
    )

    # History
    cmd_history = sub.add_parser("history", help="Print recorded sensor history")
    cmd_history.add_argument(
        "--timeframe",
        default="1h",
        help="History window understood by the gateway (e.g. 1h, 24h)",
    )

    # Notification test helper
    cmd_notify = sub.add_parser(
        "notify-test",
        help="Send a test notification to every configured sink",
    )
    cmd_notify.add_argument(
        "--severity",
        choices=("info", "warning", "critical"),
        default="info",
        help="Severity tier to exercise",
    )

    return parser
