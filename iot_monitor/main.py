# iot_monitor/main.py

import logging
import sys

from .cli import build_parser
from .config import AppConfig, Config
from .exceptions import ConfigError
from .logging import ConsoleLog, StructuredLog

from .services.alert_log import AlertLog
from .services.alert_policy import build_policy
from .services.gateway_client import GatewayClient
from .services.monitor_session import MonitorSession
from .services.notification_manager import NotificationManager
from .services.notifiers.console import ConsoleNotifier
from .services.notifiers.pushover import PushoverNotifier
from .services.output_formatter import emit_history, emit_human, emit_json
from .services.poller import Poller
from .services.simulation_client import SimulationGatewayClient


def build_notifier(app_cfg: AppConfig, log, *, echo: bool) -> NotificationManager:
    sinks = [ConsoleNotifier(log, echo=echo)]
    pushover = PushoverNotifier(app_cfg.pushover, log)
    if pushover.enabled:
        sinks.append(pushover)
    return NotificationManager(sinks, log, duration_ms=app_cfg.alerts.toast_duration_ms)


def build_session(app_cfg: AppConfig, log, notifier, structured_logger) -> MonitorSession:
    return MonitorSession(
        build_policy(app_cfg.alerts),
        log,
        notifier=notifier,
        alert_log=AlertLog(app_cfg.alerts.log_capacity),
        structured_log=structured_logger,
    )


def print_status(session: MonitorSession, as_json: bool) -> None:
    emit = emit_json if as_json else emit_human
    emit(
        session.snapshot,
        session.connection_status,
        session.alert_log.entries(),
        error=session.last_error,
    )


def run_watch(poller: Poller, log, max_cycles=None) -> None:
    try:
        poller.run(max_cycles=max_cycles)
    except KeyboardInterrupt:
        log.info("Interrupted; stopping poller.")
        poller.stop()


def main():
    parser = build_parser()
    args = parser.parse_args()

    try:
        app_cfg = Config.load(args.config)
    except (ConfigError, FileNotFoundError) as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    console_logger = ConsoleLog(
        level="DEBUG" if args.debug else app_cfg.logging.console_level,
        quiet=args.quiet or app_cfg.logging.console_quiet,
        debug_modules=app_cfg.logging.debug_modules,
    )
    log = console_logger.setup()
    structured_logger = StructuredLog(
        app_cfg.logging.structured_path,
        app_cfg.logging.structured_enabled,
    )
    if args.debug:
        logging.getLogger("urllib3").setLevel(logging.INFO)

    notifier = build_notifier(app_cfg, log, echo=not args.quiet)

    if args.command == "notify-test":
        notifier.send_test_notification(args.severity)
        return 0

    if args.command == "simulate":
        scenario = getattr(args, "scenario", None) or app_cfg.simulation.scenario
        try:
            client = SimulationGatewayClient(scenario, app_cfg.simulation.scenarios, log)
        except ConfigError as exc:
            log.error("%s", exc)
            return 2
        session = build_session(app_cfg, log, notifier, structured_logger)
        # Scripted steps are consumed in order, so fetch one at a time.
        poller = Poller(
            client.fetch_latest,
            session,
            log,
            interval_seconds=0,
            max_in_flight=1,
        )
        run_watch(poller, log, max_cycles=len(client.steps))
        if not args.quiet:
            print_status(session, args.json)
        return 0

    client = GatewayClient(app_cfg.gateway, log)

    if args.command == "history":
        points = client.fetch_history(args.timeframe)
        if not args.quiet:
            emit_history(points, as_json=args.json)
        return 0 if points else 1

    session = build_session(app_cfg, log, notifier, structured_logger)

    if args.command == "once":
        poller = Poller(client.fetch_latest, session, log, max_in_flight=1)
        poller.poll_once(timeout=app_cfg.gateway.timeout + 1.0)
        poller.stop()
        if not args.quiet:
            print_status(session, args.json)
        return 0 if session.connection_status == "ok" else 1

    if args.command == "watch":
        interval = args.interval if args.interval is not None else app_cfg.polling.interval_seconds
        if interval <= 0:
            log.error("Polling interval must be positive (got %s)", interval)
            return 2
        poller = Poller(
            client.fetch_latest,
            session,
            log,
            interval_seconds=interval,
            max_in_flight=app_cfg.polling.max_in_flight,
        )
        run_watch(poller, log, max_cycles=args.cycles)
        if not args.quiet:
            print_status(session, args.json)
        return 0

    raise ValueError(f"Unsupported command: {args.command}")


if __name__ == "__main__":
    sys.exit(main())
