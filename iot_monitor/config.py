# iot_monitor/config.py
from dataclasses import dataclass, field
from pathlib import Path
import configparser

from iot_monitor.exceptions import ConfigError


ALERT_POLICIES = ("transition", "threshold")
SEVERITY_NAMES = ("info", "warning", "critical")


@dataclass
class GatewayConfig:
    base_url: str
    latest_path: str = "/latest"
    history_path: str = "/history"
    timeout: float = 5.0
    skip_tunnel_warning: bool = True


@dataclass
class PollingConfig:
    interval_seconds: float = 5.0
    max_in_flight: int = 2


@dataclass
class AlertConfig:
    policy: str = "transition"
    cooldown_seconds: float = 60.0
    log_capacity: int = 200
    toast_duration_ms: int = 5000


@dataclass
class PushoverConfig:
    token: str | None = None
    user: str | None = None
    enabled: bool = False
    min_severity: str = "warning"


@dataclass
class SimulationConfig:
    scenario: str | None = None
    scenarios: dict[str, dict[str, str]] = field(default_factory=dict)


@dataclass
class LoggingConfig:
    console_level: str = "INFO"
    console_quiet: bool = False
    debug_modules: list[str] = field(default_factory=list)
    structured_enabled: bool = False
    structured_path: str | None = None


@dataclass
class AppConfig:
    gateway: GatewayConfig
    polling: PollingConfig
    alerts: AlertConfig
    pushover: PushoverConfig
    simulation: SimulationConfig
    logging: LoggingConfig


class Config:
    def __init__(self, path: str):
        self.path = Path(path)
        # Messages such as "Humidity above 50%" must survive verbatim.
        self.parser = configparser.ConfigParser(inline_comment_prefixes=("#",), interpolation=None)
        try:
            read = self.parser.read(self.path)
        except configparser.Error as exc:
            raise ConfigError(f"Could not parse {self.path}: {exc}") from exc
        if not read:
            raise FileNotFoundError(f"Config file not found: {self.path}")

    @classmethod
    def load(cls, path: str) -> AppConfig:
        cfg = cls(path)

        p = cfg.parser

        def _as_bool(value: str) -> bool:
            return value.strip().lower() == "true"

        def _number(section: str, key: str, raw: str, kind=float):
            try:
                return kind(raw.strip())
            except ValueError as exc:
                raise ConfigError(f"[{section}] {key} is not a valid number: {raw!r}") from exc

        # --- Gateway ---
        if "gateway" not in p:
            raise ConfigError("[gateway] section missing from config")
        gw_sec = p["gateway"]
        base_url = (gw_sec.get("base_url") or "").strip()
        if not base_url:
            raise ConfigError("[gateway] base_url is required")

        gateway_kwargs = {"base_url": base_url}
        if "latest_path" in gw_sec:
            gateway_kwargs["latest_path"] = gw_sec["latest_path"].strip()
        if "history_path" in gw_sec:
            gateway_kwargs["history_path"] = gw_sec["history_path"].strip()
        if "timeout" in gw_sec:
            gateway_kwargs["timeout"] = _number("gateway", "timeout", gw_sec["timeout"])
        if "skip_tunnel_warning" in gw_sec:
            gateway_kwargs["skip_tunnel_warning"] = _as_bool(gw_sec["skip_tunnel_warning"])
        gateway_cfg = GatewayConfig(**gateway_kwargs)

        # --- Polling ---
        polling_kwargs = {}
        if "polling" in p:
            poll_sec = p["polling"]
            if "interval_seconds" in poll_sec:
                polling_kwargs["interval_seconds"] = _number(
                    "polling", "interval_seconds", poll_sec["interval_seconds"]
                )
            if "max_in_flight" in poll_sec:
                polling_kwargs["max_in_flight"] = _number(
                    "polling", "max_in_flight", poll_sec["max_in_flight"], int
                )
        polling_cfg = PollingConfig(**polling_kwargs)
        if polling_cfg.interval_seconds <= 0:
            raise ConfigError("[polling] interval_seconds must be positive")
        if polling_cfg.max_in_flight < 1:
            raise ConfigError("[polling] max_in_flight must be at least 1")

        # --- Alerts ---
        alert_kwargs = {}
        if "alerts" in p:
            alert_sec = p["alerts"]
            if "policy" in alert_sec:
                alert_kwargs["policy"] = alert_sec["policy"].strip().lower()
            if "cooldown_seconds" in alert_sec:
                alert_kwargs["cooldown_seconds"] = _number(
                    "alerts", "cooldown_seconds", alert_sec["cooldown_seconds"]
                )
            if "log_capacity" in alert_sec:
                alert_kwargs["log_capacity"] = _number(
                    "alerts", "log_capacity", alert_sec["log_capacity"], int
                )
            if "toast_duration_ms" in alert_sec:
                alert_kwargs["toast_duration_ms"] = _number(
                    "alerts", "toast_duration_ms", alert_sec["toast_duration_ms"], int
                )
        alert_cfg = AlertConfig(**alert_kwargs)
        if alert_cfg.policy not in ALERT_POLICIES:
            raise ConfigError(
                f"[alerts] policy must be one of {', '.join(ALERT_POLICIES)} (got {alert_cfg.policy!r})"
            )
        if alert_cfg.log_capacity < 1:
            raise ConfigError("[alerts] log_capacity must be at least 1")

        # --- Pushover ---
        pushover_kwargs = {}
        if "pushover" in p:
            pushover_sec = p["pushover"]
            if "token" in pushover_sec:
                pushover_kwargs["token"] = pushover_sec["token"]
            if "user" in pushover_sec:
                pushover_kwargs["user"] = pushover_sec["user"]
            if "enabled" in pushover_sec:
                pushover_kwargs["enabled"] = _as_bool(pushover_sec["enabled"])
            if "min_severity" in pushover_sec:
                pushover_kwargs["min_severity"] = pushover_sec["min_severity"].strip().lower()
        pushover_cfg = PushoverConfig(**pushover_kwargs)
        if pushover_cfg.min_severity not in SEVERITY_NAMES:
            raise ConfigError(f"[pushover] unknown min_severity {pushover_cfg.min_severity!r}")

        # --- Simulation ---
        sim_scenario: str | None = None
        if "simulation" in p and "scenario" in p["simulation"]:
            sim_scenario = p["simulation"]["scenario"].strip() or None

        sim_scenarios: dict[str, dict[str, str]] = {}
        for section in p.sections():
            if not section.startswith("simulation:"):
                continue
            scenario_name = section.split(":", 1)[1].strip()
            if not scenario_name:
                continue
            sim_scenarios[scenario_name] = dict(p[section])

        simulation_cfg = SimulationConfig(scenario=sim_scenario, scenarios=sim_scenarios)

        # --- Logging ---
        logging_kwargs = {}
        if "logging" in p:
            logging_sec = p["logging"]
            if "console_level" in logging_sec:
                logging_kwargs["console_level"] = logging_sec["console_level"]
            if "console_quiet" in logging_sec:
                logging_kwargs["console_quiet"] = _as_bool(logging_sec["console_quiet"])
            if "debug_modules" in logging_sec:
                raw = logging_sec["debug_modules"]
                logging_kwargs["debug_modules"] = [x.strip() for x in raw.split(",") if x.strip()]
            if "structured_enabled" in logging_sec:
                logging_kwargs["structured_enabled"] = _as_bool(logging_sec["structured_enabled"])
            if "structured_path" in logging_sec:
                logging_kwargs["structured_path"] = logging_sec["structured_path"]
        logging_cfg = LoggingConfig(**logging_kwargs)

        return AppConfig(
            gateway=gateway_cfg,
            polling=polling_cfg,
            alerts=alert_cfg,
            pushover=pushover_cfg,
            simulation=simulation_cfg,
            logging=logging_cfg,
        )
