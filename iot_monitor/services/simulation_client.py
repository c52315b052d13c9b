# iot_monitor/services/simulation_client.py

from __future__ import annotations

from typing import Dict, List, Mapping

from iot_monitor.exceptions import ConfigError
from iot_monitor.models.snapshot import SensorSnapshot
from iot_monitor.services.gateway_client import FetchResult


FAILURE_MARKERS = {
    "!transport": "transport",
    "!malformed": "malformed",
}


class SimulationGatewayClient:
    """
    Stand-in for the gateway that replays scripted snapshots.

    A scenario is a ``[simulation:<name>]`` config section with ordered
    ``step.N`` entries::

        step.1 = alert_level=normal; system_message=All clear
        step.2 = !transport
        step.3 = alert_level=critical; system_message=Temperature high

    Each fetch returns the next step; once exhausted the last step repeats.
    """

    def __init__(self, scenario: str | None, scenarios: Mapping[str, Mapping[str, str]], log):
        self.scenario = scenario
        self.log = log
        if not scenario:
            raise ConfigError("No simulation scenario selected")
        if scenario not in scenarios:
            raise ConfigError(f"Unknown simulation scenario '{scenario}'")
        self.steps = self.parse_steps(scenarios[scenario])
        if not self.steps:
            raise ConfigError(f"Simulation scenario '{scenario}' has no steps")
        self._position = 0

    # --------------------------------------------------------------
    @staticmethod
    def parse_kv_list(raw: str) -> Dict[str, str]:
        out: Dict[str, str] = {}
        for item in raw.split(";"):
            if "=" in item:
                k, v = item.split("=", 1)
                out[k.strip()] = v.strip()
        return out

    @classmethod
    def parse_steps(cls, section: Mapping[str, str]) -> List[str]:
        numbered = []
        for key, value in section.items():
            if not key.startswith("step."):
                continue
            try:
                index = int(key.split(".", 1)[1])
            except ValueError as exc:
                raise ConfigError(f"Bad simulation step key '{key}'") from exc
            numbered.append((index, value.strip()))
        return [raw for _, raw in sorted(numbered)]

    # --------------------------------------------------------------
    def fetch_latest(self) -> FetchResult:
        raw = self.steps[min(self._position, len(self.steps) - 1)]
        self._position += 1

        kind = FAILURE_MARKERS.get(raw)
        if kind is not None:
            self.log.debug("[SIM-GATEWAY] step %d: simulated %s failure", self._position, kind)
            return FetchResult.failure(kind, f"simulated {kind} failure")

        snapshot = SensorSnapshot.from_payload(self.parse_kv_list(raw))

        self.log.debug(
            "[SIM-GATEWAY] step %d: level=%s message=%s",
            self._position,
            snapshot.alert_level,
            snapshot.system_message,
        )
        return FetchResult.success(snapshot)

