from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from iot_monitor.config import GatewayConfig
from iot_monitor.exceptions import MalformedPayload, TransportFailure
from iot_monitor.models.snapshot import HistoryPoint, SensorSnapshot


@dataclass
class FetchResult:
    snapshot: SensorSnapshot | None
    error: str | None = None
    kind: str | None = None  # transport, malformed

    @property
    def ok(self) -> bool:
        return self.snapshot is not None

    @classmethod
    def success(cls, snapshot: SensorSnapshot) -> "FetchResult":
        return cls(snapshot=snapshot)

    @classmethod
    def failure(cls, kind: str, error: str) -> "FetchResult":
        return cls(snapshot=None, error=error, kind=kind)


class GatewayClient:
    """Sensor gateway wrapper that never lets a failed poll escape."""

    TUNNEL_HEADERS = {"ngrok-skip-browser-warning": "true"}

    def __init__(self, cfg: GatewayConfig, log, session: Optional[requests.Session] = None):
        self.cfg = cfg
        self.log = log
        self.session = session or requests.Session()
        self.base_url = cfg.base_url.rstrip("/")

    # ------------------------------------------------------------------
    def _build_url(self, path: str) -> str:
        if not path.startswith("/"):
            path = "/" + path
        return f"{self.base_url}{path}"

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.cfg.skip_tunnel_warning:
            headers.update(self.TUNNEL_HEADERS)
        return headers

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = self._build_url(path)

        try:
            resp = self.session.get(
                url,
                params=params,
                headers=self._headers(),
                timeout=self.cfg.timeout,
            )
        except requests.RequestException as exc:
            raise TransportFailure(f"request to {path} failed: {exc}") from exc

        if resp.status_code != 200:
            raise TransportFailure(f"{path} returned HTTP {resp.status_code}")

        try:
            return resp.json()
        except ValueError as exc:
            raise MalformedPayload(f"{path} returned non-JSON payload") from exc

    # ------------------------------------------------------------------
    def fetch_latest(self) -> FetchResult:
        """Fetch the newest snapshot; failures come back as a result, not an exception."""
        path = self.cfg.latest_path
        try:
            snapshot = SensorSnapshot.from_payload(self._get(path))
        except TransportFailure as exc:
            self.log.warning("Gateway poll failed: %s", exc)
            return FetchResult.failure("transport", str(exc))
        except MalformedPayload as exc:
            self.log.warning("Gateway %s payload rejected: %s", path, exc)
            return FetchResult.failure("malformed", str(exc))

        if snapshot.transport_error:
            self.log.info("Gateway reported upstream error: %s", snapshot.transport_error)
        return FetchResult.success(snapshot)

    # ------------------------------------------------------------------
    def fetch_history(self, timeframe: str = "1h") -> List[HistoryPoint]:
        try:
            payload = self._get(self.cfg.history_path, params={"timeframe": timeframe})
        except (TransportFailure, MalformedPayload) as exc:
            self.log.warning("Gateway history request failed: %s", exc)
            return []

        if not isinstance(payload, list):
            self.log.warning("Gateway history response was not a list")
            return []

        points: List[HistoryPoint] = []
        for item in payload:
            point = HistoryPoint.from_payload(item)
            if point is not None:
                points.append(point)
        return points
