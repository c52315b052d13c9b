# iot_monitor/services/poller.py

from __future__ import annotations

import queue
import time
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Callable, Dict, List, Optional

from iot_monitor.services.gateway_client import FetchResult
from iot_monitor.services.monitor_session import CycleOutcome, MonitorSession


class Poller:
    """
    Fixed-period polling loop for one monitor session.

    Each tick submits a fetch to a small I/O executor, so a slow gateway
    never delays the next tick. Resolved fetches are queued and folded into
    the session on the loop's own thread, one at a time and in the order
    they resolved. At most ``max_in_flight`` requests are outstanding; ticks
    beyond that are skipped.
    """

    def __init__(
        self,
        fetch: Callable[[], FetchResult],
        session: MonitorSession,
        log,
        *,
        interval_seconds: float = 5.0,
        max_in_flight: int = 2,
        executor: Optional[Executor] = None,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        self.fetch = fetch
        self.session = session
        self.log = log
        self.interval = max(0.0, float(interval_seconds))
        self.max_in_flight = max(1, int(max_in_flight))
        self._own_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=self.max_in_flight,
            thread_name_prefix="gateway-poll",
        )
        self._monotonic = monotonic
        self._in_flight: Dict[Future, int] = {}
        self._completed: "queue.Queue[Future]" = queue.Queue()
        self._sequence = 0
        self._running = False
        self._stopped = False
        self.skipped_ticks = 0

    # ------------------------------------------------------------------
    @property
    def issued(self) -> int:
        return self._sequence

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    @property
    def running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------
    def tick(self) -> bool:
        """Issue one fetch unless the in-flight cap is reached."""
        if self._stopped:
            return False
        if len(self._in_flight) >= self.max_in_flight:
            self.skipped_ticks += 1
            self.log.debug(
                "Skipping poll tick; %d request(s) still outstanding",
                len(self._in_flight),
            )
            return False

        self._sequence += 1
        future = self._executor.submit(self.fetch)
        self._in_flight[future] = self._sequence
        future.add_done_callback(self._completed.put)
        return True

    def drain(self, timeout: float = 0.0) -> List[CycleOutcome]:
        """
        Apply every resolved fetch to the session.

        Blocks up to ``timeout`` seconds for the first one; anything else
        already resolved is applied without waiting.
        """
        outcomes: List[CycleOutcome] = []
        try:
            if timeout > 0:
                future = self._completed.get(timeout=timeout)
            else:
                future = self._completed.get_nowait()
        except queue.Empty:
            return outcomes

        while True:
            outcomes.append(self._apply(future))
            try:
                future = self._completed.get_nowait()
            except queue.Empty:
                return outcomes

    def _apply(self, future: Future) -> CycleOutcome:
        sequence = self._in_flight.pop(future)
        if future.cancelled():
            result = FetchResult.failure("transport", "request cancelled")
        else:
            exc = future.exception()
            if exc is not None:
                self.log.warning("Poll #%d raised unexpectedly: %s", sequence, exc)
                result = FetchResult.failure("transport", str(exc))
            else:
                result = future.result()
        return self.session.apply(sequence, result)

    # ------------------------------------------------------------------
    def poll_once(self, timeout: float = 30.0) -> Optional[CycleOutcome]:
        """Single fetch-and-apply cycle, waiting for its result."""
        if not self.tick():
            return None
        deadline = self._monotonic() + timeout
        while self._in_flight:
            remaining = deadline - self._monotonic()
            if remaining <= 0:
                self.log.warning("Gateway did not answer within %.1fs", timeout)
                return None
            for outcome in self.drain(timeout=remaining):
                if outcome.sequence == self._sequence:
                    return outcome
        return None

    def run(self, max_cycles: Optional[int] = None) -> None:
        """
        Tick every ``interval`` seconds until ``stop`` is called or
        ``max_cycles`` fetches have been issued and resolved.
        """
        self._running = True
        next_tick = self._monotonic()
        self.log.info("Polling gateway every %.1fs", self.interval)
        try:
            while self._running:
                now = self._monotonic()
                if now >= next_tick:
                    if max_cycles is None or self._sequence < max_cycles:
                        self.tick()
                    next_tick += self.interval
                    if next_tick < now:
                        # Fell behind (e.g. suspended); realign instead of bursting.
                        next_tick = now + self.interval

                if max_cycles is not None and self._sequence >= max_cycles and not self._in_flight:
                    break

                remaining = next_tick - self._monotonic()
                if remaining <= 0 and self._in_flight:
                    # Nothing to issue yet; wait for an outstanding result.
                    remaining = 0.05
                self.drain(timeout=max(0.0, remaining))
        finally:
            self.stop()

    def stop(self) -> None:
        """Stop future ticks; a cycle being applied is allowed to finish."""
        self._running = False
        if self._stopped:
            return
        self._stopped = True
        self.session.close()
        if self._own_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)
        self.log.info("Polling stopped after %d request(s)", self._sequence)
