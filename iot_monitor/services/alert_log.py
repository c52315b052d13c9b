from __future__ import annotations

from collections import deque
from typing import List

from iot_monitor.models.alert import AlertEntry


class AlertLog:
    """Bounded, newest-first ledger of emitted alerts for one session."""

    DEFAULT_CAPACITY = 200

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        self.capacity = max(1, int(capacity))
        # appendleft + maxlen drops the oldest entry from the right
        self._entries: deque[AlertEntry] = deque(maxlen=self.capacity)
        self._unread = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)

    def append(self, entry: AlertEntry) -> None:
        self._entries.appendleft(entry)
        self._unread = min(self._unread + 1, self.capacity)

    def entries(self) -> List[AlertEntry]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()
        self._unread = 0

    # Badge -----------------------------------------------------------
    @property
    def unread_count(self) -> int:
        return self._unread

    @property
    def has_unread(self) -> bool:
        return self._unread > 0

    def mark_read(self) -> None:
        self._unread = 0
