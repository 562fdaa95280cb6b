from __future__ import annotations

import threading
import time
from typing import Callable, Optional


class WriteClock:
    """Commit-time source for ``written_at`` (epoch milliseconds).

    Values are strictly increasing within the process even if the wall
    clock stalls or steps backwards.
    """

    def __init__(self, source: Optional[Callable[[], int]] = None):
        self._source = source or (lambda: time.time_ns() // 1_000_000)
        self._last = 0
        self._lock = threading.Lock()

    def now(self) -> int:
        with self._lock:
            value = max(int(self._source()), self._last + 1)
            self._last = value
            return value
