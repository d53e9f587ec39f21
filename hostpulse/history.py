"""Bounded in-memory history of host snapshots.

One collector thread appends, any number of request threads read. A single
lock guards both the append (with its implicit eviction) and the full copy a
reader takes, so a reader always sees the sequence either before or after an
append, never in between.
"""
import threading
import time
from collections import deque
from typing import List, Optional

from .sampler import Snapshot

# 5 hours at one sample per second
DEFAULT_CAPACITY = 300 * 60


class HistoryBuffer:
    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        capacity = int(capacity)
        if capacity < 1:
            raise ValueError(f"history capacity must be positive, got {capacity}")
        self._capacity = capacity
        # deque(maxlen) drops the oldest entries itself, O(1) per append
        self._dq: deque = deque(maxlen=capacity)
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        with self._lock:
            return len(self._dq)

    def append(self, snapshot: Snapshot) -> None:
        with self._lock:
            self._dq.append(snapshot)

    def snapshot(self) -> List[Snapshot]:
        """Return a copy of every held snapshot, oldest first."""
        with self._lock:
            return list(self._dq)

    def latest(self) -> Optional[Snapshot]:
        with self._lock:
            return self._dq[-1] if self._dq else None

    def window(self, seconds: float, now: Optional[float] = None) -> List[Snapshot]:
        """Return the snapshots taken in the last `seconds` seconds, oldest first."""
        now = time.time() if now is None else now
        cutoff = now - seconds
        with self._lock:
            items = list(self._dq)
        return [s for s in items if s.timestamp >= cutoff]

    def clear(self) -> None:
        with self._lock:
            self._dq.clear()
