import logging
import threading
import time
from typing import Optional

from .history import HistoryBuffer
from .sampler import MetricSampler, Snapshot

logger = logging.getLogger(__name__)


class Collector:
    """Periodically samples the host and appends the result to a history buffer.

    The collector is the buffer's only writer. `start()` runs the loop on a
    daemon thread for the life of the process; `stop()` exists for tests and
    embedding and is checked once per tick.
    """

    def __init__(
        self,
        history: HistoryBuffer,
        sampler: MetricSampler,
        interval: float = 1.0,
    ):
        interval = float(interval)
        if interval <= 0:
            raise ValueError(f"sample interval must be positive, got {interval}")
        self.history = history
        self.sampler = sampler
        self.interval = interval
        self.ticks = 0
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def tick(self) -> Snapshot:
        snapshot = self.sampler.sample()
        self.history.append(snapshot)
        self.ticks += 1
        return snapshot

    def run(self) -> None:
        # A tick that overruns the period starts the next one right away
        next_tick = time.monotonic()
        while not self._stop.is_set():
            self.tick()
            next_tick += self.interval
            delay = next_tick - time.monotonic()
            if delay < 0:
                next_tick = time.monotonic()
                delay = 0
            self._stop.wait(delay)

    def start(self) -> None:
        if self.running:
            if self._stop.is_set():
                # The old loop has not observed the stop event yet
                raise RuntimeError("previous collector thread is still stopping")
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self.run, daemon=True, name="hostpulse-collector"
        )
        self._thread.start()
        logger.info(
            f"Collector started: interval={self.interval}s, capacity={self.history.capacity}"
        )

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is None:
            return
        self._thread.join(timeout)
        if self._thread.is_alive():
            logger.warning("Collector thread still busy after stop timeout")
            return
        self._thread = None
        logger.info(f"Collector stopped after {self.ticks} ticks")
