"""Background thread that runs the retention sweep on a fixed interval."""

from __future__ import annotations

import logging
from threading import Event, Thread

from .sweeper import RetentionSweeper, SweepReport

logger = logging.getLogger(__name__)


class RetentionScheduler:
    """Runs :meth:`RetentionSweeper.sweep` on a single daemon thread.

    One thread means one sweep at a time. A cycle that raises is logged and the
    next cycle runs as scheduled.
    """

    def __init__(
        self,
        sweeper: RetentionSweeper,
        *,
        interval_seconds: float,
        initial_delay_seconds: float = 0.0,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._sweeper = sweeper
        self._interval = interval_seconds
        self._initial_delay = max(initial_delay_seconds, 0.0)
        self._stop = Event()
        self._thread: Thread | None = None
        self.last_report: SweepReport | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = Thread(target=self._run, name="retention-sweeper", daemon=True)
        self._thread.start()
        logger.info("retention sweep scheduled every %ss", self._interval)

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def run_once(self) -> SweepReport | None:
        try:
            self.last_report = self._sweeper.sweep()
        except Exception:
            logger.exception("error during deleted accounts cleanup")
            return None
        return self.last_report

    def _run(self) -> None:
        if self._stop.wait(self._initial_delay):
            return
        while not self._stop.is_set():
            self.run_once()
            if self._stop.wait(self._interval):
                break
