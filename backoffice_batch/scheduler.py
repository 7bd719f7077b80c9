"""
SweepScheduler -- In-process polling scheduler for the overdue sweep.

Contract:
    Calls ``OverdueSweeper.sweep()`` every ``interval_seconds`` on a daemon
    thread.  ``tick()`` runs one sweep synchronously (public for testing).

Invariants enforced:
    - Graceful shutdown: ``stop()`` signals the loop and waits for the
      current sweep to finish.
"""

from __future__ import annotations

import threading

from backoffice_batch.sweeper import OverdueSweeper
from backoffice_kernel.logging_config import get_logger

logger = get_logger("batch.scheduler")


class SweepScheduler:
    """In-process polling scheduler.

    Non-goals:
        - NOT a distributed scheduler (no leader election).  Running two
          is harmless because the sweep is idempotent.
    """

    def __init__(self, sweeper: OverdueSweeper, interval_seconds: int = 3600):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._sweeper = sweeper
        self._interval = interval_seconds
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._ticks = 0

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def tick(self) -> int:
        """Run one sweep; returns the number of documents flagged."""
        self._ticks += 1
        return self._sweeper.sweep()

    def start(self) -> None:
        """Start the scheduler in a background thread."""
        if self._thread is not None and self._thread.is_alive():
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop,
            name="overdue-sweep-scheduler",
            daemon=True,
        )
        self._thread.start()
        logger.info("sweep_scheduler_started", extra={"interval_seconds": self._interval})

    def stop(self, timeout: float = 30.0) -> None:
        """Signal stop and wait for the scheduler thread to finish."""
        self._stop_event.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        logger.info("sweep_scheduler_stopped", extra={"ticks": self._ticks})

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def ticks(self) -> int:
        return self._ticks

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            self.tick()
            self._stop_event.wait(timeout=self._interval)
