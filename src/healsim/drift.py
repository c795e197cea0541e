"""Background drift of running process metrics."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from healsim.logging import get_logger
from healsim.models import ProcessStatus

if TYPE_CHECKING:
    from healsim.store import EntityStore

logger = get_logger(__name__)

CPU_STEP = 5.0
MEMORY_STEP = 20.0
MIN_INTERVAL = 0.1


class DriftSimulator:
    """
    Perturbs the metrics of running processes on a fixed interval.

    Runs in a separate daemon thread owned by the entity store. Each tick
    applies a small symmetric random walk to cpu and memory of every
    running process and refreshes its heartbeat. Processes in any other
    status are left alone.
    """

    def __init__(self, store: EntityStore, interval: float = 2.0) -> None:
        """
        Initialize the DriftSimulator.

        Args:
            store: Store whose processes are perturbed.
            interval: Seconds between ticks. Default 2.0s.
        """
        self._store = store
        self._interval = max(MIN_INTERVAL, interval)
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._ticks = 0

    @property
    def interval(self) -> float:
        """Get the current tick interval."""
        return self._interval

    @interval.setter
    def interval(self, value: float) -> None:
        """Set the tick interval."""
        self._interval = max(MIN_INTERVAL, value)

    @property
    def is_running(self) -> bool:
        """Check if the drift thread is running."""
        return self._thread is not None and self._thread.is_alive()

    @property
    def ticks(self) -> int:
        """Number of completed ticks."""
        return self._ticks

    def start(self) -> None:
        """Start the drift thread."""
        if self.is_running:
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._tick_loop,
            daemon=True,
            name="DriftSimulator",
        )
        self._thread.start()
        logger.info("Drift simulator started (interval %.1fs)", self._interval)

    def stop(self, timeout: float | None = 5.0) -> None:
        """
        Stop the drift thread.

        Args:
            timeout: How long to wait for thread to stop (seconds).
        """
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
            logger.info("Drift simulator stopped after %d ticks", self._ticks)

    def _tick_loop(self) -> None:
        """Main loop running in the background thread."""
        # Wait first so a freshly initialized world is observed unchanged
        while not self._stop_event.wait(timeout=self._interval):
            try:
                self.tick()
            except Exception:
                logger.exception("Drift tick failed")

    def tick(self) -> int:
        """
        Apply one drift step.

        Returns:
            Number of processes perturbed.
        """
        store = self._store
        settings = store.settings
        rng = store.rng
        moved = 0

        with store.lock:
            now = store.now()
            for process in store.live_processes():
                if process.status is not ProcessStatus.RUNNING:
                    continue
                process.cpu = max(
                    settings.drift_cpu_floor,
                    min(settings.cpu_ceiling, process.cpu + rng.uniform(-CPU_STEP, CPU_STEP)),
                )
                process.memory = process.memory + rng.uniform(-MEMORY_STEP, MEMORY_STEP)
                store.clamp(process)
                process.heartbeat = now
                moved += 1

        self._ticks += 1
        return moved
