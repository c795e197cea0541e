"""Engine facade: the single entry point callers use to drive the simulation."""

import random
import time
from collections.abc import Callable, Mapping
from typing import Any

from healsim.config import SimulatorSettings, get_settings
from healsim.healer import Healer
from healsim.injector import FaultInjector
from healsim.logging import get_logger
from healsim.models import (
    Fault,
    HealResult,
    LogEntry,
    Process,
    SystemFile,
    SystemHealth,
    SystemState,
)
from healsim.schemas import FileUpdate, LogCreate, ProcessUpdate
from healsim.store import EntityStore

logger = get_logger(__name__)


class SimulationEngine:
    """
    Owns the entity store and the two mutators acting on it.

    Payloads coming from outside (partial updates, log entries) are
    validated here with pydantic; a ``pydantic.ValidationError`` is
    raised before the store is touched.

    Usage::

        with SimulationEngine() as engine:
            faults = engine.inject_faults()
            engine.heal_faults()
    """

    def __init__(
        self,
        settings: SimulatorSettings | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.time,
        start_drift: bool = True,
    ) -> None:
        """
        Initialize the SimulationEngine.

        Args:
            settings: Simulation constants. Defaults to the cached settings.
            rng: Random source. Seed it for reproducible runs.
            clock: Returns the current time in seconds.
            start_drift: Whether ``start`` launches the drift thread.
        """
        self._settings = settings or get_settings()
        self._store = EntityStore(self._settings, rng=rng, clock=clock)
        self._injector = FaultInjector(self._store)
        self._healer = Healer(self._store)
        self._start_drift = start_drift

    @property
    def store(self) -> EntityStore:
        return self._store

    @property
    def settings(self) -> SimulatorSettings:
        return self._settings

    def start(self) -> None:
        """Populate the world (once) and start background drift."""
        self._store.initialize(start_drift=self._start_drift)
        logger.info("Simulation engine started")

    def stop(self) -> None:
        """Stop background drift."""
        self._store.shutdown()
        logger.info("Simulation engine stopped")

    def __enter__(self) -> "SimulationEngine":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    # Reads

    def get_processes(self) -> list[Process]:
        return self._store.get_processes()

    def get_files(self) -> list[SystemFile]:
        return self._store.get_files()

    def get_logs(self) -> list[LogEntry]:
        return self._store.get_logs()

    def get_health(self) -> SystemHealth:
        return self._store.get_health()

    def get_state(self) -> SystemState:
        return self._store.snapshot()

    # Mutations

    def update_process(
        self, pid: int, updates: ProcessUpdate | Mapping[str, Any]
    ) -> Process | None:
        """Apply a partial update to a process; None if the pid is unknown."""
        if not isinstance(updates, ProcessUpdate):
            updates = ProcessUpdate.model_validate(updates)
        return self._store.update_process(pid, updates)

    def update_file(
        self, file_id: str, updates: FileUpdate | Mapping[str, Any]
    ) -> SystemFile | None:
        """Apply a partial update to a file; None if the id is unknown."""
        if not isinstance(updates, FileUpdate):
            updates = FileUpdate.model_validate(updates)
        return self._store.update_file(file_id, updates)

    def add_log(self, payload: LogCreate | Mapping[str, Any]) -> LogEntry:
        """Append a caller-supplied log entry."""
        if not isinstance(payload, LogCreate):
            payload = LogCreate.model_validate(payload)
        return self._store.add_log(payload.type, payload.event, payload.description)

    def inject_faults(self) -> list[Fault]:
        return self._injector.inject()

    def heal_faults(self) -> list[HealResult]:
        return self._healer.heal_all()

    def repair_file(self, file_id: str) -> HealResult:
        return self._healer.repair_file(file_id)
