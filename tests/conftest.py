"""Shared fixtures for healsim tests."""

import random

import pytest

from healsim.config import SimulatorSettings
from healsim.engine import SimulationEngine
from healsim.models import Process, ProcessStatus, SystemFile
from healsim.store import EntityStore


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def settings() -> SimulatorSettings:
    """Default settings, isolated from the environment and any .env file."""
    return SimulatorSettings(_env_file=None)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(settings, clock) -> EntityStore:
    """An initialized store with drift disabled."""
    store = EntityStore(settings, rng=random.Random(42), clock=clock)
    store.initialize(start_drift=False)
    return store


@pytest.fixture
def engine(settings, clock):
    """A started engine with drift disabled."""
    engine = SimulationEngine(settings, rng=random.Random(7), clock=clock, start_drift=False)
    engine.start()
    yield engine
    engine.stop()


def make_process(pid: int = 1, cpu: float = 10.0, memory: float = 100.0, status=ProcessStatus.RUNNING):
    return Process(pid=pid, name=f"proc{pid}", memory=memory, cpu=cpu, heartbeat=0.0, status=status)


def make_file(file_id: str = "f1", corrupted: bool = False) -> SystemFile:
    return SystemFile(
        id=file_id,
        name=f"{file_id}.dat",
        path=f"/tmp/{file_id}.dat",
        size=1024,
        checksum="0" * 32,
        corrupted=corrupted,
        last_modified=0.0,
    )
