"""Tests for the DriftSimulator."""

import time

from healsim.drift import DriftSimulator
from healsim.models import ProcessStatus
from healsim.schemas import ProcessUpdate


class TestDriftTick:
    def test_tick_moves_running_processes(self, store, clock):
        before = {p.pid: p for p in store.get_processes()}
        clock.advance(5)

        moved = store.drift.tick()

        assert moved == 6
        for process in store.get_processes():
            assert process.heartbeat == clock.now
            assert abs(process.cpu - before[process.pid].cpu) <= 5.0
            assert abs(process.memory - before[process.pid].memory) <= 20.0

    def test_tick_leaves_faulted_processes_alone(self, store, clock):
        store.update_process(1001, ProcessUpdate(status=ProcessStatus.CRASHED, cpu=0.0))
        store.update_process(1002, ProcessUpdate(status=ProcessStatus.FROZEN))
        frozen_before = store.get_process(1002)
        crashed_before = store.get_process(1001)
        clock.advance(5)

        moved = store.drift.tick()

        assert moved == 4
        assert store.get_process(1001) == crashed_before
        assert store.get_process(1002) == frozen_before

    def test_metrics_stay_within_bounds(self, store, settings):
        store.update_process(1001, ProcessUpdate(cpu=0.0, memory=10.0))
        store.update_process(1002, ProcessUpdate(cpu=99.0, memory=900.0))

        for _ in range(500):
            store.drift.tick()
            for process in store.get_processes():
                assert settings.drift_cpu_floor <= process.cpu <= settings.cpu_ceiling
                assert settings.memory_floor <= process.memory <= settings.memory_ceiling

    def test_tick_counter(self, store):
        store.drift.tick()
        store.drift.tick()
        assert store.drift.ticks == 2


class TestDriftThread:
    def test_creation(self, store):
        drift = DriftSimulator(store)

        assert drift.interval == 2.0
        assert not drift.is_running

    def test_interval_minimum(self, store):
        drift = DriftSimulator(store, interval=0.01)
        assert drift.interval >= 0.1

        drift.interval = 0.0
        assert drift.interval >= 0.1

    def test_start_stop(self, store):
        drift = DriftSimulator(store, interval=0.1)

        drift.start()
        assert drift.is_running

        drift.stop()
        assert not drift.is_running

    def test_start_idempotent(self, store):
        drift = DriftSimulator(store, interval=0.1)

        drift.start()
        thread1 = drift._thread
        drift.start()
        thread2 = drift._thread

        assert thread1 is thread2
        drift.stop()

    def test_daemon_thread(self, store):
        drift = DriftSimulator(store, interval=0.1)

        drift.start()
        try:
            assert drift._thread is not None
            assert drift._thread.daemon is True
            assert drift._thread.name == "DriftSimulator"
        finally:
            drift.stop()

    def test_thread_ticks_in_background(self, store):
        drift = DriftSimulator(store, interval=0.1)

        drift.start()
        try:
            deadline = time.monotonic() + 3.0
            while drift.ticks < 2 and time.monotonic() < deadline:
                time.sleep(0.05)
        finally:
            drift.stop()

        assert drift.ticks >= 2

    def test_failed_tick_keeps_loop_running(self, store, monkeypatch):
        drift = DriftSimulator(store, interval=0.1)
        calls = []

        def flaky_tick():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("boom")
            return 0

        monkeypatch.setattr(drift, "tick", flaky_tick)

        drift.start()
        try:
            deadline = time.monotonic() + 3.0
            while len(calls) < 3 and time.monotonic() < deadline:
                time.sleep(0.05)
        finally:
            drift.stop()

        assert len(calls) >= 3
