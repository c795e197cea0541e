"""Tests for the Healer."""

import pytest

from healsim.healer import Healer
from healsim.models import HealAction, LogType, ProcessStatus
from healsim.schemas import FileUpdate, ProcessUpdate


@pytest.fixture
def healer(store) -> Healer:
    return Healer(store)


class TestHealAll:
    def test_restarts_crashed(self, healer, store, clock):
        store.update_process(1001, ProcessUpdate(status=ProcessStatus.CRASHED, cpu=0.0))
        clock.advance(30)

        results = healer.heal_all()

        assert len(results) == 1
        result = results[0]
        assert result.success
        assert result.action is HealAction.RESTART
        assert result.target_id == 1001
        process = store.get_process(1001)
        assert process.status is ProcessStatus.RUNNING
        assert 5.0 <= process.cpu <= 25.0
        assert 50.0 <= process.memory <= 200.0
        assert process.heartbeat == clock.now
        assert store.get_logs()[0].event == "Process Restarted"

    def test_unfreezes_without_touching_metrics(self, healer, store, clock):
        store.update_process(1002, ProcessUpdate(status=ProcessStatus.FROZEN, cpu=33.0, memory=333.0))
        clock.advance(30)

        results = healer.heal_all()

        assert [r.action for r in results] == [HealAction.UNFREEZE]
        process = store.get_process(1002)
        assert process.status is ProcessStatus.RUNNING
        assert process.cpu == 33.0
        assert process.memory == 333.0
        assert process.heartbeat == clock.now

    def test_optimizes_high_load(self, healer, store):
        store.update_process(
            1003, ProcessUpdate(status=ProcessStatus.HIGH_LOAD, cpu=95.0, memory=850.0)
        )

        results = healer.heal_all()

        assert [r.action for r in results] == [HealAction.OPTIMIZE]
        process = store.get_process(1003)
        assert process.status is ProcessStatus.RUNNING
        assert 10.0 <= process.cpu <= 40.0
        assert 100.0 <= process.memory <= 300.0

    def test_restores_corrupted_files(self, healer, store, clock):
        file = store.get_files()[2]
        store.update_file(file.id, FileUpdate(corrupted=True, checksum="CORRUPTED_" + "0" * 22))
        clock.advance(30)

        results = healer.heal_all()

        assert [r.action for r in results] == [HealAction.RESTORE]
        assert results[0].target_id == file.id
        restored = store.get_file(file.id)
        assert not restored.corrupted
        assert not restored.checksum.startswith("CORRUPTED_")
        assert len(restored.checksum) == 32
        assert restored.last_modified == clock.now

    def test_passes_run_in_category_order(self, healer, store):
        files = store.get_files()
        store.update_file(files[0].id, FileUpdate(corrupted=True))
        store.update_process(1001, ProcessUpdate(status=ProcessStatus.HIGH_LOAD))
        store.update_process(1002, ProcessUpdate(status=ProcessStatus.FROZEN))
        store.update_process(1003, ProcessUpdate(status=ProcessStatus.CRASHED))
        before = store.log_count()

        results = healer.heal_all()

        assert [r.action for r in results] == [
            HealAction.RESTART,
            HealAction.UNFREEZE,
            HealAction.OPTIMIZE,
            HealAction.RESTORE,
        ]
        assert store.log_count() == before + 4
        assert all(entry.type is LogType.SUCCESS for entry in store.get_logs()[:4])

    def test_healthy_system_logs_system_check(self, healer, store):
        before = store.log_count()

        assert healer.heal_all() == []
        assert store.log_count() == before + 1
        entry = store.get_logs()[0]
        assert entry.type is LogType.INFO
        assert entry.event == "System Check"

    def test_second_heal_is_a_no_op(self, healer, store):
        store.update_process(1001, ProcessUpdate(status=ProcessStatus.CRASHED))
        healer.heal_all()
        before = store.log_count()

        assert healer.heal_all() == []
        assert store.log_count() == before + 1


class TestRepairFile:
    def test_unknown_file(self, healer, store):
        before = store.log_count()

        result = healer.repair_file("nope")

        assert not result.success
        assert result.action is HealAction.REPAIR
        assert result.target_name == "Unknown"
        assert result.message == "File not found."
        assert store.log_count() == before

    def test_healthy_file_is_untouched(self, healer, store):
        file = store.get_files()[0]

        result = healer.repair_file(file.id)

        assert not result.success
        assert result.target_name == file.name
        assert "not corrupted" in result.message
        after = store.get_file(file.id)
        assert after.checksum == file.checksum
        assert after.last_modified == file.last_modified

    def test_repairs_corrupted_file(self, healer, store, clock):
        file = store.get_files()[1]
        store.update_file(file.id, FileUpdate(corrupted=True, checksum="CORRUPTED_" + "f" * 22))
        clock.advance(5)

        result = healer.repair_file(file.id)

        assert result.success
        assert result.action is HealAction.REPAIR
        assert result.target_id == file.id
        repaired = store.get_file(file.id)
        assert not repaired.corrupted
        assert len(repaired.checksum) == 32
        assert repaired.last_modified == clock.now
        entry = store.get_logs()[0]
        assert entry.type is LogType.SUCCESS
        assert entry.event == "File Repaired"

    def test_repair_twice(self, healer, store):
        file = store.get_files()[1]
        store.update_file(file.id, FileUpdate(corrupted=True))

        assert healer.repair_file(file.id).success
        assert not healer.repair_file(file.id).success
