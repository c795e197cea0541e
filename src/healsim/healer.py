"""Automated repair of faulted processes and files."""

from healsim.logging import get_logger
from healsim.models import HealAction, HealResult, LogType, ProcessStatus
from healsim.store import EntityStore

logger = get_logger(__name__)

RESTART_CPU = (5.0, 25.0)
RESTART_MEMORY = (50.0, 200.0)
OPTIMIZE_CPU = (10.0, 40.0)
OPTIMIZE_MEMORY = (100.0, 300.0)


class Healer:
    """
    Restores faulted entities to a nominal state.

    ``heal_all`` runs four passes in a fixed order (crashed, frozen,
    high load, corrupted files). Repairs always succeed; there is no
    partial-failure path.
    """

    def __init__(self, store: EntityStore) -> None:
        self._store = store

    def heal_all(self) -> list[HealResult]:
        """
        Repair every faulted entity.

        Returns:
            One result per repaired entity, or an empty list if the
            system was already healthy.
        """
        store = self._store
        results: list[HealResult] = []

        with store.lock:
            results.extend(self._restart_crashed())
            results.extend(self._unfreeze_frozen())
            results.extend(self._optimize_high_load())
            results.extend(self._restore_corrupted())

            if not results:
                store.add_log(
                    LogType.INFO,
                    "System Check",
                    "No faults detected. All systems are operating normally.",
                )

        logger.info("Healed %d entit%s", len(results), "y" if len(results) == 1 else "ies")
        return results

    def _restart_crashed(self) -> list[HealResult]:
        store = self._store
        results = []
        for process in store.live_processes():
            if process.status is not ProcessStatus.CRASHED:
                continue
            process.status = ProcessStatus.RUNNING
            process.cpu = store.rng.uniform(*RESTART_CPU)
            process.memory = store.rng.uniform(*RESTART_MEMORY)
            process.heartbeat = store.now()
            store.clamp(process)

            store.add_log(
                LogType.SUCCESS,
                "Process Restarted",
                f"Successfully restarted crashed process {process.name} (PID: {process.pid}).",
            )
            results.append(
                HealResult(
                    success=True,
                    action=HealAction.RESTART,
                    target_id=process.pid,
                    target_name=process.name,
                    message=f"Process {process.name} (PID: {process.pid}) has been restarted.",
                )
            )
        return results

    def _unfreeze_frozen(self) -> list[HealResult]:
        store = self._store
        results = []
        for process in store.live_processes():
            if process.status is not ProcessStatus.FROZEN:
                continue
            process.status = ProcessStatus.RUNNING
            process.heartbeat = store.now()

            store.add_log(
                LogType.SUCCESS,
                "Process Unfrozen",
                f"Successfully unfroze process {process.name} (PID: {process.pid}) "
                "and restored heartbeat.",
            )
            results.append(
                HealResult(
                    success=True,
                    action=HealAction.UNFREEZE,
                    target_id=process.pid,
                    target_name=process.name,
                    message=(
                        f"Process {process.name} (PID: {process.pid}) heartbeat has been reset."
                    ),
                )
            )
        return results

    def _optimize_high_load(self) -> list[HealResult]:
        store = self._store
        results = []
        for process in store.live_processes():
            if process.status is not ProcessStatus.HIGH_LOAD:
                continue
            process.status = ProcessStatus.RUNNING
            process.cpu = store.rng.uniform(*OPTIMIZE_CPU)
            process.memory = store.rng.uniform(*OPTIMIZE_MEMORY)
            store.clamp(process)

            store.add_log(
                LogType.SUCCESS,
                "Load Optimized",
                f"Successfully optimized high-load process {process.name} (PID: {process.pid}).",
            )
            results.append(
                HealResult(
                    success=True,
                    action=HealAction.OPTIMIZE,
                    target_id=process.pid,
                    target_name=process.name,
                    message=f"Process {process.name} (PID: {process.pid}) load has been optimized.",
                )
            )
        return results

    def _restore_corrupted(self) -> list[HealResult]:
        store = self._store
        results = []
        for file in store.live_files():
            if not file.corrupted:
                continue
            file.corrupted = False
            file.checksum = store.new_checksum()
            file.last_modified = store.now()

            store.add_log(
                LogType.SUCCESS,
                "File Restored",
                f"Successfully restored corrupted file {file.name} at {file.path}.",
            )
            results.append(
                HealResult(
                    success=True,
                    action=HealAction.RESTORE,
                    target_id=file.id,
                    target_name=file.name,
                    message=f"File {file.name} has been restored from backup.",
                )
            )
        return results

    def repair_file(self, file_id: str) -> HealResult:
        """
        Repair a single corrupted file.

        Unknown ids and healthy files produce a failed result rather than
        an exception; the file is left untouched in both cases.
        """
        store = self._store

        with store.lock:
            file = next((f for f in store.live_files() if f.id == file_id), None)

            if file is None:
                logger.info("Repair requested for unknown file %s", file_id)
                return HealResult(
                    success=False,
                    action=HealAction.REPAIR,
                    target_id=file_id,
                    target_name="Unknown",
                    message="File not found.",
                )

            if not file.corrupted:
                return HealResult(
                    success=False,
                    action=HealAction.REPAIR,
                    target_id=file_id,
                    target_name=file.name,
                    message="File is not corrupted.",
                )

            file.corrupted = False
            file.checksum = store.new_checksum()
            file.last_modified = store.now()

            store.add_log(
                LogType.SUCCESS,
                "File Repaired",
                f"Successfully repaired file {file.name} at {file.path}. New checksum generated.",
            )

        logger.info("Repaired file %s (%s)", file.name, file_id)
        return HealResult(
            success=True,
            action=HealAction.REPAIR,
            target_id=file_id,
            target_name=file.name,
            message=f"File {file.name} has been successfully repaired.",
        )
