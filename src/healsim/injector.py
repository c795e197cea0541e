"""Random fault injection into the simulated system."""

from healsim.logging import get_logger
from healsim.models import (
    Fault,
    FaultType,
    LogType,
    Process,
    ProcessStatus,
    Severity,
    SystemFile,
)
from healsim.store import EntityStore

logger = get_logger(__name__)

# Upper edges of each category's share of [0, 1); corruption takes the rest
CRASH_EDGE = 0.3
FREEZE_EDGE = 0.5
HIGH_LOAD_EDGE = 0.7

MAX_FAULTS_PER_RUN = 3
HIGH_LOAD_CPU = (85.0, 99.0)
HIGH_LOAD_MEMORY = (700.0, 900.0)
CORRUPTION_MARKER = "CORRUPTED_"


class FaultInjector:
    """
    Applies between one and three random faults per invocation.

    Every round draws one uniform value and maps it onto crash, freeze,
    high load or corruption. A round whose category has no eligible
    target contributes nothing; the corruption branch also catches every
    round when there are no processes at all.
    """

    def __init__(self, store: EntityStore) -> None:
        self._store = store

    def inject(self) -> list[Fault]:
        """
        Inject faults into the store.

        Returns:
            The faults actually applied. May be shorter than the number
            of rounds, or empty.
        """
        store = self._store
        rng = store.rng
        faults: list[Fault] = []

        with store.lock:
            rounds = rng.randint(1, MAX_FAULTS_PER_RUN)
            for _ in range(rounds):
                fault = self._run_round(rng.random())
                if fault is not None:
                    faults.append(fault)

            if not faults:
                store.add_log(
                    LogType.INFO,
                    "Fault Injection",
                    "Attempted fault injection but all systems are already faulty "
                    "or no valid targets found.",
                )

        logger.info("Injected %d fault(s) over %d round(s)", len(faults), rounds)
        return faults

    def _run_round(self, draw: float) -> Fault | None:
        has_processes = bool(self._store.live_processes())

        if draw < CRASH_EDGE and has_processes:
            return self._crash()
        if draw < FREEZE_EDGE and has_processes:
            return self._freeze()
        if draw < HIGH_LOAD_EDGE and has_processes:
            return self._high_load()
        return self._corrupt()

    def _pick_running(self) -> Process | None:
        running = [p for p in self._store.live_processes() if p.status is ProcessStatus.RUNNING]
        if not running:
            return None
        return running[self._store.rng.randrange(len(running))]

    def _pick_healthy_file(self) -> SystemFile | None:
        healthy = [f for f in self._store.live_files() if not f.corrupted]
        if not healthy:
            return None
        return healthy[self._store.rng.randrange(len(healthy))]

    def _crash(self) -> Fault | None:
        target = self._pick_running()
        if target is None:
            return None

        target.status = ProcessStatus.CRASHED
        target.cpu = 0.0
        self._store.clamp(target)

        self._store.add_log(
            LogType.ERROR,
            "Process Crashed",
            f"Process {target.name} (PID: {target.pid}) has crashed unexpectedly.",
        )
        return Fault(
            type=FaultType.CRASH,
            target_id=target.pid,
            target_name=target.name,
            severity=Severity.HIGH,
            description=f"Process {target.name} (PID: {target.pid}) has crashed.",
        )

    def _freeze(self) -> Fault | None:
        target = self._pick_running()
        if target is None:
            return None

        target.status = ProcessStatus.FROZEN
        target.heartbeat = self._store.now() - self._store.settings.freeze_backdate

        self._store.add_log(
            LogType.WARNING,
            "Process Frozen",
            f"Process {target.name} (PID: {target.pid}) stopped responding to heartbeat signals.",
        )
        return Fault(
            type=FaultType.FREEZE,
            target_id=target.pid,
            target_name=target.name,
            severity=Severity.MEDIUM,
            description=f"Process {target.name} (PID: {target.pid}) is frozen and not responding.",
        )

    def _high_load(self) -> Fault | None:
        target = self._pick_running()
        if target is None:
            return None

        rng = self._store.rng
        target.status = ProcessStatus.HIGH_LOAD
        target.cpu = rng.uniform(*HIGH_LOAD_CPU)
        target.memory = rng.uniform(*HIGH_LOAD_MEMORY)
        self._store.clamp(target)

        self._store.add_log(
            LogType.WARNING,
            "High Load Detected",
            f"Process {target.name} (PID: {target.pid}) CPU at {target.cpu:.1f}%, "
            f"Memory at {target.memory:.1f}MB.",
        )
        return Fault(
            type=FaultType.HIGH_LOAD,
            target_id=target.pid,
            target_name=target.name,
            severity=Severity.MEDIUM,
            description=(
                f"Process {target.name} (PID: {target.pid}) is experiencing high resource usage."
            ),
        )

    def _corrupt(self) -> Fault | None:
        target = self._pick_healthy_file()
        if target is None:
            return None

        target.corrupted = True
        target.checksum = CORRUPTION_MARKER + target.checksum[len(CORRUPTION_MARKER) :]

        self._store.add_log(
            LogType.ERROR,
            "File Corrupted",
            f"File {target.name} at {target.path} checksum mismatch detected.",
        )
        return Fault(
            type=FaultType.CORRUPTION,
            target_id=target.id,
            target_name=target.name,
            severity=Severity.HIGH,
            description=f"File {target.name} at {target.path} has been corrupted.",
        )
