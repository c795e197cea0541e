"""In-memory entity store for the simulated system."""

import contextlib
import random
import threading
import time
import uuid
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, replace

from healsim.config import SimulatorSettings, get_settings
from healsim.drift import DriftSimulator
from healsim.health import compute_health
from healsim.logging import get_logger
from healsim.models import (
    LogEntry,
    LogType,
    Process,
    ProcessStatus,
    SystemFile,
    SystemHealth,
    SystemState,
)
from healsim.schemas import FileUpdate, ProcessUpdate

logger = get_logger(__name__)

PROCESS_NAMES = (
    "kernel_scheduler",
    "memory_manager",
    "file_system_watcher",
    "network_handler",
    "user_session_manager",
    "security_monitor",
    "log_collector",
    "backup_service",
    "cache_manager",
    "disk_io_handler",
)


@dataclass(slots=True, frozen=True)
class FileTemplate:
    name: str
    path: str
    size: int


FILE_TEMPLATES = (
    FileTemplate("config.json", "/etc/system/config.json", 2048),
    FileTemplate("kernel.log", "/var/log/kernel.log", 45000),
    FileTemplate("auth.db", "/var/data/auth.db", 128000),
    FileTemplate("cache.dat", "/tmp/cache.dat", 65536),
    FileTemplate("network.conf", "/etc/network/network.conf", 1024),
    FileTemplate("security.key", "/etc/security/security.key", 512),
    FileTemplate("backup.tar", "/var/backup/backup.tar", 256000),
    FileTemplate("users.json", "/etc/users/users.json", 4096),
)

# Nominal ranges for freshly created processes
INITIAL_CPU = (1.0, 30.0)
INITIAL_MEMORY = (50.0, 500.0)
ONE_DAY = 86400.0


class EntityStore:
    """
    Authoritative owner of the simulated processes, files and log buffer.

    All mutation happens while holding ``lock``. Public read methods hand
    out copies; the ``live_*`` accessors return the stored objects and are
    meant for the drift simulator, injector and healer, which must hold
    the lock while using them.
    """

    def __init__(
        self,
        settings: SimulatorSettings | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize an empty store.

        Args:
            settings: Simulation constants. Defaults to the cached settings.
            rng: Random source shared by every mutator. Seed it for
                reproducible runs.
            clock: Returns the current time in seconds.
        """
        self._settings = settings or get_settings()
        self._rng = rng or random.Random()
        self._clock = clock
        self._lock = threading.RLock()
        self._processes: dict[int, Process] = {}
        self._files: dict[str, SystemFile] = {}
        self._logs: deque[LogEntry] = deque(maxlen=self._settings.log_capacity)
        self._next_pid = self._settings.pid_base
        self._initialized = False
        self._drift = DriftSimulator(self, interval=self._settings.drift_interval)

    @property
    def settings(self) -> SimulatorSettings:
        return self._settings

    @property
    def rng(self) -> random.Random:
        return self._rng

    @property
    def lock(self) -> contextlib.AbstractContextManager:
        return self._lock

    @property
    def drift(self) -> DriftSimulator:
        return self._drift

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def now(self) -> float:
        return self._clock()

    def initialize(self, start_drift: bool = True) -> None:
        """
        Populate the simulated world once and (re)start drift.

        Population only happens on the first call. Drift is started on
        every call with ``start_drift`` set, so a store whose drift was
        stopped by ``shutdown`` resumes on the next ``initialize``.

        Args:
            start_drift: Start the background drift thread afterwards.
        """
        with self._lock:
            if not self._initialized:
                self._populate()

        if start_drift:
            self._drift.start()

    def _populate(self) -> None:
        for i in range(self._settings.process_count):
            pid = self._next_pid
            self._next_pid += 1
            self._processes[pid] = Process(
                pid=pid,
                name=PROCESS_NAMES[i % len(PROCESS_NAMES)],
                memory=self._rng.uniform(*INITIAL_MEMORY),
                cpu=self._rng.uniform(*INITIAL_CPU),
                heartbeat=self.now(),
                status=ProcessStatus.RUNNING,
            )
            self.clamp(self._processes[pid])

        for template in FILE_TEMPLATES:
            file_id = str(uuid.uuid4())
            self._files[file_id] = SystemFile(
                id=file_id,
                name=template.name,
                path=template.path,
                size=template.size,
                checksum=self.new_checksum(),
                corrupted=False,
                last_modified=self.now() - self._rng.uniform(0.0, ONE_DAY),
            )

        self.add_log(
            LogType.INFO,
            "System Initialized",
            "Self-Healing OS Simulator started successfully. All systems operational.",
        )
        self._initialized = True
        logger.info(
            "Initialized %d processes and %d files",
            len(self._processes),
            len(self._files),
        )

    def shutdown(self) -> None:
        """Stop background drift. Entities stay in place."""
        self._drift.stop()

    # Helpers shared by the mutators

    def new_checksum(self) -> str:
        """Generate a 32-character hex checksum token."""
        return f"{self._rng.getrandbits(128):032x}"

    def clamp(self, process: Process) -> None:
        """Force cpu and memory back into the configured bounds."""
        s = self._settings
        process.cpu = max(s.cpu_floor, min(s.cpu_ceiling, process.cpu))
        process.memory = max(s.memory_floor, min(s.memory_ceiling, process.memory))

    def live_processes(self) -> list[Process]:
        return list(self._processes.values())

    def live_files(self) -> list[SystemFile]:
        return list(self._files.values())

    # Read access

    def get_processes(self) -> list[Process]:
        with self._lock:
            return [replace(p) for p in self._processes.values()]

    def get_process(self, pid: int) -> Process | None:
        with self._lock:
            process = self._processes.get(pid)
            return replace(process) if process is not None else None

    def get_files(self) -> list[SystemFile]:
        with self._lock:
            return [replace(f) for f in self._files.values()]

    def get_file(self, file_id: str) -> SystemFile | None:
        with self._lock:
            file = self._files.get(file_id)
            return replace(file) if file is not None else None

    def get_logs(self) -> list[LogEntry]:
        """Return the most recent log entries, newest first."""
        with self._lock:
            recent = list(self._logs)[-self._settings.log_view_limit :]
            recent.reverse()
            return recent

    def log_count(self) -> int:
        with self._lock:
            return len(self._logs)

    def get_health(self) -> SystemHealth:
        with self._lock:
            return compute_health(
                self.live_processes(),
                self.live_files(),
                memory_scale=self._settings.memory_scale,
                now=self.now(),
            )

    def snapshot(self) -> SystemState:
        """Read processes, files, logs and health under one lock hold."""
        with self._lock:
            return SystemState(
                processes=self.get_processes(),
                files=self.get_files(),
                logs=self.get_logs(),
                health=self.get_health(),
            )

    # Mutation

    def update_process(self, pid: int, update: ProcessUpdate) -> Process | None:
        """
        Merge a validated partial update into a process.

        Returns:
            A copy of the updated process, or None if the pid is unknown.
        """
        with self._lock:
            process = self._processes.get(pid)
            if process is None:
                return None
            for field, value in update.changes().items():
                setattr(process, field, value)
            self.clamp(process)
            logger.debug("Updated process %d: %s", pid, update.changes())
            return replace(process)

    def update_file(self, file_id: str, update: FileUpdate) -> SystemFile | None:
        """
        Merge a validated partial update into a file.

        Returns:
            A copy of the updated file, or None if the id is unknown.
        """
        with self._lock:
            file = self._files.get(file_id)
            if file is None:
                return None
            for field, value in update.changes().items():
                setattr(file, field, value)
            logger.debug("Updated file %s: %s", file_id, update.changes())
            return replace(file)

    def add_log(self, log_type: LogType, event: str, description: str) -> LogEntry:
        """Append a log entry; the oldest entry is evicted past capacity."""
        with self._lock:
            entry = LogEntry(
                id=str(uuid.uuid4()),
                timestamp=self.now(),
                type=LogType(log_type),
                event=event,
                description=description,
            )
            self._logs.append(entry)
        logger.debug("[%s] %s: %s", entry.type.value, event, description)
        return entry
