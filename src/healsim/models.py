"""Data models for healsim."""

from dataclasses import dataclass
from enum import Enum


class ProcessStatus(str, Enum):
    """Lifecycle status of a simulated process."""

    RUNNING = "running"
    CRASHED = "crashed"
    FROZEN = "frozen"
    HIGH_LOAD = "high_load"


class LogType(str, Enum):
    """Category of a simulated log entry."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    SUCCESS = "success"


class FaultType(str, Enum):
    CRASH = "crash"
    FREEZE = "freeze"
    HIGH_LOAD = "high_load"
    CORRUPTION = "corruption"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class HealAction(str, Enum):
    RESTART = "restart"
    UNFREEZE = "unfreeze"
    OPTIMIZE = "optimize"
    RESTORE = "restore"
    REPAIR = "repair"


class HealthStatus(str, Enum):
    """Overall verdict derived from the current entity state."""

    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(slots=True)
class Process:
    """Mutable simulated process held by the entity store."""

    pid: int
    name: str
    memory: float  # MB
    cpu: float  # percent
    heartbeat: float  # clock reading
    status: ProcessStatus = ProcessStatus.RUNNING


@dataclass(slots=True)
class SystemFile:
    """Mutable simulated file held by the entity store."""

    id: str
    name: str
    path: str
    size: int  # Bytes
    checksum: str
    corrupted: bool
    last_modified: float


@dataclass(slots=True, frozen=True)
class LogEntry:
    """Immutable entry in the simulated system log."""

    id: str
    timestamp: float
    type: LogType
    event: str
    description: str


@dataclass(slots=True, frozen=True)
class Fault:
    """A single injected fault, reported to the caller and never stored."""

    type: FaultType
    target_id: int | str
    target_name: str
    severity: Severity
    description: str


@dataclass(slots=True, frozen=True)
class HealResult:
    """Outcome of one repair action."""

    success: bool
    action: HealAction
    target_id: int | str
    target_name: str
    message: str


@dataclass(slots=True, frozen=True)
class SystemHealth:
    """Aggregate health, recomputed on every read."""

    cpu_usage: float
    memory_usage: float
    total_processes: int
    healthy_processes: int
    faulty_processes: int
    total_files: int
    corrupted_files: int
    status: HealthStatus
    last_updated: float


@dataclass(slots=True, frozen=True)
class SystemState:
    """Consistent snapshot of the whole simulated system."""

    processes: list[Process]
    files: list[SystemFile]
    logs: list[LogEntry]
    health: SystemHealth
