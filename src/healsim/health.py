"""Aggregate health classification for the simulated system."""

from collections.abc import Sequence

from healsim.models import HealthStatus, Process, ProcessStatus, SystemFile, SystemHealth

CRITICAL_FAULT_COUNT = 2
CRITICAL_CPU = 80.0
WARNING_CPU = 60.0


def classify(faulty: int, corrupted: int, cpu: float) -> HealthStatus:
    """Map fault counts and mean cpu to a verdict; first match wins."""
    if faulty > CRITICAL_FAULT_COUNT or corrupted > CRITICAL_FAULT_COUNT or cpu > CRITICAL_CPU:
        return HealthStatus.CRITICAL
    if faulty > 0 or corrupted > 0 or cpu > WARNING_CPU:
        return HealthStatus.WARNING
    return HealthStatus.HEALTHY


def compute_health(
    processes: Sequence[Process],
    files: Sequence[SystemFile],
    memory_scale: float,
    now: float,
) -> SystemHealth:
    """
    Derive a SystemHealth from the current entities.

    Args:
        processes: All simulated processes.
        files: All simulated files.
        memory_scale: Divisor turning mean memory (MB) into a percentage.
        now: Timestamp recorded as last_updated.
    """
    total = len(processes)
    healthy = sum(1 for p in processes if p.status is ProcessStatus.RUNNING)
    faulty = total - healthy
    corrupted = sum(1 for f in files if f.corrupted)

    avg_cpu = sum(p.cpu for p in processes) / total if total else 0.0
    avg_memory = sum(p.memory for p in processes) / (total * memory_scale) if total else 0.0

    return SystemHealth(
        cpu_usage=min(100.0, avg_cpu),
        memory_usage=min(100.0, avg_memory),
        total_processes=total,
        healthy_processes=healthy,
        faulty_processes=faulty,
        total_files=len(files),
        corrupted_files=corrupted,
        status=classify(faulty, corrupted, avg_cpu),
        last_updated=now,
    )
