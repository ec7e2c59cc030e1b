"""Data models for proctop."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum

import psutil


class ProcessStatus(Enum):
    """Lifecycle status of a process, collapsed to what the UI distinguishes."""

    RUNNING = "running"
    SLEEPING = "sleeping"
    ZOMBIE = "zombie"
    OTHER = "other"

    @classmethod
    def from_psutil(cls, status: str | None) -> "ProcessStatus":
        """Map a psutil STATUS_* string onto a ProcessStatus."""
        if status == psutil.STATUS_RUNNING:
            return cls.RUNNING
        if status == psutil.STATUS_SLEEPING:
            return cls.SLEEPING
        if status == psutil.STATUS_ZOMBIE:
            return cls.ZOMBIE
        return cls.OTHER


class SignalKind(Enum):
    """Signal strengths offered to the user."""

    TERMINATE = "terminate"  # SIGTERM, cooperative shutdown
    KILL = "kill"  # SIGKILL, unconditional


@dataclass(slots=True, frozen=True)
class ProcessRecord:
    """Immutable snapshot of a process state."""

    pid: int
    name: str
    username: str | None = None
    cpu_percent: float = 0.0  # may exceed 100.0 on multi-core
    memory_rss: int = 0  # Bytes
    memory_vms: int = 0  # Bytes
    disk_read_bytes: int = 0
    disk_write_bytes: int = 0
    status: ProcessStatus = ProcessStatus.OTHER
    exe: str | None = None
    cmdline: tuple[str, ...] = ()
    cwd: str | None = None
    start_time: float = 0.0  # Epoch seconds
    run_time: float = 0.0  # Seconds


@dataclass(slots=True, frozen=True)
class SystemSnapshot:
    """Point-in-time copy of all process and system counters.

    ``processes`` keeps the provider's iteration order, which is what ties
    among equal-CPU rows fall back to.
    """

    processes: Mapping[int, ProcessRecord] = field(default_factory=dict)
    memory_total: int = 0
    memory_used: int = 0
    swap_total: int = 0
    swap_used: int = 0
    cpu_percent: float = 0.0
    uptime_seconds: int = 0

    def get(self, pid: int) -> ProcessRecord | None:
        """Return the record for ``pid`` if it is part of this snapshot."""
        return self.processes.get(pid)

    def __contains__(self, pid: object) -> bool:
        return pid in self.processes
