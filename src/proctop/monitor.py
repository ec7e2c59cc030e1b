"""System monitoring engine for proctop."""

import logging
import time
from dataclasses import replace

import psutil

from proctop.models import ProcessRecord, ProcessStatus, SignalKind, SystemSnapshot

logger = logging.getLogger(__name__)

# Attributes fetched per process on a full refresh
_PROCESS_ATTRS = [
    "pid",
    "name",
    "username",
    "status",
    "cpu_percent",
    "memory_info",
    "exe",
    "cmdline",
    "cwd",
    "create_time",
]

# io_counters is not implemented on every platform (macOS)
if hasattr(psutil.Process, "io_counters"):
    _PROCESS_ATTRS.append("io_counters")


class SystemMonitor:
    """
    Snapshot provider that collects process and system data using psutil.

    Runs synchronously on the caller's thread. A full collection happens on
    construction so the first snapshot is never empty; after that the owner
    decides when to pay for ``refresh_all`` versus ``refresh_cpu_only``.
    Handles AccessDenied and ZombieProcess errors gracefully.
    """

    def __init__(self) -> None:
        """Initialize the SystemMonitor and take the first full snapshot."""
        # Initialize CPU percent (first call returns 0.0)
        psutil.cpu_percent(interval=None)
        self._snapshot = SystemSnapshot()
        self.refresh_all()

    def current_snapshot(self) -> SystemSnapshot:
        """Return the most recently collected snapshot."""
        return self._snapshot

    def uptime_seconds(self) -> int:
        """Seconds elapsed since boot."""
        return int(time.time() - psutil.boot_time())

    def refresh_all(self) -> None:
        """
        Collect the full process table and all system counters.

        On failure the previous snapshot is kept; the next refresh tries again.
        """
        try:
            mem = psutil.virtual_memory()
            swap = psutil.swap_memory()
            processes = self._collect_processes()
        except (psutil.Error, OSError):
            logger.warning("Full refresh failed, keeping previous snapshot", exc_info=True)
            return

        self._snapshot = SystemSnapshot(
            processes=processes,
            memory_total=mem.total,
            memory_used=mem.used,
            swap_total=swap.total,
            swap_used=swap.used,
            cpu_percent=psutil.cpu_percent(interval=None),
            uptime_seconds=self.uptime_seconds(),
        )
        logger.debug("Full refresh collected %d processes", len(processes))

    def refresh_cpu_only(self) -> None:
        """Refresh the global CPU percentage, keeping the process table."""
        self._snapshot = replace(
            self._snapshot,
            cpu_percent=psutil.cpu_percent(interval=None),
            uptime_seconds=self.uptime_seconds(),
        )

    def send_signal(self, pid: int, kind: SignalKind) -> bool:
        """
        Deliver a termination signal to ``pid``.

        Returns True when the signal was sent. Processes that already exited
        or that we may not signal are expected races, not errors.
        """
        try:
            proc = psutil.Process(pid)
            if kind is SignalKind.KILL:
                proc.kill()
            else:
                proc.terminate()
        except (psutil.NoSuchProcess, psutil.AccessDenied) as exc:
            logger.debug("Could not send %s to %d: %s", kind.value, pid, exc)
            return False
        logger.debug("Sent %s to %d", kind.value, pid)
        return True

    def _collect_processes(self) -> dict[int, ProcessRecord]:
        """
        Collect records of all running processes, keyed by pid.

        Uses psutil.process_iter(), which caches Process instances between
        calls so per-process cpu_percent measures the interval since the
        previous full refresh.
        """
        processes: dict[int, ProcessRecord] = {}
        now = time.time()

        for proc in psutil.process_iter(attrs=_PROCESS_ATTRS, ad_value=None):
            try:
                info = proc.info
                if info["pid"] <= 0:
                    continue  # kernel pseudo-process on some platforms

                mem_info = info.get("memory_info")
                io = info.get("io_counters")
                create_time = info.get("create_time") or 0.0

                record = ProcessRecord(
                    pid=info["pid"],
                    name=info.get("name") or "",
                    username=info.get("username"),
                    cpu_percent=info.get("cpu_percent") or 0.0,
                    memory_rss=mem_info.rss if mem_info else 0,
                    memory_vms=mem_info.vms if mem_info else 0,
                    disk_read_bytes=io.read_bytes if io else 0,
                    disk_write_bytes=io.write_bytes if io else 0,
                    status=ProcessStatus.from_psutil(info.get("status")),
                    exe=info.get("exe") or None,
                    cmdline=tuple(info.get("cmdline") or ()),
                    cwd=info.get("cwd") or None,
                    start_time=create_time,
                    run_time=max(0.0, now - create_time) if create_time else 0.0,
                )
                processes[record.pid] = record

            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                # Process died mid-poll or is not readable; skip it
                continue

        return processes
