"""Shared fixtures for proctop tests."""

from dataclasses import replace

import pytest

from proctop.models import ProcessRecord, ProcessStatus, SignalKind, SystemSnapshot


class FakeProvider:
    """In-memory snapshot provider that records every call."""

    def __init__(self, records: list[ProcessRecord] | None = None, cpu_percent: float = 12.5):
        self.snapshot = SystemSnapshot(
            processes={record.pid: record for record in records or []},
            memory_total=16 * 1024**3,
            memory_used=8 * 1024**3,
            swap_total=4 * 1024**3,
            swap_used=0,
            cpu_percent=cpu_percent,
            uptime_seconds=3600,
        )
        self.refresh_all_calls = 0
        self.refresh_cpu_calls = 0
        self.signals: list[tuple[int, SignalKind]] = []
        self.signal_result = True

    def refresh_all(self) -> None:
        self.refresh_all_calls += 1

    def refresh_cpu_only(self) -> None:
        self.refresh_cpu_calls += 1

    def current_snapshot(self) -> SystemSnapshot:
        return self.snapshot

    def send_signal(self, pid: int, kind: SignalKind) -> bool:
        self.signals.append((pid, kind))
        return self.signal_result

    def uptime_seconds(self) -> int:
        return self.snapshot.uptime_seconds

    def replace_processes(self, records: list[ProcessRecord]) -> None:
        """Swap in a new process table, as a refresh would."""
        self.snapshot = replace(self.snapshot, processes={r.pid: r for r in records})


def record(
    pid: int,
    name: str,
    cpu: float = 0.0,
    status: ProcessStatus = ProcessStatus.SLEEPING,
    username: str | None = "root",
    rss: int = 1024 * 1024,
) -> ProcessRecord:
    """Build a ProcessRecord with test-friendly defaults."""
    return ProcessRecord(
        pid=pid,
        name=name,
        username=username,
        cpu_percent=cpu,
        memory_rss=rss,
        memory_vms=rss * 4,
        status=status,
        exe=f"/usr/bin/{name}",
        cmdline=(f"/usr/bin/{name}", "--flag"),
        cwd="/",
        start_time=1_700_000_000.0,
        run_time=90061.0,
    )


@pytest.fixture
def make_record():
    """Factory fixture for ProcessRecord instances."""
    return record


@pytest.fixture
def scenario_records():
    """init idle, bash busy, a zombie idle, in that snapshot order."""
    return [
        record(1, "init", 0.0),
        record(2, "bash", 2.5, ProcessStatus.RUNNING, username="alice"),
        record(3, "zombie_proc", 0.0, ProcessStatus.ZOMBIE),
    ]


@pytest.fixture
def provider(scenario_records):
    """FakeProvider loaded with the scenario processes."""
    return FakeProvider(scenario_records)


@pytest.fixture
def make_provider():
    """Factory fixture for FakeProvider instances."""
    return FakeProvider
