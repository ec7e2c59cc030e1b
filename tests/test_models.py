"""Tests for proctop data models."""

import psutil
import pytest

from proctop.models import ProcessRecord, ProcessStatus, SignalKind, SystemSnapshot


def test_process_record_creation():
    """Test ProcessRecord dataclass creation."""
    record = ProcessRecord(
        pid=123,
        name="test_process",
        username="testuser",
        cpu_percent=150.0,
        memory_rss=1024000,
        memory_vms=4096000,
        disk_read_bytes=10,
        disk_write_bytes=20,
        status=ProcessStatus.RUNNING,
        exe="/usr/bin/test",
        cmdline=("/usr/bin/test", "-v"),
        cwd="/tmp",
        start_time=1.0,
        run_time=2.0,
    )

    assert record.pid == 123
    assert record.name == "test_process"
    assert record.username == "testuser"
    # Multi-core sums are kept as reported
    assert record.cpu_percent == 150.0
    assert record.memory_rss == 1024000
    assert record.memory_vms == 4096000
    assert record.status is ProcessStatus.RUNNING
    assert record.cmdline == ("/usr/bin/test", "-v")


def test_process_record_defaults():
    """Test optional fields default to empty values."""
    record = ProcessRecord(pid=7, name="idle")

    assert record.username is None
    assert record.exe is None
    assert record.cwd is None
    assert record.cmdline == ()
    assert record.status is ProcessStatus.OTHER


def test_process_record_is_frozen():
    """Test that ProcessRecord is immutable (frozen)."""
    record = ProcessRecord(pid=1, name="init")

    with pytest.raises(AttributeError):
        record.pid = 999


def test_process_record_uses_slots():
    """Test that ProcessRecord uses __slots__ for memory efficiency."""
    record = ProcessRecord(pid=1, name="init")

    # Slots-based dataclasses don't have __dict__
    assert not hasattr(record, "__dict__")


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (psutil.STATUS_RUNNING, ProcessStatus.RUNNING),
        (psutil.STATUS_SLEEPING, ProcessStatus.SLEEPING),
        (psutil.STATUS_ZOMBIE, ProcessStatus.ZOMBIE),
        (psutil.STATUS_DISK_SLEEP, ProcessStatus.OTHER),
        (psutil.STATUS_STOPPED, ProcessStatus.OTHER),
        (None, ProcessStatus.OTHER),
    ],
)
def test_status_from_psutil(raw, expected):
    """Test psutil status strings collapse to the four UI statuses."""
    assert ProcessStatus.from_psutil(raw) is expected


def test_signal_kinds():
    """Test both signal strengths are available."""
    assert {kind.value for kind in SignalKind} == {"terminate", "kill"}


class TestSystemSnapshot:
    """Tests for SystemSnapshot dataclass."""

    def test_snapshot_lookup(self, make_record):
        """Test lookup and membership by pid."""
        bash = make_record(2, "bash")
        snapshot = SystemSnapshot(processes={2: bash})

        assert snapshot.get(2) is bash
        assert snapshot.get(3) is None
        assert 2 in snapshot
        assert 3 not in snapshot

    def test_snapshot_preserves_iteration_order(self, make_record):
        """Test processes keep the order the provider inserted them in."""
        records = [make_record(pid, f"p{pid}") for pid in (30, 10, 20)]
        snapshot = SystemSnapshot(processes={r.pid: r for r in records})

        assert list(snapshot.processes) == [30, 10, 20]

    def test_snapshot_is_frozen(self):
        """Test SystemSnapshot is immutable."""
        snapshot = SystemSnapshot()

        with pytest.raises(AttributeError):
            snapshot.cpu_percent = 50.0
