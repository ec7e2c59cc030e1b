"""Tests for the process projection and selection helpers."""

import random

from proctop.models import ProcessStatus, SystemSnapshot
from proctop.projection import (
    RowStyle,
    clamp_selection,
    format_bytes,
    make_row,
    move_selection,
    project,
    row_cells,
)


def snapshot_of(records) -> SystemSnapshot:
    return SystemSnapshot(processes={r.pid: r for r in records})


def test_format_bytes_bytes():
    """Test format_bytes with byte values."""
    assert "B" in format_bytes(500)


def test_format_bytes_megabytes():
    """Test format_bytes with megabyte values."""
    assert "M" in format_bytes(5242880)


def test_format_bytes_gigabytes():
    """Test format_bytes with gigabyte values."""
    assert "G" in format_bytes(1073741824)


def test_row_cells(make_record):
    """Test the displayed cells of a record."""
    cells = row_cells(make_record(42, "python", 3.25, username="alice", rss=3 * 1024 * 1024))

    assert cells == ("42", "python", "alice", "3.2%", "3.0")


def test_row_cells_without_user(make_record):
    """Test a record without an owner renders an empty user cell."""
    assert row_cells(make_record(5, "kworker", username=None))[2] == ""


def test_row_styles_follow_status(make_record):
    """Test style hints: running emphasized, sleeping muted, zombie alert."""
    assert make_row(make_record(1, "a", status=ProcessStatus.RUNNING)).style is RowStyle.EMPHASIZE
    assert make_row(make_record(2, "b", status=ProcessStatus.SLEEPING)).style is RowStyle.MUTE
    assert make_row(make_record(3, "c", status=ProcessStatus.ZOMBIE)).style is RowStyle.ALERT
    assert make_row(make_record(4, "d", status=ProcessStatus.OTHER)).style is RowStyle.NORMAL


class TestProject:
    """Tests for project()."""

    def test_sorted_by_cpu_descending_with_stable_ties(self, scenario_records):
        """Test bash first, then the idle processes in snapshot order."""
        rows = project(snapshot_of(scenario_records), "")

        assert [row.pid for row in rows] == [2, 1, 3]

    def test_ties_follow_snapshot_order(self, make_record):
        """Test equal-CPU rows keep the snapshot's iteration order."""
        records = [make_record(pid, f"idle{pid}", 0.0) for pid in (9, 4, 7, 1)]

        assert [row.pid for row in project(snapshot_of(records), "")] == [9, 4, 7, 1]

    def test_deterministic(self, make_record):
        """Test the same snapshot and filter always project the same rows."""
        rng = random.Random(7)
        records = [
            make_record(pid, f"proc{pid}", rng.choice([0.0, 1.0, 2.5, 50.0]))
            for pid in range(1, 200)
        ]
        snapshot = snapshot_of(records)

        assert project(snapshot, "proc1") == project(snapshot, "proc1")

    def test_sort_order_holds_for_random_snapshot(self, make_record):
        """Test CPU is non-increasing down the projection."""
        rng = random.Random(11)
        records = [make_record(pid, f"p{pid}", rng.uniform(0, 400)) for pid in range(1, 100)]
        snapshot = snapshot_of(records)

        cpus = [snapshot.get(row.pid).cpu_percent for row in project(snapshot, "")]
        assert cpus == sorted(cpus, reverse=True)

    def test_cpu_above_100_is_not_normalized(self, make_record):
        """Test multi-core CPU sums are shown as reported."""
        rows = project(snapshot_of([make_record(1, "make", 250.0)]), "")

        assert rows[0].cells[3] == "250.0%"

    def test_empty_filter_keeps_everything(self, scenario_records):
        """Test an empty filter retains every row."""
        assert len(project(snapshot_of(scenario_records), "")) == 3

    def test_filter_is_case_insensitive(self, scenario_records):
        """Test filtering ignores case on both sides."""
        rows = project(snapshot_of(scenario_records), "BASH")

        assert [row.pid for row in rows] == [2]

    def test_filter_matches_any_displayed_field(self, scenario_records):
        """Test pid, user and CPU cells are all searchable."""
        snapshot = snapshot_of(scenario_records)

        assert [row.pid for row in project(snapshot, "alice")] == [2]
        assert [row.pid for row in project(snapshot, "2.5%")] == [2]
        assert [row.pid for row in project(snapshot, "zombie")] == [3]

    def test_filter_partitions_rows(self, make_record):
        """Test kept rows contain the filter and dropped rows do not."""
        records = [make_record(pid, name) for pid, name in enumerate(
            ["sshd", "bash", "Xorg", "systemd", "ssh-agent", "nginx"], start=10
        )]
        snapshot = snapshot_of(records)
        everything = project(snapshot, "")
        kept = project(snapshot, "sS")

        assert all("ss" in row.text.lower() for row in kept)
        dropped = [row for row in everything if row not in kept]
        assert dropped
        assert all("ss" not in row.text.lower() for row in dropped)

    def test_filter_with_no_match(self, scenario_records):
        """Test a filter that matches nothing yields no rows."""
        assert project(snapshot_of(scenario_records), "no-such-thing") == []

    def test_empty_snapshot(self):
        """Test projecting an empty snapshot."""
        assert project(SystemSnapshot(), "") == []


class TestSelection:
    """Tests for selection clamping and movement."""

    def test_clamp_empty_is_none(self):
        assert clamp_selection(3, 0) is None
        assert clamp_selection(None, 0) is None

    def test_clamp_none_starts_at_zero(self):
        assert clamp_selection(None, 5) == 0

    def test_clamp_past_end(self):
        assert clamp_selection(2, 1) == 0
        assert clamp_selection(10, 4) == 3

    def test_clamp_negative(self):
        assert clamp_selection(-1, 4) == 0

    def test_clamp_in_range_unchanged(self):
        assert clamp_selection(2, 4) == 2

    def test_move_selection_clamps_at_edges(self):
        """Test moving stops at the first and last row."""
        assert move_selection(0, -1, 3) == 0
        assert move_selection(2, 1, 3) == 2
        assert move_selection(1, 1, 3) == 2

    def test_move_selection_on_empty(self):
        assert move_selection(None, 1, 0) is None
