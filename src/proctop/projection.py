"""Process projection: the sorted, filtered list of rows the UI shows.

Drawing, selection, mouse clicks and kill-by-selection all resolve through
``project()``; nothing else may decide what a row index means.
"""

from dataclasses import dataclass
from enum import Enum

from proctop.models import ProcessRecord, ProcessStatus, SystemSnapshot

COLUMNS = ("PID", "Name", "User", "CPU%", "MemMB")


class RowStyle(Enum):
    """Style hint for a table row, derived from the process status."""

    NORMAL = "normal"
    EMPHASIZE = "emphasize"
    MUTE = "mute"
    ALERT = "alert"


_STATUS_STYLES = {
    ProcessStatus.RUNNING: RowStyle.EMPHASIZE,
    ProcessStatus.SLEEPING: RowStyle.MUTE,
    ProcessStatus.ZOMBIE: RowStyle.ALERT,
}


@dataclass(slots=True, frozen=True)
class ProcessRow:
    """One visible row of the process table."""

    pid: int
    cells: tuple[str, ...]
    style: RowStyle

    @property
    def text(self) -> str:
        """The row as the filter sees it."""
        return " ".join(self.cells)


def format_bytes(size: int) -> str:
    """Format bytes as human-readable string."""
    for unit in ["B", "K", "M", "G", "T"]:
        if size < 1024:
            return f"{size:5.1f}{unit}" if unit != "B" else f"{size:5d}{unit}"
        size = size / 1024
    return f"{size:.1f}P"


def row_cells(record: ProcessRecord) -> tuple[str, ...]:
    """Render the display cells of a record, in COLUMNS order."""
    return (
        str(record.pid),
        record.name,
        record.username or "",
        f"{record.cpu_percent:.1f}%",
        f"{record.memory_rss / 1024 / 1024:.1f}",
    )


def make_row(record: ProcessRecord) -> ProcessRow:
    return ProcessRow(
        pid=record.pid,
        cells=row_cells(record),
        style=_STATUS_STYLES.get(record.status, RowStyle.NORMAL),
    )


def project(snapshot: SystemSnapshot, filter_text: str) -> list[ProcessRow]:
    """
    Build the visible rows for ``snapshot`` under ``filter_text``.

    Rows are sorted by CPU usage, descending. The sort is stable, so rows
    with equal CPU keep the snapshot's iteration order. A row is kept when
    its lower-cased text contains the lower-cased filter; an empty filter
    keeps every row.
    """
    records = sorted(snapshot.processes.values(), key=lambda r: r.cpu_percent, reverse=True)
    rows = [make_row(record) for record in records]

    needle = filter_text.lower()
    if not needle:
        return rows
    return [row for row in rows if needle in row.text.lower()]


def clamp_selection(selection: int | None, length: int) -> int | None:
    """
    Bring a selection index back into ``[0, length)``.

    An empty projection has no selection; a missing selection on a
    non-empty projection starts at the first row.
    """
    if length <= 0:
        return None
    if selection is None:
        return 0
    return min(max(selection, 0), length - 1)


def move_selection(selection: int | None, delta: int, length: int) -> int | None:
    """Move the selection by ``delta`` rows, clamped to the projection."""
    current = clamp_selection(selection, length)
    if current is None:
        return None
    return clamp_selection(current + delta, length)
