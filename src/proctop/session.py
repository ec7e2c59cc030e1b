"""Interactive session: UI modes, command dispatch and the frame cadence.

A ``Session`` owns every piece of mutable UI state. The renderer drives it
with two calls: ``frame()`` once per tick and ``dispatch()`` once per decoded
input event. Both run on the same thread and never overlap.
"""

import logging
import string
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Protocol

from proctop.config import Settings
from proctop.history import CpuHistory
from proctop.models import SignalKind, SystemSnapshot
from proctop.projection import (
    ProcessRow,
    clamp_selection,
    format_bytes,
    move_selection,
    project,
)

logger = logging.getLogger(__name__)

# Top border plus column header above the first process row
TABLE_HEADER_ROWS = 2
# Bottom border below the last process row
TABLE_FOOTER_ROWS = 1

QUIT_KEYS = frozenset({"q", "escape", "ctrl+c"})
DOWN_KEYS = frozenset({"down", "j"})
UP_KEYS = frozenset({"up", "k"})
SEARCH_KEYS = frozenset({"s", "slash"})

HELP_TEXT = (
    "[q/Esc] Quit  [s or /] Search  [j/k] Move  [d] Kill  [p] Kill by PID  "
    "[Enter] Details  [In Search: Esc/Enter] Exit Search  [In Details: Esc] Close"
)


class UIMode(Enum):
    """Which modal overlay, if any, currently owns the input."""

    NORMAL = "normal"
    SEARCHING = "searching"
    CONFIRM_KILL = "confirm_kill"
    ENTER_KILL_PID = "enter_kill_pid"
    VIEWING_DETAIL = "viewing_detail"


class MouseKind(Enum):
    """Mouse events the session reacts to."""

    SCROLL_UP = "scroll_up"
    SCROLL_DOWN = "scroll_down"
    PRIMARY_DOWN = "primary_down"


@dataclass(slots=True, frozen=True)
class KeyPress:
    """A decoded key press, named the way Textual names keys."""

    key: str
    character: str | None = None

    @property
    def digit(self) -> str | None:
        """The ASCII digit typed, if this press is one."""
        char = self.character if self.character is not None else self.key
        if len(char) == 1 and char in string.digits:
            return char
        return None


@dataclass(slots=True, frozen=True)
class MouseInput:
    """A decoded mouse event in screen coordinates."""

    kind: MouseKind
    column: int
    row: int


@dataclass(slots=True, frozen=True)
class TableArea:
    """Screen region of the process table, borders included."""

    x: int
    y: int
    width: int
    height: int

    @property
    def visible_rows(self) -> int:
        """How many process rows fit between the header and bottom border."""
        return max(0, self.height - TABLE_HEADER_ROWS - TABLE_FOOTER_ROWS)

    def content_index(self, column: int, row: int) -> int | None:
        """Map a screen cell to a content row number, None outside the rows."""
        if not self.x <= column < self.x + self.width:
            return None
        first = self.y + TABLE_HEADER_ROWS
        if not first <= row < first + self.visible_rows:
            return None
        return row - first

    def contains(self, column: int, row: int) -> bool:
        return self.x <= column < self.x + self.width and self.y <= row < self.y + self.height


class SnapshotProvider(Protocol):
    """What the session needs from the process inspector."""

    def refresh_all(self) -> None: ...

    def refresh_cpu_only(self) -> None: ...

    def current_snapshot(self) -> SystemSnapshot: ...

    def send_signal(self, pid: int, kind: SignalKind) -> bool: ...

    def uptime_seconds(self) -> int: ...


class LineBuffer:
    """Single-line text editor with a cursor, used for the search filter."""

    def __init__(self, text: str = "") -> None:
        self.text = text
        self.cursor = len(text)

    def clear(self) -> None:
        self.text = ""
        self.cursor = 0

    def insert(self, chars: str) -> None:
        self.text = self.text[: self.cursor] + chars + self.text[self.cursor :]
        self.cursor += len(chars)

    def edit(self, event: KeyPress) -> bool:
        """
        Apply an editing key to the buffer.

        Returns True when the key was understood as an edit.
        """
        key = event.key
        if key == "backspace":
            if self.cursor > 0:
                self.text = self.text[: self.cursor - 1] + self.text[self.cursor :]
                self.cursor -= 1
        elif key == "delete":
            self.text = self.text[: self.cursor] + self.text[self.cursor + 1 :]
        elif key == "left":
            self.cursor = max(0, self.cursor - 1)
        elif key == "right":
            self.cursor = min(len(self.text), self.cursor + 1)
        elif key == "home":
            self.cursor = 0
        elif key == "end":
            self.cursor = len(self.text)
        elif key == "ctrl+u":
            self.clear()
        elif event.character and event.character.isprintable():
            self.insert(event.character)
        else:
            return False
        return True


@dataclass(slots=True, frozen=True)
class FrameView:
    """Everything the renderer draws for one frame."""

    frame: int
    snapshot: SystemSnapshot
    cpu_points: list[tuple[float, float]]
    cpu_bounds: tuple[float, float]
    cpu_latest: float
    rows: list[ProcessRow]
    selection: int | None
    offset: int
    mode: UIMode
    filter_text: str
    filter_cursor: int
    overlay_title: str
    overlay_text: str
    summary: str
    help_text: str = HELP_TEXT


def format_duration(seconds: float) -> str:
    """Format seconds as ``DDd HHh MMm SSs``."""
    seconds = int(seconds)
    days = seconds // 86400
    hours = (seconds % 86400) // 3600
    minutes = (seconds % 3600) // 60
    return f"{days:02d}d {hours:02d}h {minutes:02d}m {seconds % 60:02d}s"


class Session:
    """
    One interactive monitoring session.

    State transitions follow the active ``UIMode``; events that the mode
    does not list are ignored. Only plain values (row indices, pids) are
    kept between events, never rows or records.
    """

    def __init__(self, provider: SnapshotProvider, settings: Settings | None = None) -> None:
        self._provider = provider
        self._settings = settings or Settings()
        self.running = True
        self.mode = UIMode.NORMAL
        self.frame_count = 0
        self.snapshot = provider.current_snapshot()
        self.filter = LineBuffer()
        self.kill_pid_input = ""
        self.pending_kill: int | None = None
        self.history = CpuHistory(self._settings.chart_max_width)
        self.chart_width = self._settings.chart_max_width
        self.table_area: TableArea | None = None
        self.offset = 0
        self.selection: int | None = None
        self._reconcile(self.projection())

    # -- projection -------------------------------------------------------

    def projection(self) -> list[ProcessRow]:
        """The visible rows for the current snapshot and filter."""
        return project(self.snapshot, self.filter.text)

    def _reconcile(self, rows: list[ProcessRow]) -> None:
        """Clamp the selection and keep it inside the table viewport."""
        self.selection = clamp_selection(self.selection, len(rows))

        visible = self.table_area.visible_rows if self.table_area else len(rows)
        if self.selection is None or visible <= 0:
            self.offset = 0
            return
        if self.selection < self.offset:
            self.offset = self.selection
        elif self.selection >= self.offset + visible:
            self.offset = self.selection - visible + 1
        self.offset = max(0, min(self.offset, len(rows) - visible))

    def selected_row(self) -> ProcessRow | None:
        rows = self.projection()
        self._reconcile(rows)
        if self.selection is None:
            return None
        return rows[self.selection]

    # -- frame cadence ----------------------------------------------------

    def set_layout(self, table_area: TableArea | None, chart_width: int) -> None:
        """Record where the renderer put the table and how wide the chart is."""
        self.table_area = table_area
        # Before the first layout pass widgets report a zero size
        self.chart_width = chart_width if chart_width > 0 else self._settings.chart_max_width

    def frame(self) -> FrameView:
        """
        Advance one frame: refresh data, sample CPU, then compose the view.

        The process table is only refreshed every ``process_refresh_frames``
        frames; the global CPU figure is refreshed on every frame.
        """
        self.frame_count += 1
        if self.frame_count % self._settings.process_refresh_frames == 0:
            self._provider.refresh_all()
        self._provider.refresh_cpu_only()
        self.snapshot = self._provider.current_snapshot()

        self.history.record(self.frame_count, self.snapshot.cpu_percent)
        self.history.evict_overflow(self.chart_width)
        return self.view()

    def view(self) -> FrameView:
        """Compose the current state for drawing, without advancing time."""
        rows = self.projection()
        self._reconcile(rows)
        title, text = self._overlay(rows)
        return FrameView(
            frame=self.frame_count,
            snapshot=self.snapshot,
            cpu_points=self.history.points(),
            cpu_bounds=self.history.bounds(),
            cpu_latest=self.history.latest(),
            rows=rows,
            selection=self.selection,
            offset=self.offset,
            mode=self.mode,
            filter_text=self.filter.text,
            filter_cursor=self.filter.cursor,
            overlay_title=title,
            overlay_text=text,
            summary=self._summary(rows),
        )

    # -- dispatch ---------------------------------------------------------

    def dispatch(self, event: KeyPress | MouseInput) -> None:
        """Apply one input event to the session."""
        if isinstance(event, MouseInput):
            self._on_mouse(event)
        else:
            handler = {
                UIMode.NORMAL: self._on_normal_key,
                UIMode.SEARCHING: self._on_search_key,
                UIMode.CONFIRM_KILL: self._on_confirm_key,
                UIMode.ENTER_KILL_PID: self._on_kill_pid_key,
                UIMode.VIEWING_DETAIL: self._on_detail_key,
            }[self.mode]
            handler(event)
        self._reconcile(self.projection())

    def _enter(self, mode: UIMode) -> None:
        if mode is not self.mode:
            logger.debug("Mode %s -> %s", self.mode.value, mode.value)
        self.mode = mode

    def _on_normal_key(self, event: KeyPress) -> None:
        key = event.key
        if key in QUIT_KEYS:
            self.running = False
        elif key in DOWN_KEYS:
            self.selection = move_selection(self.selection, 1, len(self.projection()))
        elif key in UP_KEYS:
            self.selection = move_selection(self.selection, -1, len(self.projection()))
        elif key in SEARCH_KEYS:
            self._enter(UIMode.SEARCHING)
        elif key == "d":
            self.request_kill()
        elif key == "p":
            self.kill_pid_input = ""
            self._enter(UIMode.ENTER_KILL_PID)
        elif key == "enter":
            self._enter(UIMode.VIEWING_DETAIL)

    def _on_search_key(self, event: KeyPress) -> None:
        if event.key in ("escape", "enter"):
            # The filter is applied live; leaving the mode just keeps it
            self._enter(UIMode.NORMAL)
        else:
            self.filter.edit(event)

    def _on_confirm_key(self, event: KeyPress) -> None:
        digit = event.digit
        if digit == "1":
            self._resolve_kill(SignalKind.TERMINATE)
        elif digit == "2":
            self._resolve_kill(SignalKind.KILL)
        elif event.key == "escape":
            self.pending_kill = None
            self._enter(UIMode.NORMAL)

    def _on_kill_pid_key(self, event: KeyPress) -> None:
        digit = event.digit
        if digit is not None:
            self.kill_pid_input += digit
        elif event.key == "backspace":
            self.kill_pid_input = self.kill_pid_input[:-1]
        elif event.key == "enter":
            self.kill_by_pid(self.kill_pid_input)
            self.kill_pid_input = ""
            self._enter(UIMode.NORMAL)
        elif event.key == "escape":
            self.kill_pid_input = ""
            self._enter(UIMode.NORMAL)

    def _on_detail_key(self, event: KeyPress) -> None:
        if event.key == "escape":
            self._enter(UIMode.NORMAL)

    def _on_mouse(self, event: MouseInput) -> None:
        area = self.table_area
        if self.mode is not UIMode.NORMAL or area is None:
            return
        if not area.contains(event.column, event.row):
            return

        length = len(self.projection())
        if event.kind is MouseKind.SCROLL_UP:
            self.selection = move_selection(self.selection, -1, length)
        elif event.kind is MouseKind.SCROLL_DOWN:
            self.selection = move_selection(self.selection, 1, length)
        elif event.kind is MouseKind.PRIMARY_DOWN:
            content_row = area.content_index(event.column, event.row)
            if content_row is None:
                return
            index = self.offset + content_row
            if index < length:
                self.selection = index

    # -- kill commands ----------------------------------------------------

    def request_kill(self) -> None:
        """Capture the selected pid and ask which signal to send."""
        row = self.selected_row()
        if row is None:
            return
        self.pending_kill = row.pid
        self._enter(UIMode.CONFIRM_KILL)

    def _resolve_kill(self, kind: SignalKind) -> None:
        if self.pending_kill is not None:
            self.send_signal(self.pending_kill, kind)
        self.pending_kill = None
        self._enter(UIMode.NORMAL)

    def send_signal(self, pid: int, kind: SignalKind) -> bool:
        """
        Deliver ``kind`` to ``pid`` if it is part of the current snapshot.

        Failures are expected races with the OS; the next refresh shows
        whatever actually happened.
        """
        if pid not in self.snapshot:
            logger.debug("Not signalling %d: not in the current snapshot", pid)
            return False
        return self._provider.send_signal(pid, kind)

    def kill_by_pid(self, text: str) -> None:
        """Force-kill the pid typed in ``text``; bad input is ignored."""
        if not text or any(char not in string.digits for char in text):
            return
        self.send_signal(int(text), SignalKind.KILL)

    # -- overlay text -----------------------------------------------------

    def _overlay(self, rows: list[ProcessRow]) -> tuple[str, str]:
        if self.mode is UIMode.SEARCHING:
            return "Search (active)", self.filter.text
        if self.mode is UIMode.CONFIRM_KILL:
            record = self.snapshot.get(self.pending_kill) if self.pending_kill is not None else None
            target = f"{self.pending_kill} ({record.name})" if record else str(self.pending_kill)
            return (
                "Kill process",
                f"Send signal to PID {target}:\n"
                "[1] SIGTERM (graceful)\n[2] SIGKILL (force)\n[Esc] Cancel",
            )
        if self.mode is UIMode.ENTER_KILL_PID:
            return (
                "Kill by PID",
                f"Enter PID to kill with SIGKILL:\n[{self.kill_pid_input}]\n"
                "[Enter] Kill   [Esc] Cancel",
            )
        if self.mode is UIMode.VIEWING_DETAIL:
            return "Process Details (Press Esc to close)", self._detail(rows)
        return "", ""

    def _detail(self, rows: list[ProcessRow]) -> str:
        record = None
        if self.selection is not None:
            record = self.snapshot.get(rows[self.selection].pid)
        if record is None:
            return "No process selected"

        started = (
            datetime.fromtimestamp(record.start_time).strftime("%Y-%m-%d %H:%M:%S")
            if record.start_time
            else "Unknown"
        )
        return (
            f"Process Details for PID {record.pid}\n\n"
            f"Executable: {record.exe or 'Unknown'}\n"
            f"Command: {' '.join(record.cmdline)}\n"
            f"Working Directory: {record.cwd or 'Unknown'}\n"
            f"Status: {record.status.value}\n"
            f"Start Time: {started}\n"
            f"Run Time: {format_duration(record.run_time)}\n\n"
            "Memory Usage:\n"
            f"- Physical: {format_bytes(record.memory_rss)}\n"
            f"- Virtual: {format_bytes(record.memory_vms)}\n"
            "Disk Usage:\n"
            f"- Read: {format_bytes(record.disk_read_bytes)}\n"
            f"- Written: {format_bytes(record.disk_write_bytes)}"
        )

    def _summary(self, rows: list[ProcessRow]) -> str:
        if self.selection is None:
            return "No process selected"
        record = self.snapshot.get(rows[self.selection].pid)
        if record is None:
            return "No process selected"
        return (
            f"PID: {record.pid}\n"
            f"Name: {record.name}\n"
            f"CPU: {record.cpu_percent:.2f}%\n"
            f"Memory: {record.memory_rss / 1024 / 1024:.2f} MB\n"
            f"Status: {record.status.value}"
        )
