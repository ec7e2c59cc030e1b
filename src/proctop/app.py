"""proctop - Main Textual application."""

import logging
import sys

from rich.table import Table
from rich.text import Text
from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal
from textual.css.query import NoMatches
from textual.widgets import Static

from proctop.config import Settings, parse_args
from proctop.logconfig import setup_logging
from proctop.models import SystemSnapshot
from proctop.monitor import SystemMonitor
from proctop.projection import COLUMNS, RowStyle
from proctop.session import (
    FrameView,
    KeyPress,
    MouseInput,
    MouseKind,
    Session,
    SnapshotProvider,
    TableArea,
    UIMode,
    format_duration,
)

logger = logging.getLogger(__name__)

ROW_STYLES = {
    RowStyle.EMPHASIZE: "green",
    RowStyle.MUTE: "yellow",
    RowStyle.ALERT: "red",
    RowStyle.NORMAL: "",
}

OVERLAY_CLASSES = {
    UIMode.SEARCHING: "-search",
    UIMode.CONFIRM_KILL: "-confirm",
    UIMode.ENTER_KILL_PID: "-kill-pid",
    UIMode.VIEWING_DETAIL: "-detail",
}

# Eighths of a cell, from empty to full
CHART_BLOCKS = " ▁▂▃▄▅▆▇█"

GIB = 1024**3


def render_chart(points: list[tuple[float, float]], width: int, height: int) -> str:
    """
    Draw CPU samples as vertical bars on a fixed 0-100 scale.

    The newest ``width`` samples are drawn left to right, one column each.
    """
    if width <= 0 or height <= 0:
        return ""
    values = [percent for _, percent in points[-width:]]
    levels = [round(min(max(value, 0.0), 100.0) / 100.0 * height * 8) for value in values]

    lines = []
    for row in range(height - 1, -1, -1):
        line = "".join(CHART_BLOCKS[min(max(level - row * 8, 0), 8)] for level in levels)
        lines.append(line.ljust(width))
    return "\n".join(lines)


def usage_bar(percent: float, color: str, width: int = 20) -> Text:
    """A ``[████░░░░]`` style bar for a percentage."""
    filled = min(int(percent / 100 * width), width)
    return Text.assemble(
        "[",
        ("█" * filled, color),
        ("░" * (width - filled), "dim"),
        "]",
    )


class CpuChart(Static):
    """Rolling chart of the global CPU percentage."""

    DEFAULT_CSS = """
    CpuChart {
        height: 8;
        border: solid $primary;
        color: cyan;
    }
    """

    def update_chart(self, view: FrameView) -> None:
        """Redraw the chart from the frame's history points."""
        first, last = view.cpu_bounds
        self.border_title = f"CPU Usage (%) {view.cpu_latest:5.1f}%"
        self.border_subtitle = f"frames {first:.0f}..{last:.0f}"
        self.update(Text(render_chart(view.cpu_points, self.size.width, self.size.height)))


class SystemInfo(Static):
    """Panel showing CPU, memory, swap and uptime."""

    DEFAULT_CSS = """
    SystemInfo {
        width: 1fr;
        border: solid $primary;
        padding: 0 1;
    }
    """

    def update_stats(self, snapshot: SystemSnapshot) -> None:
        """Update the statistics from a system snapshot."""
        self.update(self._get_info(snapshot))

    def _get_info(self, snapshot: SystemSnapshot) -> Text:
        if snapshot.memory_total == 0:
            return Text("Loading system info...")

        mem_percent = snapshot.memory_used / snapshot.memory_total * 100
        swap_percent = (
            snapshot.swap_used / snapshot.swap_total * 100 if snapshot.swap_total > 0 else 0.0
        )

        return Text.assemble(
            f"CPU Usage    : {snapshot.cpu_percent:>6.2f} % ",
            usage_bar(snapshot.cpu_percent, "green"),
            f"\nTotal Memory : {snapshot.memory_total / GIB:>8.2f} GB",
            f"\nUsed Memory  : {snapshot.memory_used / GIB:>8.2f} GB ",
            usage_bar(mem_percent, "cyan"),
            f"\nTotal Swap   : {snapshot.swap_total / GIB:>8.2f} GB",
            f"\nUsed Swap    : {snapshot.swap_used / GIB:>8.2f} GB ",
            usage_bar(swap_percent, "yellow"),
            f"\nUptime       : {format_duration(snapshot.uptime_seconds)}",
        )


class ProcessTable(Static):
    """The process table; draws exactly the rows of the frame's projection."""

    DEFAULT_CSS = """
    ProcessTable {
        height: 1fr;
        border: solid $primary;
    }
    """

    @property
    def visible_rows(self) -> int:
        # One line of the content area goes to the column header
        return max(0, self.size.height - 1)

    def area(self) -> TableArea:
        """Screen region of the table, borders included."""
        region = self.region
        return TableArea(region.x, region.y, region.width, region.height)

    def update_rows(self, view: FrameView) -> None:
        """Render the visible window of the projection."""
        title = f"Processes ({len(view.rows)})"
        if view.filter_text:
            title += f" filter: {view.filter_text}"
        self.border_title = title

        table = Table(
            box=None,
            expand=True,
            show_edge=False,
            pad_edge=False,
            padding=(0, 1),
            header_style="bold",
        )
        table.add_column("", width=2, no_wrap=True)
        for name in COLUMNS:
            if name == "Name":
                table.add_column(name, ratio=1, no_wrap=True, overflow="ellipsis")
            else:
                table.add_column(name, max_width=10, no_wrap=True, overflow="ellipsis")

        window = view.rows[view.offset : view.offset + self.visible_rows]
        for index, row in enumerate(window, start=view.offset):
            selected = index == view.selection
            style = ROW_STYLES[row.style]
            if selected:
                style = f"{style} on grey30".strip()
            table.add_row(">>" if selected else "", *row.cells, style=style)

        self.update(table)


class Overlay(Container):
    """Screen-sized layer holding the single active modal panel."""

    DEFAULT_CSS = """
    Overlay {
        layer: overlay;
        width: 100%;
        height: 100%;
        align: center middle;
        display: none;
    }

    Overlay #overlay-panel {
        width: 50%;
        height: auto;
        border: solid $accent;
        background: $surface;
        padding: 0 1;
    }

    Overlay #overlay-panel.-search {
        width: 80%;
    }

    Overlay #overlay-panel.-detail {
        width: 80%;
        height: 80%;
    }
    """

    def compose(self) -> ComposeResult:
        yield Static(id="overlay-panel")

    def show(self, view: FrameView) -> None:
        """Show the panel for the active mode, or hide it in normal mode."""
        self.display = view.mode is not UIMode.NORMAL
        panel = self.query_one("#overlay-panel", Static)
        for mode, css_class in OVERLAY_CLASSES.items():
            panel.set_class(mode is view.mode, css_class)
        if view.mode is UIMode.NORMAL:
            return

        panel.border_title = view.overlay_title
        if view.mode is UIMode.SEARCHING:
            # Draw the cursor as a reversed cell
            text = view.filter_text + " "
            cursor = view.filter_cursor
            panel.update(
                Text.assemble(text[:cursor], (text[cursor], "reverse"), text[cursor + 1 :])
            )
        else:
            panel.update(Text(view.overlay_text))


class ProctopApp(App):
    """Main proctop application."""

    TITLE = "proctop"
    SUB_TITLE = "Process Monitor"
    ENABLE_COMMAND_PALETTE = False

    CSS = """
    Screen {
        layout: vertical;
        layers: base overlay;
    }

    #middle {
        height: 25%;
    }

    #process-details {
        width: 1fr;
        border: solid $primary;
        padding: 0 1;
    }

    #help {
        height: 3;
        border: solid $primary;
    }
    """

    BINDINGS = [
        Binding("ctrl+c", "session_key('ctrl+c')", show=False, priority=True),
        Binding("ctrl+q", "session_key('ctrl+q')", show=False, priority=True),
    ]

    def __init__(
        self,
        provider: SnapshotProvider | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the ProctopApp."""
        super().__init__()
        self._settings = settings or Settings()
        self._provider = provider if provider is not None else SystemMonitor()
        self._session = Session(self._provider, self._settings)
        self._frame_timer = None

    @property
    def session(self) -> Session:
        return self._session

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield CpuChart(id="cpu-chart")
        yield Horizontal(
            Static(id="process-details"),
            SystemInfo(id="system-info"),
            id="middle",
        )
        yield ProcessTable(id="process-table")
        yield Static(id="help")
        yield Overlay(id="overlay")

    def on_mount(self) -> None:
        """Start the frame timer when the app is mounted."""
        self.query_one("#process-details", Static).border_title = "Process Details"
        self.query_one("#system-info", SystemInfo).border_title = "System Info"
        self.query_one("#help", Static).border_title = "Help"
        self._frame_timer = self.set_interval(self._settings.frame_interval, self._next_frame)

    def on_unmount(self) -> None:
        self._stop_frames()

    def _stop_frames(self) -> None:
        if self._frame_timer is not None:
            self._frame_timer.stop()
            self._frame_timer = None

    def _next_frame(self) -> None:
        """One tick: report layout, advance the session, draw."""
        if not self._session.running:
            return
        try:
            table = self.query_one(ProcessTable)
            chart = self.query_one(CpuChart)
        except NoMatches:
            # Widgets are gone once the app starts tearing down
            return
        self._session.set_layout(table.area(), chart.size.width)
        self._draw(self._session.frame())

    def _draw(self, view: FrameView) -> None:
        try:
            self.query_one(CpuChart).update_chart(view)
            self.query_one("#process-details", Static).update(Text(view.summary))
            self.query_one(SystemInfo).update_stats(view.snapshot)
            self.query_one(ProcessTable).update_rows(view)
            self.query_one("#help", Static).update(Text(view.help_text))
            self.query_one(Overlay).show(view)
        except NoMatches:
            return

    def _handle(self, event: KeyPress | MouseInput) -> None:
        """Feed one decoded event to the session and redraw."""
        self._session.dispatch(event)
        if not self._session.running:
            self._stop_frames()
            self.exit()
            return
        self._draw(self._session.view())

    def action_session_key(self, key: str) -> None:
        """Keys Textual would otherwise claim are ordinary keys for the session."""
        self._handle(KeyPress(key))

    def on_key(self, event: events.Key) -> None:
        event.stop()
        self._handle(KeyPress(event.key, event.character))

    def on_mouse_down(self, event: events.MouseDown) -> None:
        if event.button == 1:
            self._handle(
                MouseInput(MouseKind.PRIMARY_DOWN, int(event.screen_x), int(event.screen_y))
            )

    def on_mouse_scroll_up(self, event: events.MouseScrollUp) -> None:
        self._handle(MouseInput(MouseKind.SCROLL_UP, int(event.screen_x), int(event.screen_y)))

    def on_mouse_scroll_down(self, event: events.MouseScrollDown) -> None:
        self._handle(MouseInput(MouseKind.SCROLL_DOWN, int(event.screen_x), int(event.screen_y)))


def main(argv: list[str] | None = None) -> int:
    """Entry point for proctop application."""
    settings = parse_args(argv)
    setup_logging(settings)

    try:
        app = ProctopApp(settings=settings)
        app.run()
    except Exception as exc:
        logger.exception("proctop could not run")
        print(f"proctop: {exc}", file=sys.stderr)
        return 1
    return app.return_code or 0


if __name__ == "__main__":
    sys.exit(main())
