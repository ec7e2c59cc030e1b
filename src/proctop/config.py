"""Runtime configuration for proctop."""

import argparse
from dataclasses import dataclass
from pathlib import Path

from proctop.history import MAX_CHART_POINTS

APP_NAME = "proctop"

FRAME_INTERVAL = 0.016  # seconds, ~60 Hz input/redraw ceiling
PROCESS_REFRESH_FRAMES = 60  # full process table refresh every N frames
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass(frozen=True)
class Settings:
    """Knobs for the session loop and its logging."""

    frame_interval: float = FRAME_INTERVAL
    process_refresh_frames: int = PROCESS_REFRESH_FRAMES
    chart_max_width: int = MAX_CHART_POINTS
    log_file: Path | None = None
    log_level: str = "WARNING"


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Interactive terminal dashboard for observing and killing processes.",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Write diagnostic logs to this file (the terminal is owned by the UI)",
    )
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        default="WARNING",
        help="Log level for --log-file (default: WARNING)",
    )
    parser.add_argument(
        "--refresh-frames",
        type=_positive_int,
        default=PROCESS_REFRESH_FRAMES,
        help=f"Refresh the process table every N frames (default: {PROCESS_REFRESH_FRAMES})",
    )
    parser.add_argument(
        "--chart-width",
        type=_positive_int,
        default=MAX_CHART_POINTS,
        help=f"Maximum number of CPU samples kept for the chart (default: {MAX_CHART_POINTS})",
    )
    return parser


def parse_args(argv: list[str] | None = None) -> Settings:
    """Build Settings from the command line."""
    args = build_parser().parse_args(argv)
    return Settings(
        process_refresh_frames=args.refresh_frames,
        chart_max_width=args.chart_width,
        log_file=args.log_file,
        log_level=args.log_level,
    )
