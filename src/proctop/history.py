"""Rolling CPU usage history for the chart."""

from collections import deque

# The chart never draws more than this many samples, whatever its width
MAX_CHART_POINTS = 120


class CpuHistory:
    """
    Bounded, time-ordered (sequence, percent) samples.

    The bound follows the chart width, which can change between frames, so
    eviction is explicit rather than a fixed ``deque(maxlen=...)``.
    """

    def __init__(self, max_points: int = MAX_CHART_POINTS) -> None:
        self._max_points = max_points
        self._samples: deque[tuple[float, float]] = deque()

    def __len__(self) -> int:
        return len(self._samples)

    def record(self, sequence: int, percent: float) -> None:
        """Append one sample tagged with a monotonically increasing sequence."""
        self._samples.append((float(sequence), float(percent)))

    def evict_overflow(self, max_len: int) -> None:
        """Drop the oldest samples until at most ``max_len`` remain."""
        limit = max(0, min(max_len, self._max_points))
        while len(self._samples) > limit:
            self._samples.popleft()

    def points(self) -> list[tuple[float, float]]:
        """Copy of the retained samples, oldest first."""
        return list(self._samples)

    def bounds(self) -> tuple[float, float]:
        """Horizontal axis bounds: first and last retained sequence numbers."""
        if not self._samples:
            return (0.0, 1.0)
        return (self._samples[0][0], self._samples[-1][0])

    def latest(self) -> float:
        """Most recent percentage, 0.0 before the first sample."""
        return self._samples[-1][1] if self._samples else 0.0
