"""
ASCII line chart output.

Keeps the most recent latency samples (in milliseconds) in a rolling window
and redraws the whole screen after every successful iteration.
"""

import shutil
import threading
from typing import Callable, List, Optional, Tuple

import click
import numpy as np

from ..core.models import Failure
from .base import Sink

MAX_POINTS = 1000
CLEAR_SCREEN = "\x1b[2J\x1b[1;1H"
POINT = "*"
STEM = "|"


class RollingBuffer:
    """Fixed-capacity window of samples, oldest discarded first.

    Starts zero-filled so the chart has a stable width from the first redraw.
    Pushes and reads are serialised by a lock.
    """

    def __init__(self, capacity: int = MAX_POINTS):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._data = np.zeros(capacity, dtype=np.float64)
        self._pos = 0  # index of the oldest sample
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return self.capacity

    def push(self, value: float) -> None:
        with self._lock:
            self._data[self._pos] = value
            self._pos = (self._pos + 1) % self.capacity

    def values(self) -> np.ndarray:
        """Copy of the window in insertion order."""
        with self._lock:
            return np.roll(self._data, -self._pos)

    def tail(self, count: int) -> np.ndarray:
        """The ``count`` most recent samples."""
        count = max(0, min(count, self.capacity))
        if count == 0:
            return np.empty(0, dtype=np.float64)
        return self.values()[-count:]


def render_chart(values: np.ndarray, height: int) -> List[str]:
    """Render ``values`` as an ASCII line chart of ``height`` rows.

    One column per sample. The y axis is labelled with the window maximum on
    the top row and the minimum on the bottom row.
    """
    height = max(height, 2)
    values = np.asarray(values, dtype=np.float64)
    width = len(values)
    if width == 0:
        return []

    lo = float(values.min())
    hi = float(values.max())
    span = hi - lo if hi > lo else 1.0
    levels = np.rint((values - lo) / span * (height - 1)).astype(int)

    grid = np.full((height, width), " ", dtype="<U1")
    prev = levels[0]
    for col, level in enumerate(levels):
        low, high = sorted((prev, level))
        grid[low:high + 1, col] = STEM
        grid[level, col] = POINT
        prev = level

    top, bottom = f"{hi:.0f}", f"{lo:.0f}"
    label_width = max(len(top), len(bottom))
    lines = []
    for row in range(height - 1, -1, -1):
        if row == height - 1:
            label = top
        elif row == 0:
            label = bottom
        else:
            label = ""
        lines.append(f"{label:>{label_width}} |" + "".join(grid[row]).rstrip())
    return lines


class ChartSink(Sink):
    """Full-screen chart of the rolling latency window."""

    suppress_loop_timeout = True

    def __init__(
        self,
        title: str = "",
        latency_warn: Optional[float] = None,
        stream=None,
        buffer: Optional[RollingBuffer] = None,
        terminal_size: Optional[Callable[[], Tuple[int, int]]] = None,
    ):
        super().__init__(title, latency_warn, stream)
        self.buffer = buffer or RollingBuffer()
        self._terminal_size = terminal_size or (lambda: tuple(shutil.get_terminal_size((80, 24))))

    def on_latency(self, latency: float) -> None:
        value = latency * 1000.0
        self.buffer.push(value)
        self.redraw(value)

    def on_failure(self, failure: Failure) -> None:
        self.logger.error(str(failure))

    def redraw(self, last: float) -> None:
        columns, rows = self._terminal_size()
        label_width = 8
        width = max(2, min(columns - label_width - 2, self.buffer.capacity))
        height = max(2, rows - 2)
        lines = render_chart(self.buffer.tail(width), height)
        header = f"{self.title}: {click.style(f'{last:.0f}', fg='white', bold=True)} ms"
        self.write(CLEAR_SCREEN, color=True)
        self.write("\n".join([header] + lines) + "\n")
