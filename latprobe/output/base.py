"""
Output sink base class.
"""

import logging
import sys
from typing import Optional

import click

from ..core.errors import RenderError
from ..core.models import Endpoint, Failure, Latency, Outcome

CLREOL = "\x1b[0G\x1b[0K"


def should_warn(latency: float, threshold: Optional[float]) -> bool:
    """True when ``latency`` reaches the warn threshold (inclusive)."""
    return threshold is not None and latency >= threshold


def format_latency(latency: float) -> str:
    return f"latency: {latency} sec ({latency * 1000:.0f} ms)"


def make_title(endpoint: Endpoint, frame_size: Optional[int] = None) -> str:
    """Build the header shown above the chart, e.g. ``10.0.0.1:7000 (TCP) 1500 bytes``."""
    title = f"{click.style(str(endpoint), fg='green')} ({endpoint.proto})"
    if frame_size is not None:
        title += f" {click.style(str(frame_size), fg='cyan')} bytes"
    return title


class Sink:
    """Consumes one outcome per probe iteration."""

    suppress_loop_timeout = False

    def __init__(self, title: str = "", latency_warn: Optional[float] = None, stream=None):
        self.title = title
        self.latency_warn = latency_warn
        self.stream = stream if stream is not None else sys.stdout
        self.logger = logging.getLogger(type(self).__module__)

    def render(self, outcome: Outcome) -> None:
        """Render a single iteration outcome."""
        if isinstance(outcome, Latency):
            self.on_latency(outcome.seconds)
        elif isinstance(outcome, Failure):
            self.on_failure(outcome)
        else:
            raise TypeError(f"unexpected outcome: {outcome!r}")

    def on_latency(self, latency: float) -> None:
        raise NotImplementedError

    def on_failure(self, failure: Failure) -> None:
        raise NotImplementedError

    def loop_timeout(self) -> None:
        """The probe overran its interval."""
        if not self.suppress_loop_timeout:
            self.clear_line()
            self.logger.warning("loop timeout")

    def reset(self) -> None:
        """A new session has started."""

    def clear_line(self) -> None:
        """Erase cosmetic output on the current terminal line."""

    def close(self) -> None:
        """Release resources held by the sink."""

    def write(self, text: str, color: Optional[bool] = None) -> None:
        """Write to the output stream; failures are fatal."""
        try:
            click.echo(text, file=self.stream, nl=False, color=color)
        except OSError as e:
            raise RenderError(f"Failed to write output: {e}")
