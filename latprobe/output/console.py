"""
Console output: latency log lines with a liveness spinner.
"""

from typing import Optional

from ..core.models import Failure
from .base import CLREOL, Sink, format_latency, should_warn

CAROUSEL_CHARS = "-\\|/"
CURSOR_BACK = "\x1b[D"


class ConsoleSink(Sink):
    """Regular and syslog output.

    Below the warn threshold a terminal shows a spinner instead of a log line.
    """

    def __init__(
        self,
        title: str = "",
        latency_warn: Optional[float] = None,
        stream=None,
        spinner: Optional[bool] = None,
    ):
        super().__init__(title, latency_warn, stream)
        if spinner is None:
            isatty = getattr(self.stream, "isatty", None)
            spinner = bool(isatty and isatty())
        self.spinner_enabled = spinner
        self.spinner_phase = 0

    def on_latency(self, latency: float) -> None:
        if should_warn(latency, self.latency_warn):
            self.clear_line()
            self.logger.warning(format_latency(latency))
        elif self.latency_warn is not None and self.spinner_enabled:
            self.write(CURSOR_BACK + CAROUSEL_CHARS[self.spinner_phase], color=True)
        else:
            self.logger.info(format_latency(latency))
        self.spinner_phase = (self.spinner_phase + 1) % len(CAROUSEL_CHARS)

    def on_failure(self, failure: Failure) -> None:
        self.clear_line()
        self.logger.error(str(failure))

    def clear_line(self) -> None:
        if self.spinner_enabled:
            self.write(CLREOL, color=True)
