"""
Newline-delimited JSON output: ``{"t":<unix time>,"v":<latency seconds>}``.
Failures are reported with ``v`` set to -1.
"""

import json
import time
from typing import Callable, Optional

from ..core.models import Failure
from .base import Sink

FAILURE_VALUE = -1


class NdjsonSink(Sink):
    """One JSON object per iteration on stdout."""

    suppress_loop_timeout = True

    def __init__(
        self,
        title: str = "",
        latency_warn: Optional[float] = None,
        stream=None,
        now: Callable[[], float] = time.time,
    ):
        super().__init__(title, latency_warn, stream)
        self._now = now

    def on_latency(self, latency: float) -> None:
        self._emit(latency)

    def on_failure(self, failure: Failure) -> None:
        self.logger.debug(f"iteration failed: {failure}")
        self._emit(FAILURE_VALUE)

    def _emit(self, value) -> None:
        line = json.dumps({"t": self._now(), "v": value}, separators=(",", ":"))
        self.write(line + "\n")
