"""
Output sinks: one rendered event per probe iteration.
"""

from typing import Optional

from ..core.errors import ConfigError
from ..core.models import Endpoint
from .base import Sink, make_title, should_warn
from .chart import ChartSink, RollingBuffer
from .console import ConsoleSink
from .ndjson import NdjsonSink
from .trap import TrapConfig, TrapSink, UdpTrapNotifier, Units


def create_sink(
    kind: str,
    options: Optional[str],
    endpoint: Endpoint,
    frame_size: Optional[int] = None,
    latency_warn: Optional[float] = None,
    stream=None,
) -> Sink:
    """Build the sink selected on the command line."""
    title = make_title(endpoint, frame_size)
    if kind in ("regular", "syslog"):
        return ConsoleSink(title, latency_warn, stream)
    if kind == "chart":
        return ChartSink(title, latency_warn, stream)
    if kind == "ndjson":
        return NdjsonSink(title, latency_warn, stream)
    if kind == "trap":
        config = TrapConfig.parse(options)
        return TrapSink(UdpTrapNotifier(config), config.units, title, latency_warn, stream)
    raise ConfigError(f"Unknown output kind: {kind}")


__all__ = [
    "ChartSink",
    "ConsoleSink",
    "NdjsonSink",
    "RollingBuffer",
    "Sink",
    "TrapConfig",
    "TrapSink",
    "UdpTrapNotifier",
    "Units",
    "create_sink",
    "should_warn",
]
