"""
latprobe - TCP/UDP/ICMP latency probe

Sends a fixed payload to a remote endpoint at a steady cadence, verifies the
echo and reports the round-trip time to the console, syslog, an ASCII chart,
NDJSON or an external monitor. Also ships the matching TCP and UDP echo
servers.
"""

__version__ = "1.0.0"
__license__ = "MIT"

from .core.config import Config
from .core.logger import setup_logging

__all__ = ["Config", "setup_logging"]
