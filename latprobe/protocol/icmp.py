"""
ICMP probe.

There is no handshake and no server side: every iteration runs one echo
request through the platform ``ping`` command.
"""

import logging
import platform
import subprocess
from math import ceil
from typing import List, Optional

from ..core.errors import ProbeError, ProbeIOError
from ..core.models import Endpoint


class SystemPinger:
    """Sends a single ICMP echo request using the OS ping command."""

    def __init__(self, timeout: float, system: Optional[str] = None):
        if timeout <= 0:
            raise ValueError("timeout must be positive")

        self.timeout = timeout
        self.system = system or platform.system()
        self.logger = logging.getLogger(__name__)

    def build_command(self, ip: str) -> List[str]:
        """Build platform-specific ping command."""
        if self.system == "Windows":
            return ["ping", "-n", "1", "-w", str(int(self.timeout * 1000)), ip]
        if self.system == "Linux":
            cmd = ["ping", "-c", "1", "-W", str(max(1, ceil(self.timeout))), ip]
        else:
            # BSD -W has different semantics, rely on the subprocess timeout
            cmd = ["ping", "-c", "1", ip]
        if ":" in ip and self.system != "Linux":
            cmd[0] = "ping6"
        return cmd

    def ping(self, ip: str) -> None:
        """Ping ``ip`` once; raise ProbeIOError when no reply arrives."""
        cmd = self.build_command(ip)
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout + 0.5
            )
        except subprocess.TimeoutExpired:
            raise ProbeIOError(f"ping timeout ({self.timeout}s)")
        except OSError as e:
            raise ProbeIOError(f"ping failed: {e}")

        if result.returncode != 0:
            output = (result.stderr or result.stdout).strip().splitlines()
            detail = output[-1] if output else f"exit code {result.returncode}"
            self.logger.debug(f"ping {ip} returned {result.returncode}")
            raise ProbeIOError(f"no reply from {ip}: {detail}")


class IcmpSession:
    """Client session delegating each iteration to an echo primitive."""

    def __init__(self, endpoint: Endpoint, timeout: float, pinger=None):
        self.endpoint = endpoint
        self.timeout = timeout
        self.pinger = pinger or SystemPinger(timeout)
        self._open = False

    def open(self) -> None:
        self._open = True

    def exchange(self) -> None:
        if not self._open:
            raise ProbeError("session is not open")
        self.pinger.ping(self.endpoint.host)

    def close(self) -> None:
        self._open = False
