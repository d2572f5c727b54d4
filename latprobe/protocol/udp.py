"""
UDP probe: echo server and client session.
"""

import logging
import socket
import threading
from typing import Optional, Tuple

from ..core.errors import ConfigError, IntegrityError, ProbeError
from ..core.models import Endpoint

RECV_BUFFER_SIZE = 65535


class UdpSession:
    """Connectionless client: one datagram out, one datagram back."""

    def __init__(self, endpoint: Endpoint, frame: bytes, timeout: float):
        self.endpoint = endpoint
        self.frame = frame
        self.timeout = timeout
        self._sock: Optional[socket.socket] = None

    def open(self) -> None:
        """Bind an ephemeral local socket."""
        sock = socket.socket(self.endpoint.family, socket.SOCK_DGRAM)
        sock.settimeout(self.timeout)
        self._sock = sock

    def exchange(self) -> None:
        """Send the request datagram and verify the echo."""
        if self._sock is None:
            raise ProbeError("session is not open")
        self._sock.sendto(self.frame, self.endpoint.address)
        response = self._sock.recv(max(RECV_BUFFER_SIZE, len(self.frame) + 1))
        if len(response) != len(self.frame) or response != self.frame:
            raise IntegrityError("invalid packet")

    def close(self) -> None:
        if self._sock is not None:
            self._sock.close()
            self._sock = None


class UdpEchoServer:
    """Sends every datagram back to its sender, one datagram at a time."""

    def __init__(self, address: Tuple[str, int]):
        self.address = address
        self.logger = logging.getLogger(__name__)

        self._running = False
        self._thread = None
        self._sock: Optional[socket.socket] = None

    def bind(self) -> Tuple[str, int]:
        """Bind the server socket and return the bound address."""
        family = socket.AF_INET6 if ":" in self.address[0] else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_DGRAM)
        try:
            sock.bind(self.address)
        except OSError as e:
            sock.close()
            raise ConfigError(f"Failed to bind {self.address[0]}:{self.address[1]}: {e}")
        sock.settimeout(0.5)
        self._sock = sock
        host, port = sock.getsockname()[:2]
        self.logger.info(f"UDP listening at {host}:{port}")
        return host, port

    def serve_forever(self) -> None:
        """Echo datagrams until stopped."""
        if self._sock is None:
            self.bind()
        self._running = True
        self._serve()

    def _serve(self) -> None:
        while self._running:
            try:
                data, addr = self._sock.recvfrom(RECV_BUFFER_SIZE)
            except socket.timeout:
                continue
            except OSError as e:
                if not self._running:
                    break
                self.logger.error(f"Receive failed: {e}")
                continue
            try:
                self._sock.sendto(data, addr)
            except OSError as e:
                self.logger.error(f"{addr[0]}:{addr[1]}: {e}")

    def start(self) -> Tuple[str, int]:
        """Start serving on a background thread and return the bound address."""
        if self._running:
            self.logger.warning("UDP server already running")
            return self._sock.getsockname()[:2]
        bound = self.bind()
        self._running = True
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()
        return bound

    def stop(self) -> None:
        """Stop the receive loop."""
        self._running = False
        if self._thread:
            self._thread.join(timeout=5)
            self._thread = None
        if self._sock:
            self._sock.close()
            self._sock = None
        self.logger.info("UDP server stopped")
