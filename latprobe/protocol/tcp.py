"""
TCP probe: echo server and client session.
"""

import logging
import socket
import threading
from typing import Optional, Tuple

from ..core.errors import ConfigError, IntegrityError, ProbeError
from ..core.models import Endpoint
from .framing import (
    HELLO_SIZE,
    MAGIC,
    check_magic,
    decode_hello,
    encode_hello,
    recv_exact,
)

logger = logging.getLogger(__name__)


def _tune(conn: socket.socket, timeout: float) -> None:
    conn.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
    conn.settimeout(timeout)


class TcpSession:
    """One client connection: handshake, then request/response frames."""

    def __init__(self, endpoint: Endpoint, frame: bytes, timeout: float):
        self.endpoint = endpoint
        self.frame = frame
        self.timeout = timeout
        self._conn: Optional[socket.socket] = None

    def open(self) -> None:
        """Connect and perform the handshake."""
        conn = socket.create_connection(self.endpoint.address, timeout=self.timeout)
        try:
            _tune(conn, self.timeout)
            check_magic(recv_exact(conn, 1))
            conn.sendall(encode_hello(len(self.frame)))
        except BaseException:
            conn.close()
            raise
        self._conn = conn
        logger.info(f"connected to {self.endpoint}")

    def exchange(self) -> None:
        """Send the request frame and verify the echo."""
        if self._conn is None:
            raise ProbeError("session is not open")
        self._conn.sendall(self.frame)
        response = recv_exact(self._conn, len(self.frame))
        if response != self.frame:
            raise IntegrityError("invalid packet")

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None


class TcpEchoServer:
    """Mirrors frames back to every connected client, one thread per client.

    A read timeout is an error for the connection it happens on; a clean
    close between frames is a normal disconnect.
    """

    def __init__(self, address: Tuple[str, int], timeout: float):
        self.address = address
        self.timeout = timeout
        self.logger = logging.getLogger(__name__)

        self._running = False
        self._thread = None
        self._sock: Optional[socket.socket] = None

    def bind(self) -> Tuple[str, int]:
        """Bind the listening socket and return the bound address."""
        family = socket.AF_INET6 if ":" in self.address[0] else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind(self.address)
            sock.listen()
        except OSError as e:
            sock.close()
            raise ConfigError(f"Failed to bind {self.address[0]}:{self.address[1]}: {e}")
        # Wake up periodically so stop() is honoured
        sock.settimeout(0.5)
        self._sock = sock
        host, port = sock.getsockname()[:2]
        self.logger.info(f"TCP listening at {host}:{port}, timeout: {self.timeout}s")
        return host, port

    def serve_forever(self) -> None:
        """Accept connections until stopped."""
        if self._sock is None:
            self.bind()
        self._running = True
        self._serve()

    def _serve(self) -> None:
        while self._running:
            try:
                conn, addr = self._sock.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if not self._running:
                    break
                self.logger.error(f"Accept failed: {e}")
                continue
            peer = f"{addr[0]}:{addr[1]}"
            self.logger.info(f"{peer}: connected")
            worker = threading.Thread(target=self._handle, args=(conn, peer), daemon=True)
            worker.start()

    def start(self) -> Tuple[str, int]:
        """Start serving on a background thread and return the bound address."""
        if self._running:
            self.logger.warning("TCP server already running")
            return self._sock.getsockname()[:2]
        bound = self.bind()
        self._running = True
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()
        return bound

    def stop(self) -> None:
        """Stop accepting connections."""
        self._running = False
        if self._thread:
            self._thread.join(timeout=5)
            self._thread = None
        if self._sock:
            self._sock.close()
            self._sock = None
        self.logger.info("TCP server stopped")

    def _handle(self, conn: socket.socket, peer: str) -> None:
        try:
            with conn:
                self._echo(conn, peer)
        except (ProbeError, OSError) as e:
            self.logger.error(f"{peer}: {e or type(e).__name__}")
        else:
            self.logger.info(f"{peer}: disconnected")

    def _echo(self, conn: socket.socket, peer: str) -> None:
        _tune(conn, self.timeout)
        conn.sendall(bytes([MAGIC]))
        frame_size = decode_hello(recv_exact(conn, HELLO_SIZE))
        self.logger.info(f"{peer} frame size: {frame_size} bytes")
        while True:
            frame = recv_exact(conn, frame_size, allow_eof=True)
            if not frame:
                return
            conn.sendall(frame)
