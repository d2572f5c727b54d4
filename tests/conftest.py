"""Shared fixtures for latprobe tests."""

import logging
import signal
import socket
import threading

import pytest

from latprobe.protocol import TcpEchoServer, UdpEchoServer


class FakeClock:
    """Monotonic clock that only moves when told to (or when slept on)."""

    def __init__(self, start: float = 100.0, oversleep: float = 0.0):
        self.now = start
        self.oversleep = oversleep
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds + self.oversleep

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def tcp_server():
    """TCP echo server on an ephemeral loopback port."""
    server = TcpEchoServer(("127.0.0.1", 0), timeout=2.0)
    address = server.start()
    yield address
    server.stop()


@pytest.fixture
def udp_server():
    """UDP echo server on an ephemeral loopback port."""
    server = UdpEchoServer(("127.0.0.1", 0))
    address = server.start()
    yield address
    server.stop()


@pytest.fixture
def one_shot_tcp():
    """Start a TCP listener that serves a single connection with ``handler``.

    Returns a factory; the factory returns (port, result dict).
    """
    threads = []

    def start(handler):
        srv = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        srv.bind(("127.0.0.1", 0))
        srv.listen(1)
        result = {}

        def run():
            try:
                conn, _ = srv.accept()
                with conn:
                    conn.settimeout(2.0)
                    handler(conn, result)
            finally:
                srv.close()

        thread = threading.Thread(target=run, daemon=True)
        thread.start()
        threads.append(thread)
        return srv.getsockname()[1], result

    yield start
    for thread in threads:
        thread.join(timeout=3)


@pytest.fixture
def restore_logging():
    """Undo root logger changes made by setup_logging()."""
    root = logging.getLogger()
    level = root.level
    package_level = logging.getLogger("latprobe").level
    yield
    # pytest manages its own capture handlers per test phase
    for handler in root.handlers[:]:
        if not type(handler).__module__.startswith("_pytest"):
            handler.close()
            root.removeHandler(handler)
    root.setLevel(level)
    logging.getLogger("latprobe").setLevel(package_level)


@pytest.fixture
def restore_signals():
    """The CLI installs SIGINT/SIGTERM handlers; put the originals back."""
    saved = {sig: signal.getsignal(sig) for sig in (signal.SIGINT, signal.SIGTERM)}
    yield
    for sig, handler in saved.items():
        signal.signal(sig, handler)
