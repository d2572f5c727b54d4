"""Unit tests for the ICMP session and the system ping wrapper."""

import subprocess

import pytest

from latprobe.core.errors import ProbeError, ProbeIOError
from latprobe.core.models import Endpoint, Proto
from latprobe.protocol import icmp
from latprobe.protocol.icmp import IcmpSession, SystemPinger


class TestBuildCommand:
    """Test platform-specific command building."""

    def test_linux(self):
        pinger = SystemPinger(timeout=2.5, system="Linux")
        assert pinger.build_command("10.0.0.1") == ["ping", "-c", "1", "-W", "3", "10.0.0.1"]

    def test_linux_sub_second_timeout(self):
        pinger = SystemPinger(timeout=0.2, system="Linux")
        assert pinger.build_command("10.0.0.1")[4] == "1"

    def test_windows(self):
        pinger = SystemPinger(timeout=1.0, system="Windows")
        assert pinger.build_command("10.0.0.1") == ["ping", "-n", "1", "-w", "1000", "10.0.0.1"]

    def test_macos(self):
        pinger = SystemPinger(timeout=1.0, system="Darwin")
        assert pinger.build_command("10.0.0.1") == ["ping", "-c", "1", "10.0.0.1"]

    def test_macos_ipv6(self):
        pinger = SystemPinger(timeout=1.0, system="Darwin")
        assert pinger.build_command("::1")[0] == "ping6"

    def test_invalid_timeout(self):
        with pytest.raises(ValueError):
            SystemPinger(timeout=0)


class TestSystemPinger:
    """Test ping result classification with a mocked subprocess."""

    def _patch_run(self, monkeypatch, result=None, exc=None):
        calls = []

        def fake_run(cmd, **kwargs):
            calls.append((cmd, kwargs))
            if exc is not None:
                raise exc
            return result

        monkeypatch.setattr(icmp.subprocess, "run", fake_run)
        return calls

    def test_success(self, monkeypatch):
        ok = subprocess.CompletedProcess(["ping"], 0, stdout="time=1.2 ms", stderr="")
        calls = self._patch_run(monkeypatch, result=ok)
        SystemPinger(timeout=1.0, system="Linux").ping("10.0.0.1")
        assert calls[0][1]["timeout"] == pytest.approx(1.5)

    def test_no_reply(self, monkeypatch):
        failed = subprocess.CompletedProcess(
            ["ping"], 1, stdout="1 packets transmitted, 0 received, 100% packet loss", stderr=""
        )
        self._patch_run(monkeypatch, result=failed)
        with pytest.raises(ProbeIOError, match="100% packet loss"):
            SystemPinger(timeout=1.0, system="Linux").ping("10.0.0.1")

    def test_subprocess_timeout(self, monkeypatch):
        self._patch_run(monkeypatch, exc=subprocess.TimeoutExpired("ping", 1.5))
        with pytest.raises(ProbeIOError, match="timeout"):
            SystemPinger(timeout=1.0, system="Linux").ping("10.0.0.1")

    def test_ping_missing(self, monkeypatch):
        self._patch_run(monkeypatch, exc=FileNotFoundError("ping"))
        with pytest.raises(ProbeIOError, match="ping failed"):
            SystemPinger(timeout=1.0, system="Linux").ping("10.0.0.1")


class RecordingPinger:
    def __init__(self, fail=False):
        self.fail = fail
        self.targets = []

    def ping(self, ip):
        self.targets.append(ip)
        if self.fail:
            raise ProbeIOError("no reply")


class TestIcmpSession:
    """Session delegates each iteration to the pinger."""

    def test_exchange_pings_endpoint(self):
        pinger = RecordingPinger()
        session = IcmpSession(Endpoint("192.0.2.1", 0, Proto.ICMP), 1.0, pinger=pinger)
        session.open()
        session.exchange()
        session.exchange()
        assert pinger.targets == ["192.0.2.1", "192.0.2.1"]

    def test_failure_propagates(self):
        session = IcmpSession(Endpoint("192.0.2.1", 0, Proto.ICMP), 1.0, pinger=RecordingPinger(fail=True))
        session.open()
        with pytest.raises(ProbeIOError):
            session.exchange()

    def test_exchange_requires_open(self):
        session = IcmpSession(Endpoint("192.0.2.1", 0, Proto.ICMP), 1.0, pinger=RecordingPinger())
        with pytest.raises(ProbeError):
            session.exchange()
