"""
Data models for latprobe.
"""

import ipaddress
import os
import socket
from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Union

from .errors import ConfigError

MIN_FRAME_SIZE = 1
MAX_FRAME_SIZE = 10_000_000
MAX_UDP_FRAME_SIZE = 65507


class Mode(str, Enum):
    CLIENT = "client"
    SERVER = "server"


class Proto(str, Enum):
    TCP = "tcp"
    UDP = "udp"
    ICMP = "icmp"

    def __str__(self) -> str:
        return self.value.upper()


@dataclass(frozen=True)
class Endpoint:
    """Resolved target address plus the transport used to reach it."""
    host: str
    port: int
    proto: Proto

    @property
    def family(self) -> int:
        return socket.AF_INET6 if ":" in self.host else socket.AF_INET

    @property
    def address(self) -> Tuple[str, int]:
        return (self.host, self.port)

    def __str__(self) -> str:
        if self.port == 0:
            return self.host
        if self.family == socket.AF_INET6:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"


@dataclass(frozen=True)
class Latency:
    """Successful iteration; round-trip time in seconds."""
    seconds: float


@dataclass(frozen=True)
class Failure:
    """Failed iteration."""
    cause: BaseException

    def __str__(self) -> str:
        return str(self.cause) or type(self.cause).__name__


Outcome = Union[Latency, Failure]


def split_host_port(path: str) -> Tuple[str, int]:
    """Split ``host:port`` or ``[v6]:port`` into its parts."""
    if path.startswith("["):
        host, sep, rest = path[1:].partition("]")
        if not sep or not rest.startswith(":"):
            raise ConfigError(f"invalid socket addr: {path}")
        port_str = rest[1:]
    else:
        host, sep, port_str = path.rpartition(":")
        if not sep:
            raise ConfigError(f"invalid socket addr: {path}")
    try:
        port = int(port_str)
    except ValueError:
        raise ConfigError(f"invalid port: {port_str}")
    if not 0 <= port <= 65535:
        raise ConfigError(f"invalid port: {port}")
    return host, port


def _resolve_host(host: str) -> str:
    try:
        return str(ipaddress.ip_address(host))
    except ValueError:
        pass
    try:
        infos = socket.getaddrinfo(host, None)
    except (socket.gaierror, UnicodeError) as e:
        raise ConfigError(f"invalid ip/host {host}: {e}")
    if not infos:
        raise ConfigError(f"invalid ip/host: {host}")
    return infos[0][4][0]


def resolve_endpoint(path: str, proto: Proto) -> Endpoint:
    """Resolve the command-line target into an Endpoint."""
    if not path:
        raise ConfigError("target path is empty")
    if proto == Proto.ICMP:
        host = path.strip("[]")
        return Endpoint(_resolve_host(host), 0, proto)
    host, port = split_host_port(path)
    return Endpoint(_resolve_host(host or "0.0.0.0"), port, proto)


def create_frame(frame_size: int) -> bytes:
    """Generate the random request frame used for the whole process lifetime."""
    if frame_size < MIN_FRAME_SIZE:
        raise ConfigError(f"invalid frame size: {frame_size}")
    return os.urandom(frame_size)
