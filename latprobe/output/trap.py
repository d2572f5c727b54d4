"""
External monitor output.

Every iteration is forwarded to a monitoring system as a UDP "set value"
datagram: ``u <oid> 1 <value>`` on success, ``u <oid> -1`` on failure.
Output options are given as ``path=host:port,oid=<object id>[,units=ms]``.
"""

import socket
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol, Tuple, Union

import numpy as np

from ..core.errors import ConfigError
from ..core.models import Failure, Proto, resolve_endpoint
from .base import Sink, format_latency, should_warn


class Units(str, Enum):
    """How a latency in seconds is encoded before it is sent."""
    S = "s"
    MS = "ms"
    US = "us"
    NS = "ns"

    def convert(self, latency: float) -> Union[float, int]:
        if self is Units.S:
            return latency
        factor = {Units.MS: 1e3, Units.US: 1e6, Units.NS: 1e9}[self]
        # Round half away from zero, latency is never negative
        return int(latency * factor + 0.5)


@dataclass(frozen=True)
class TrapConfig:
    """Destination, object identifier and unit mode for the notifier."""
    path: Tuple[str, int]
    oid: str
    units: Units = Units.S

    @classmethod
    def parse(cls, options: Optional[str]) -> 'TrapConfig':
        """Parse ``key=value`` pairs separated by commas."""
        if not options:
            raise ConfigError("output options not specified")

        values = {}
        for item in options.split(","):
            item = item.strip()
            if not item:
                continue
            key, sep, value = item.partition("=")
            key, value = key.strip(), value.strip()
            if not sep or not value:
                raise ConfigError(f"invalid output option: {item}")
            if key not in ("path", "oid", "units"):
                raise ConfigError(f"unknown output option: {key}")
            values[key] = value

        for required in ("path", "oid"):
            if required not in values:
                raise ConfigError(f"output option '{required}' is required")

        oid = values["oid"]
        if any(c.isspace() for c in oid):
            raise ConfigError(f"invalid oid: {oid}")

        try:
            units = Units(values.get("units", Units.S.value).lower())
        except ValueError:
            raise ConfigError(f"invalid units: {values['units']}")

        endpoint = resolve_endpoint(values["path"], Proto.UDP)
        return cls(path=endpoint.address, oid=oid, units=units)


def format_value(value: Union[float, int]) -> str:
    """Plain decimal text for the wire, never exponent notation."""
    if isinstance(value, int):
        return str(value)
    return np.format_float_positional(value, trim="-")


class Notifier(Protocol):
    """Capability to forward measurements to an external monitor."""

    def notify(self, value: Union[float, int]) -> None:
        ...

    def notify_failure(self) -> None:
        ...


class UdpTrapNotifier:
    """Sends "set value" datagrams from an ephemeral UDP socket."""

    def __init__(self, config: TrapConfig):
        self.config = config
        family = socket.AF_INET6 if ":" in config.path[0] else socket.AF_INET
        self._sock = socket.socket(family, socket.SOCK_DGRAM)

    def notify(self, value: Union[float, int]) -> None:
        self._send(f"u {self.config.oid} 1 {format_value(value)}")

    def notify_failure(self) -> None:
        self._send(f"u {self.config.oid} -1")

    def _send(self, message: str) -> None:
        self._sock.sendto(message.encode("ascii"), self.config.path)

    def close(self) -> None:
        self._sock.close()


class TrapSink(Sink):
    """Forwards every outcome to a notifier; send errors are logged only."""

    def __init__(
        self,
        notifier: Notifier,
        units: Units = Units.S,
        title: str = "",
        latency_warn: Optional[float] = None,
        stream=None,
    ):
        super().__init__(title, latency_warn, stream)
        self.notifier = notifier
        self.units = units

    def on_latency(self, latency: float) -> None:
        if should_warn(latency, self.latency_warn):
            self.logger.warning(format_latency(latency))
        try:
            self.notifier.notify(self.units.convert(latency))
        except OSError as e:
            self.logger.error(f"Failed to send notification: {e}")

    def on_failure(self, failure: Failure) -> None:
        self.logger.error(str(failure))
        try:
            self.notifier.notify_failure()
        except OSError as e:
            self.logger.error(f"Failed to send notification: {e}")

    def close(self) -> None:
        close = getattr(self.notifier, "close", None)
        if close:
            close()
