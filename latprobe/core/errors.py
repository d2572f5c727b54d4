"""
Error taxonomy for latprobe.
"""


class ProbeError(Exception):
    """Base class for all latprobe errors."""


class ConfigError(ProbeError):
    """Invalid configuration detected at startup."""


class SessionError(ProbeError):
    """A probe session failed; the client reconnects after one interval."""


class HandshakeError(SessionError):
    """The peer does not speak the probe protocol."""


class IntegrityError(SessionError):
    """The echoed payload differs from the request."""


class ProbeIOError(SessionError):
    """Transport-level failure not reported by the socket layer itself."""


class RenderError(ProbeError):
    """Output could not be written."""
