"""
Configuration management for latprobe.
"""

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Optional

import toml

from .errors import ConfigError
from .models import MAX_FRAME_SIZE, MAX_UDP_FRAME_SIZE, MIN_FRAME_SIZE, Mode, Proto

OUTPUT_KINDS = ("regular", "syslog", "chart", "ndjson", "trap")

NUMERIC_FIELDS = {
    'probe': {'timeout': float, 'interval': float, 'latency_warn': float, 'frame_size': int},
    'logging': {'max_size': int, 'backup_count': int},
}


def _coerce(section: str, values: dict) -> dict:
    """Convert numeric settings so a wrong TOML type fails at load time."""
    values = dict(values)
    for name, kind in NUMERIC_FIELDS.get(section, {}).items():
        if name in values:
            if isinstance(values[name], (bool, str)):
                raise ValueError(f"{section}.{name} must be a number, got {values[name]!r}")
            values[name] = kind(values[name])
    return values


@dataclass
class ProbeConfig:
    """Probe configuration settings."""
    mode: Optional[Mode] = None
    proto: Optional[Proto] = None
    path: Optional[str] = None
    timeout: float = 30.0
    interval: float = 1.0
    frame_size: int = 1500
    latency_warn: Optional[float] = None


@dataclass
class OutputConfig:
    """Output sink configuration settings."""
    kind: str = "regular"
    options: Optional[str] = None


@dataclass
class LoggingConfig:
    """Logging configuration settings."""
    level: str = "INFO"
    file: Optional[str] = None
    max_size: int = 10
    backup_count: int = 5
    syslog_address: str = "/dev/log"


@dataclass
class Config:
    """Main configuration class."""
    probe: ProbeConfig = field(default_factory=ProbeConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_file(cls, config_path: Path) -> 'Config':
        """Load configuration from TOML file."""
        try:
            config_data = toml.load(config_path)
        except (OSError, toml.TomlDecodeError) as e:
            raise ConfigError(f"Failed to load configuration: {e}")

        try:
            probe = _coerce('probe', config_data.get('probe', {}))
            if 'mode' in probe:
                probe['mode'] = Mode(probe['mode'])
            if 'proto' in probe:
                probe['proto'] = Proto(probe['proto'])

            return cls(
                probe=ProbeConfig(**probe),
                output=OutputConfig(**config_data.get('output', {})),
                logging=LoggingConfig(**_coerce('logging', config_data.get('logging', {})))
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid configuration in {config_path}: {e}")

    def merge(self, **overrides) -> 'Config':
        """Return a copy with the given non-None values applied.

        Keys are looked up in the probe, output and logging sections in that
        order; ``output_kind`` and ``output_options`` map to the output section.
        """
        aliases = {'output_kind': 'kind', 'output_options': 'options'}
        sections = {'probe': {}, 'output': {}, 'logging': {}}
        for key, value in overrides.items():
            if value is None:
                continue
            name = aliases.get(key, key)
            for section in sections:
                if name in {f.name for f in fields(getattr(self, section))}:
                    sections[section][name] = value
                    break
            else:
                raise ConfigError(f"Unknown configuration key: {key}")

        return Config(
            probe=replace(self.probe, **sections['probe']),
            output=replace(self.output, **sections['output']),
            logging=replace(self.logging, **sections['logging'])
        )

    def validate(self) -> bool:
        """Validate configuration values."""
        probe = self.probe

        if probe.mode is None or probe.proto is None or not probe.path:
            raise ConfigError("Mode, protocol and target path are required")

        if probe.mode == Mode.SERVER and probe.proto == Proto.ICMP:
            raise ConfigError("ICMP server mode is not implemented")

        if probe.timeout <= 0:
            raise ConfigError("Timeout must be positive")

        if probe.interval <= 0:
            raise ConfigError("Interval must be positive")

        if probe.latency_warn is not None and probe.latency_warn < 0:
            raise ConfigError("Latency warn threshold must not be negative")

        if probe.proto != Proto.ICMP:
            if probe.frame_size < MIN_FRAME_SIZE:
                raise ConfigError(f"invalid frame size: {probe.frame_size}")
            limit = MAX_UDP_FRAME_SIZE if probe.proto == Proto.UDP else MAX_FRAME_SIZE
            if probe.frame_size > limit:
                raise ConfigError(
                    f"invalid frame size: {probe.frame_size} (max {limit} for {probe.proto})"
                )

        if self.output.kind not in OUTPUT_KINDS:
            raise ConfigError(f"Unknown output kind: {self.output.kind}")

        if self.output.kind == "trap" and not self.output.options:
            raise ConfigError("output options not specified")

        return True
