"""
Logging configuration for latprobe.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path

from .config import LoggingConfig

SYSLOG_KINDS = ("syslog", "trap")


def _syslog_handler(address: str) -> logging.Handler:
    """Create a syslog handler, falling back to UDP on localhost."""
    if address.startswith("/"):
        if os.path.exists(address):
            target = address
        else:
            target = ("localhost", logging.handlers.SYSLOG_UDP_PORT)
    else:
        host, _, port = address.rpartition(":")
        target = (host or "localhost", int(port or logging.handlers.SYSLOG_UDP_PORT))

    handler = logging.handlers.SysLogHandler(
        address=target,
        facility=logging.handlers.SysLogHandler.LOG_USER
    )
    handler.ident = "latprobe: "
    return handler


def setup_logging(config: LoggingConfig, kind: str = "regular", level: int = logging.INFO) -> None:
    """Setup logging for the selected output kind.

    Regular and chart outputs log to stdout, syslog and trap outputs to the
    system logger. NDJSON output owns stdout, so its log records go to stderr.
    """
    formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # Setup root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Clear existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if kind in SYSLOG_KINDS:
        main_handler = _syslog_handler(config.syslog_address)
        main_handler.setFormatter(logging.Formatter('%(message)s'))
    elif kind == "ndjson":
        main_handler = logging.StreamHandler(sys.stderr)
        main_handler.setFormatter(formatter)
    else:
        main_handler = logging.StreamHandler(sys.stdout)
        main_handler.setFormatter(formatter)
    main_handler.setLevel(level)
    root_logger.addHandler(main_handler)

    # File handler (if configured)
    if config.file:
        try:
            log_path = Path(config.file)
            log_path.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.handlers.RotatingFileHandler(
                log_path,
                maxBytes=config.max_size * 1024 * 1024,  # Convert MB to bytes
                backupCount=config.backup_count
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

        except OSError as e:
            logging.warning(f"Failed to setup file logging: {e}")

    logging.getLogger('latprobe').setLevel(level)


def parse_level(name: str) -> int:
    """Map a level name from the configuration to a logging constant."""
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO
