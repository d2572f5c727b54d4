#!/usr/bin/env python3
"""
Installation smoke test for latprobe.
"""

import importlib
import shutil
from pathlib import Path

import pytest


@pytest.mark.parametrize("module", ["click", "toml", "numpy", "latprobe", "latprobe.cli"])
def test_imports(module):
    """Required modules can be imported."""
    importlib.import_module(module)


def test_config_example():
    """The example configuration loads and validates."""
    from latprobe.core.config import Config
    from latprobe.core.models import Mode, Proto

    config_path = Path(__file__).parent / "config.toml.example"
    config = Config.from_file(config_path)
    config = config.merge(mode=Mode.CLIENT, proto=Proto.TCP, path="127.0.0.1:7000")
    assert config.validate()


def test_ping_tool():
    """ICMP probing needs the system ping command."""
    if shutil.which("ping") is None:
        pytest.skip("ping command not found")
    from latprobe.protocol.icmp import SystemPinger

    assert SystemPinger(timeout=1.0).build_command("127.0.0.1")[0] in ("ping", "ping6")
