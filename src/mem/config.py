"""Configuration loading from environment variables and mem.toml."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
from pathlib import Path

from mem.store import ROOT_DIRNAME

_CONFIG_FILENAME = "mem.toml"
_USER_CONFIG = Path.home() / ".config" / "mem" / _CONFIG_FILENAME


@dataclass
class MemConfig:
    """Top-level mem configuration."""

    store_dirname: str = ROOT_DIRNAME
    stale_days: int = 90
    log_level: str = "WARNING"


def load_config(config_path: Path | None = None) -> MemConfig:
    """Load configuration from environment variables and optional mem.toml.

    Priority: environment variables > mem.toml > defaults.
    """
    file_data: dict = {}
    if config_path and config_path.exists():
        file_data = tomllib.loads(config_path.read_text())
    else:
        # Search current dir and ~/.config/mem/
        for candidate in [Path.cwd() / _CONFIG_FILENAME, _USER_CONFIG]:
            if candidate.exists():
                file_data = tomllib.loads(candidate.read_text())
                break

    return MemConfig(
        store_dirname=os.getenv("MEM_DIR_NAME", file_data.get("store_dirname", ROOT_DIRNAME)),
        stale_days=int(os.getenv("MEM_STALE_DAYS", file_data.get("stale_days", 90))),
        log_level=os.getenv("MEM_LOG_LEVEL", file_data.get("log_level", "WARNING")),
    )
