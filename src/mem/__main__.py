"""Entry point: python -m mem <command>

Configures logging from mem.toml / MEM_LOG_LEVEL, then hands off to the
click command group.
"""

from __future__ import annotations

import logging

from mem.cli import cli
from mem.config import load_config


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def main() -> None:
    config = load_config()
    _setup_logging(config.log_level)
    cli(obj={"config": config}, prog_name="mem")


if __name__ == "__main__":
    main()
