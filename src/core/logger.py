"""Logging setup for the provisioner.

Console output goes through Rich so log lines and the CLI tables share one
stream style. A plain-text file copy is added when `LOG_FILE` is set.
"""

from __future__ import annotations

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

_FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

_configured = False


def configure_logging(level: str | None = None, *, log_file: Path | None = None) -> None:
    """Configure the root logger once; later calls only adjust the level."""

    global _configured

    level = (level or "INFO").upper()
    root = logging.getLogger()

    if _configured:
        root.setLevel(level)
        return

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        )
        root.addHandler(file_handler)

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return a named logger, configuring the root logger on first use."""

    if not _configured:
        configure_logging()
    return logging.getLogger(name)
