"""Logging for nix-du.

Standard output carries the rendered graph, so everything logged goes to
standard error: progress lines ("Reading dependency graph from store...")
bare at INFO, other records prefixed with ``nix-du:`` and their level.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TextIO

_LOGGER_NAME = "nixdu"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger under the ``nixdu`` hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


class ProgressFormatter(logging.Formatter):
    """Print progress messages as they are, and name the level of the others."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if record.levelno == logging.INFO:
            return message
        return f"nix-du: {record.levelname.lower()}: {message}"


def configure_logging(
    *,
    verbose: bool = False,
    log_file: Path | None = None,
    stream: TextIO | None = None,
) -> logging.Logger:
    """Send progress to ``stream`` (stderr by default); ``verbose`` adds debug details.

    ``log_file``, when set, receives the same records with timestamps.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    progress = logging.StreamHandler(stream if stream is not None else sys.stderr)
    progress.setFormatter(ProgressFormatter("%(message)s"))
    logger.addHandler(progress)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        record = logging.FileHandler(log_file, encoding="utf-8")
        record.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        logger.addHandler(record)

    return logger


__all__ = ["ProgressFormatter", "configure_logging", "get_logger"]
