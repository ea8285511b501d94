"""Logging helpers for nixopts commands."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable

from .models import Diagnostic

_LOGGER_NAME = "nixopts"
_CONSOLE_FORMAT = "[nixopts] %(levelname)s %(message)s"
# Files are parsed on worker threads; debug output names the worker.
_VERBOSE_FORMAT = "[nixopts] %(levelname)s [%(threadName)s] %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(threadName)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger below the ``nixopts`` hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *, verbose: bool = False, quiet: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Route nixopts logs to stderr and, optionally, a log file.

    ``verbose`` wins over ``quiet``. Quiet runs only show warnings, which is
    where per-file diagnostics are reported.
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(logging.Formatter(_VERBOSE_FORMAT if verbose else _CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        sink = logging.FileHandler(log_file, encoding="utf-8")
        sink.setLevel(logging.DEBUG)
        sink.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(sink)
        logger.setLevel(logging.DEBUG)

    return logger


def log_diagnostics(logger: logging.Logger, diagnostics: Iterable[Diagnostic]) -> int:
    """Report each diagnostic at WARNING and return how many were logged."""
    per_file: Dict[str, int] = {}
    for diagnostic in diagnostics:
        logger.warning("%s", diagnostic)
        per_file[diagnostic.file] = per_file.get(diagnostic.file, 0) + 1
    for file, count in per_file.items():
        logger.debug("%s: %d diagnostics", file, count)
    return sum(per_file.values())


__all__ = ["configure_logging", "get_logger", "log_diagnostics"]
