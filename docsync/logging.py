"""Logging setup shared by the docsync CLI and library code."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import List

_LOGGER_NAME = "docsync"
_CONSOLE_FORMAT = "[docsync] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
# Third-party loggers whose records are routed through the docsync handlers.
_LIBRARY_LOGGERS = ("httpx", "httpcore")


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``docsync.<name>``, or the package logger itself."""
    return logging.getLogger(f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Send docsync logs to stderr and, optionally, to ``log_file``.

    Reports go to stdout, so console logging stays on stderr. HTTP client
    logs are only shown with ``verbose``.
    """
    level = logging.DEBUG if verbose else logging.INFO
    handlers = _build_handlers(level, log_file)

    logger = logging.getLogger(_LOGGER_NAME)
    _install(logger, handlers, level)
    for name in _LIBRARY_LOGGERS:
        _install(logging.getLogger(name), handlers, logging.DEBUG if verbose else logging.WARNING)
    return logger


def _build_handlers(level: int, log_file: Path | None) -> List[logging.Handler]:
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    handlers: List[logging.Handler] = [console]

    if log_file is not None:
        sink = logging.FileHandler(log_file, encoding="utf-8")
        sink.setLevel(level)
        sink.setFormatter(logging.Formatter(_FILE_FORMAT))
        handlers.append(sink)
    return handlers


def _install(logger: logging.Logger, handlers: List[logging.Handler], level: int) -> None:
    # handlers are replaced, never stacked, across repeated CLI runs
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False


__all__ = ["configure_logging", "get_logger"]
