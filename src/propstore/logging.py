"""Logging for propstore.

Everything logs below the ``propstore`` logger. Nothing is emitted until
setup_logging() runs; it then writes to the file named by the config or by
$PROPSTORE_LOG, and otherwise to stderr when stderr is a terminal.
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass

TRACE = 5
VERBOSE = 15

logging.addLevelName(TRACE, "TRACE")
logging.addLevelName(VERBOSE, "VERBOSE")

logger = logging.getLogger("propstore")

LOG_ENV_VAR = "PROPSTORE_LOG"

_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"
_DATE_FORMAT = "%H:%M:%S"

_initialized = False

_NAMED_LEVELS = {
    "TRACE": TRACE,
    "DEBUG": logging.DEBUG,
    "VERBOSE": VERBOSE,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# -v count -> level
_VERBOSE_LEVELS = (logging.ERROR, logging.WARNING, logging.INFO, VERBOSE, TRACE)


@dataclass(frozen=True)
class LoggingConfig:
    """The ``logging:`` section of a descriptor file, or CLI flags."""

    level: str | None = None
    verbose: int | None = None  # Takes precedence over level
    file: str | None = None


class _LowercaseLevelFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        record.levelname = record.levelname.lower()
        return super().format(record)


def resolve_level(config: LoggingConfig | None) -> int:
    """Numeric level for ``config``; INFO when nothing is set."""
    if config is None:
        return logging.INFO
    if config.verbose is not None:
        index = max(0, config.verbose)
        return _VERBOSE_LEVELS[index] if index < len(_VERBOSE_LEVELS) else TRACE
    if config.level:
        return _NAMED_LEVELS.get(config.level.upper(), logging.INFO)
    return logging.INFO


def _open_handler(config: LoggingConfig | None) -> logging.Handler | None:
    target = (config.file if config else None) or os.environ.get(LOG_ENV_VAR)
    if target:
        try:
            return logging.FileHandler(os.path.expanduser(target), mode="a", encoding="utf-8")
        except OSError as e:
            if not sys.stderr.isatty():
                return None
            print(f"[propstore] Failed to open log file: {e}", file=sys.stderr)
    if sys.stderr.isatty():
        return logging.StreamHandler(sys.stderr)
    return None


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Install the propstore handler. Only the first call has any effect."""
    global _initialized
    if _initialized:
        return
    _initialized = True

    level = resolve_level(config)
    logger.setLevel(level)

    handler = _open_handler(config)
    if handler is not None:
        handler.setLevel(level)
        handler.setFormatter(_LowercaseLevelFormatter(_FORMAT, datefmt=_DATE_FORMAT))
        logger.addHandler(handler)


def reset_logging() -> None:
    """Drop installed handlers so setup_logging() can run again."""
    global _initialized
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    _initialized = False


def get_logger(name: str | None = None) -> logging.Logger:
    """The package logger, or its child ``propstore.<name>``."""
    return logger.getChild(name) if name else logger
