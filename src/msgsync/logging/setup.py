"""Diagnostic logging setup for the command line."""

from __future__ import annotations

import logging
import sys

LOGGER_NAME = "msgsync"
LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"

_LEVELS = {
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


def configure_logging(level: str = "info") -> logging.Logger:
    """Install a single stderr handler on the package logger."""
    if level not in _LEVELS:
        raise ValueError(f"Unknown log level: {level}")
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, "_msgsync", False):
            logger.removeHandler(handler)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._msgsync = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.setLevel(_LEVELS[level])
    return logger
