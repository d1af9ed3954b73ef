"""Logging helpers."""

from __future__ import annotations

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

from .types import MASKED_VALUE

ROOT_LOGGER = "eda_bridge"
ENV_LOG_LEVEL = "LOG_LEVEL"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def get_log_level(value: str | None = None) -> int:
    """Map a LOG_LEVEL string to a logging level, defaulting to INFO."""
    if value is None:
        value = os.environ.get(ENV_LOG_LEVEL, "info")
    return _LEVELS.get(value.strip().lower(), logging.INFO)


def get_logger(name: str) -> logging.Logger:
    """Return a logger below the package namespace."""
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def configure_logging(level: str | int | None = None) -> logging.Logger:
    """Install a rich handler on the package logger.

    Calling this more than once only updates the level.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    if isinstance(level, int):
        logger.setLevel(level)
    else:
        logger.setLevel(get_log_level(level))

    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=False)
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
        logger.addHandler(handler)
        logger.propagate = False
    return logger


def mask(value: str | None, keep: int = 4) -> str:
    """Shorten a secret for log output."""
    if not value:
        return ""
    if len(value) <= keep * 2:
        return MASKED_VALUE
    return f"{value[:keep]}...{MASKED_VALUE}"
