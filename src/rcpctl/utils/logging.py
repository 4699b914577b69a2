"""Logging setup utilities."""

import logging
from pathlib import Path
from typing import Optional

from rcpctl.utils.paths import ensure_parent_exists

LOG_FORMAT = "[%(asctime)s] %(levelname)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Config file log levels use "warn"; logging wants "WARNING".
_LEVEL_ALIASES = {"warn": "WARNING"}


def resolve_level(level: str) -> int:
    """Translate a config or CLI level name into a logging level."""
    name = _LEVEL_ALIASES.get(level.lower(), level.upper())
    return getattr(logging, name)


def setup_logging(
    log_file: Optional[Path] = None,
    level: str = "INFO",
    name: str = "rcpctl",
) -> logging.Logger:
    """
    Set up logging with a console handler and an optional file handler.

    Args:
        log_file: Path to log file. If None, only console logging is enabled.
        level: Log level (debug, info, warn, error, or any logging level name).
        name: Logger name.

    Returns:
        Configured logger instance.
    """
    logger = logging.getLogger(name)
    logger.setLevel(resolve_level(level))

    # Clear existing handlers to avoid duplicates
    logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_path = ensure_parent_exists(log_file)
        file_handler = logging.FileHandler(log_path)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str = "rcpctl") -> logging.Logger:
    """Get a logger in the rcpctl hierarchy."""
    return logging.getLogger(name)
