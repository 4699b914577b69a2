"""Utility functions."""

from rcpctl.utils.paths import expand_path, get_config_file
from rcpctl.utils.logging import get_logger, setup_logging

__all__ = ["expand_path", "get_config_file", "get_logger", "setup_logging"]
