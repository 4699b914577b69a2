"""Configuration store and daemon status."""

from rcpctl.core.config import init_config, load_config, save_config
from rcpctl.core.document import ConfigDocument
from rcpctl.core.keys import get_value, list_values, set_value

__all__ = [
    "ConfigDocument",
    "get_value",
    "init_config",
    "list_values",
    "load_config",
    "save_config",
    "set_value",
]
