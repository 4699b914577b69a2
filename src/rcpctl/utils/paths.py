"""Path expansion and default locations."""

from pathlib import Path
from typing import Union


def expand_path(path: Union[str, Path]) -> Path:
    """Expand ~ and environment variables in a path."""
    return Path(path).expanduser().resolve()


def ensure_parent_exists(path: Union[str, Path]) -> Path:
    """Ensure the parent directory of a path exists, creating it if necessary."""
    path = expand_path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def get_config_dir() -> Path:
    """Get the rcp configuration directory (~/.config/rcp)."""
    return Path("~/.config/rcp").expanduser()


def get_config_file() -> Path:
    """Get the path to the default config file."""
    return get_config_dir() / "config.json"


def get_log_dir() -> Path:
    """Get the directory the managed daemon writes its output logs to."""
    return get_config_dir() / "logs"
