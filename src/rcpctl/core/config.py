"""Loading and saving the configuration file."""

from __future__ import annotations

import json
import os
import tempfile
from copy import deepcopy
from dataclasses import replace
from pathlib import Path
from typing import Any, Optional

from rcpctl.core.document import SECTIONS, ConfigDocument
from rcpctl.core.keys import CONFIG_KEYS, ConfigKeyDescriptor, render_value
from rcpctl.errors import ConfigError, ConfigParseError, ValidationError
from rcpctl.utils.logging import get_logger
from rcpctl.utils.paths import get_config_file

logger = get_logger("rcpctl.config")

_KEYS_BY_LOCATION = {(d.section, d.field): d for d in CONFIG_KEYS}

# Pre-sections layout: {"service": {...}, "global": {...}}
_LEGACY_KEYS = {
    ("service", "host"): ("connection", "host"),
    ("service", "port"): ("connection", "port"),
    ("service", "use_tls"): ("connection", "use_tls"),
    ("service", "timeout"): ("other", "timeout_seconds"),
    ("global", "color"): ("output", "color"),
    ("global", "json"): ("output", "json_output"),
    ("global", "quiet"): ("output", "quiet"),
}
_LEGACY_FORMATS = {"text": "human", "json": "json", "yaml": "human"}


def resolve_config_path(path: Optional[Path] = None) -> Path:
    return Path(path).expanduser() if path else get_config_file()


def load_config(path: Optional[Path] = None) -> ConfigDocument:
    """
    Load the configuration file.

    A missing file yields the documented defaults.

    Raises:
        ConfigParseError: The file is not valid JSON, is not an object,
            or holds a known key whose value fails validation.
    """
    path = resolve_config_path(path)
    if not path.exists():
        logger.debug(f"No config file at {path}, using defaults")
        return ConfigDocument()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigParseError(path, f"line {e.lineno} column {e.colno}: {e.msg}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigParseError(path, "top level must be a JSON object")

    if not any(section in data for section in SECTIONS) and ("service" in data or "global" in data):
        logger.warning(f"Legacy config layout in {path}; it will be rewritten on the next save")
        data = _upgrade_legacy(data)

    return _from_dict(data, path)


def _upgrade_legacy(data: dict[str, Any]) -> dict[str, Any]:
    """Map the old service/global layout onto the current sections."""
    upgraded: dict[str, Any] = {}
    for old_section in ("service", "global"):
        values = data.get(old_section) or {}
        if not isinstance(values, dict):
            continue
        for key, value in values.items():
            if (old_section, key) in _LEGACY_KEYS:
                section, field = _LEGACY_KEYS[(old_section, key)]
                upgraded.setdefault(section, {})[field] = value
            elif (old_section, key) == ("service", "skip_verify") and isinstance(value, bool):
                upgraded.setdefault("connection", {})["verify_cert"] = not value
            elif (old_section, key) == ("global", "format") and isinstance(value, str):
                upgraded.setdefault("output", {})["format"] = _LEGACY_FORMATS.get(value.lower(), value)

    for key, value in data.items():
        if key not in ("service", "global"):
            upgraded[key] = value
    return upgraded


_JSON_TYPE_NAMES = {
    bool: "boolean",
    int: "integer",
    float: "number",
    str: "string",
    type(None): "null",
    list: "array",
    dict: "object",
}


def _json_to_raw(descriptor: ConfigKeyDescriptor, value: Any) -> str:
    """Check a file value's JSON type and turn it into the raw string the key parses."""
    if not descriptor.accepts_json(value):
        expected = " or ".join(_JSON_TYPE_NAMES[t] for t in descriptor.json_types)
        actual = _JSON_TYPE_NAMES.get(type(value), type(value).__name__)
        raise ValueError(f"expected {expected}, got {actual}")
    return render_value(value)


def _from_dict(data: dict[str, Any], path: Path) -> ConfigDocument:
    """Validate file contents through the key table and build a document."""
    document = ConfigDocument()
    extras: dict[str, Any] = {}

    for top_key, values in data.items():
        if top_key not in SECTIONS:
            extras[top_key] = values
            continue
        if not isinstance(values, dict):
            raise ConfigParseError(path, f"section '{top_key}' must be an object")

        for field, value in values.items():
            descriptor = _KEYS_BY_LOCATION.get((top_key, field))
            if descriptor is None:
                extras.setdefault(top_key, {})[field] = value
                continue
            try:
                document = descriptor.apply(document, _json_to_raw(descriptor, value))
            except ValueError as e:
                raise ConfigParseError(path, f"{top_key}.{field}: {e}") from e
            except ValidationError as e:
                raise ConfigParseError(path, f"{top_key}.{field} {e.reason}") from e

    return replace(document, extras=extras)


def to_dict(document: ConfigDocument) -> dict[str, Any]:
    """Serialize a document, sections first, with unknown keys merged back."""
    extras = deepcopy(document.extras)
    result: dict[str, Any] = {}

    for section in SECTIONS:
        known = {
            d.field: d.read(document)
            for d in CONFIG_KEYS
            if d.section == section
        }
        leftover = extras.pop(section, {})
        result[section] = {**known, **{k: v for k, v in leftover.items() if k not in known}}

    result.update(extras)
    return result


def save_config(document: ConfigDocument, path: Optional[Path] = None) -> Path:
    """
    Write the document, replacing the file atomically.

    Content goes to a temporary file in the target directory which is then
    renamed over the target, so a crash never leaves a truncated file.

    Returns:
        The path written.
    """
    path = resolve_config_path(path)
    content = json.dumps(to_dict(document), indent=2) + "\n"

    tmp_path: Optional[Path] = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=path.parent,
            delete=False,
            prefix=f".{path.name}.",
            suffix=".tmp",
        ) as fh:
            tmp_path = Path(fh.name)
            fh.write(content)
        os.replace(tmp_path, path)
    except OSError as e:
        if tmp_path is not None:
            tmp_path.unlink(missing_ok=True)
        raise ConfigError(f"Failed to write config file {path}: {e}") from e

    logger.debug(f"Saved config to {path}")
    return path


def init_config(path: Optional[Path] = None) -> tuple[Path, bool]:
    """
    Create a config file with defaults if none exists.

    Returns:
        The config path and whether a new file was written.
    """
    path = resolve_config_path(path)
    if path.exists():
        return path, False
    return save_config(ConfigDocument(), path), True
