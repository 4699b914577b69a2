"""The config key table and typed get/set/list over a ConfigDocument.

``CONFIG_KEYS`` is the only place key names are mapped to document fields;
get, set, list and file loading all go through it.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, NamedTuple, Optional

from rcpctl.core.document import LOG_LEVELS, OUTPUT_FORMATS, SECTIONS, ConfigDocument
from rcpctl.errors import UnknownKeyError, ValidationError
from rcpctl.utils.logging import get_logger

logger = get_logger("rcpctl.config")

SECRET_SET = "(set)"
SECRET_UNSET = "(not set)"


def _parse_bool(raw: str) -> bool:
    if raw == "true":
        return True
    if raw == "false":
        return False
    raise ValueError(raw)


def _parse_port(raw: str) -> int:
    if not raw.isdigit():
        raise ValueError(raw)
    port = int(raw)
    if not 1 <= port <= 65535:
        raise ValueError(raw)
    return port


def _parse_timeout(raw: str) -> int:
    if not raw.isdigit() or int(raw) < 1:
        raise ValueError(raw)
    return int(raw)


def _parse_host(raw: str) -> str:
    host = raw.strip()
    if not host or any(c.isspace() for c in host):
        raise ValueError(raw)
    return host


def _parse_optional(raw: str) -> Optional[str]:
    # Empty string clears the value
    return raw or None


def _choice(choices: tuple[str, ...]) -> Callable[[str], str]:
    def parse(raw: str) -> str:
        value = raw.strip().lower()
        if value not in choices:
            raise ValueError(raw)
        return value

    return parse


def render_value(value: Any) -> str:
    """Canonical string form of a field value."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass(frozen=True)
class ConfigKeyDescriptor:
    """How one config key maps onto the document and validates input."""

    name: str
    section: str
    field: str
    parse: Callable[[str], Any]
    message: str
    secret: bool = False
    aliases: tuple[str, ...] = ()
    json_types: tuple[type, ...] = (str,)

    def read(self, document: ConfigDocument) -> Any:
        return getattr(getattr(document, self.section), self.field)

    def render(self, document: ConfigDocument) -> str:
        return render_value(self.read(document))

    def display(self, document: ConfigDocument) -> str:
        """Rendering safe to print: secrets show only whether they are set."""
        if self.secret:
            return SECRET_SET if self.read(document) else SECRET_UNSET
        return self.render(document)

    def accepts_json(self, value: Any) -> bool:
        """Whether a value read from the config file has this key's JSON type."""
        if isinstance(value, bool) and bool not in self.json_types:
            return False
        return isinstance(value, self.json_types)

    def apply(self, document: ConfigDocument, raw: str) -> ConfigDocument:
        """Return a new document with this key set from ``raw``."""
        try:
            value = self.parse(raw)
        except ValueError:
            raise ValidationError(self.name, self.message) from None
        section = replace(getattr(document, self.section), **{self.field: value})
        return replace(document, **{self.section: section})


_BOOL_MESSAGE = "must be true or false"

# JSON types each key may hold in the config file
_BOOL = (bool,)
_INT = (int,)
_OPTIONAL_TEXT = (str, type(None))

CONFIG_KEYS: tuple[ConfigKeyDescriptor, ...] = (
    ConfigKeyDescriptor("host", "connection", "host", _parse_host, "must be a non-empty host name"),
    ConfigKeyDescriptor(
        "port", "connection", "port", _parse_port, "must be a valid number between 1-65535", json_types=_INT
    ),
    ConfigKeyDescriptor("use_tls", "connection", "use_tls", _parse_bool, _BOOL_MESSAGE, json_types=_BOOL),
    ConfigKeyDescriptor("verify_cert", "connection", "verify_cert", _parse_bool, _BOOL_MESSAGE, json_types=_BOOL),
    ConfigKeyDescriptor(
        "username", "auth", "username", _parse_optional, "must be a string", json_types=_OPTIONAL_TEXT
    ),
    ConfigKeyDescriptor(
        "token", "auth", "token", _parse_optional, "must be a string", secret=True, json_types=_OPTIONAL_TEXT
    ),
    ConfigKeyDescriptor(
        "secret",
        "auth",
        "secret",
        _parse_optional,
        "must be a string",
        secret=True,
        aliases=("psk",),
        json_types=_OPTIONAL_TEXT,
    ),
    ConfigKeyDescriptor(
        "log_level", "output", "log_level", _choice(LOG_LEVELS), f"must be one of {', '.join(LOG_LEVELS)}"
    ),
    ConfigKeyDescriptor("format", "output", "format", _choice(OUTPUT_FORMATS), "must be human or json"),
    ConfigKeyDescriptor("color", "output", "color", _parse_bool, _BOOL_MESSAGE, json_types=_BOOL),
    ConfigKeyDescriptor(
        "json_output", "output", "json_output", _parse_bool, _BOOL_MESSAGE, aliases=("json",), json_types=_BOOL
    ),
    ConfigKeyDescriptor("quiet", "output", "quiet", _parse_bool, _BOOL_MESSAGE, json_types=_BOOL),
    ConfigKeyDescriptor(
        "timeout_seconds",
        "other",
        "timeout_seconds",
        _parse_timeout,
        "must be a whole number of seconds greater than 0",
        aliases=("timeout",),
        json_types=_INT,
    ),
)

KEYS: dict[str, ConfigKeyDescriptor] = {d.name: d for d in CONFIG_KEYS}
ALIASES: dict[str, ConfigKeyDescriptor] = {a: d for d in CONFIG_KEYS for a in d.aliases}


class ConfigEntry(NamedTuple):
    section: str
    key: str
    value: str


def lookup(key: str) -> ConfigKeyDescriptor:
    """
    Find the descriptor for a key name or legacy alias.

    Raises:
        UnknownKeyError: The key is not in the table.
    """
    if key in KEYS:
        return KEYS[key]
    if key in ALIASES:
        descriptor = ALIASES[key]
        logger.warning(f"Config key '{key}' is a legacy alias for '{descriptor.name}'")
        return descriptor
    raise UnknownKeyError(key)


def known_keys() -> list[str]:
    """Every name get and set accept, canonical names first."""
    return list(KEYS) + list(ALIASES)


def get_value(document: ConfigDocument, key: str) -> str:
    """Render one key in its canonical string form."""
    return lookup(key).render(document)


def set_value(document: ConfigDocument, key: str, raw: str) -> ConfigDocument:
    """
    Parse ``raw`` for ``key`` and return an updated document.

    The input document is never modified. The caller persists the result.

    Raises:
        UnknownKeyError: The key is not in the table.
        ValidationError: ``raw`` is outside the key's accepted domain.
    """
    return lookup(key).apply(document, raw)


def list_values(document: ConfigDocument) -> list[ConfigEntry]:
    """Every key in section order; secrets render only as set/unset."""
    entries = []
    for section in SECTIONS:
        for descriptor in CONFIG_KEYS:
            if descriptor.section != section:
                continue
            entries.append(ConfigEntry(section, descriptor.name, descriptor.display(document)))
    return entries


def changed_values(previous: ConfigDocument, current: ConfigDocument) -> list[ConfigEntry]:
    """Keys whose value differs between two documents, shown as ``list_values`` shows them."""
    return [
        ConfigEntry(descriptor.section, descriptor.name, descriptor.display(current))
        for descriptor in CONFIG_KEYS
        if descriptor.read(previous) != descriptor.read(current)
    ]
