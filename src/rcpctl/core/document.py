"""Configuration document data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

# Fixed section order used by list and save
SECTIONS = ("connection", "auth", "output", "other")

LOG_LEVELS = ("debug", "info", "warn", "error")
OUTPUT_FORMATS = ("human", "json")


@dataclass(frozen=True)
class ConnectionSettings:
    """Where the CLI reaches the daemon."""

    host: str = "localhost"
    port: int = 5000
    use_tls: bool = False
    verify_cert: bool = True


@dataclass(frozen=True)
class AuthSettings:
    """Credentials; token and secret are never listed in cleartext."""

    username: Optional[str] = None
    token: Optional[str] = None
    secret: Optional[str] = None


@dataclass(frozen=True)
class OutputSettings:
    log_level: str = "info"
    format: str = "human"
    color: bool = True
    json_output: bool = False
    quiet: bool = False


@dataclass(frozen=True)
class OtherSettings:
    timeout_seconds: int = 30


@dataclass(frozen=True)
class ConfigDocument:
    """
    Complete configuration document.

    Documents are immutable: edits produce a new document, so a failed
    edit can never leave a half-applied change behind. ``extras`` keeps
    keys this version does not know about so they survive a save.
    """

    connection: ConnectionSettings = field(default_factory=ConnectionSettings)
    auth: AuthSettings = field(default_factory=AuthSettings)
    output: OutputSettings = field(default_factory=OutputSettings)
    other: OtherSettings = field(default_factory=OtherSettings)
    extras: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def wants_json(self) -> bool:
        """Whether the CLI should emit JSON by default."""
        return self.output.json_output or self.output.format == "json"
