"""Per-invocation state handed to command handlers."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from rcpctl.cli.formatters import OutputFormatter
from rcpctl.core.document import ConfigDocument


@dataclass
class CommandContext:
    """Loaded once per process; commands never cache it beyond the call."""

    config_path: Path
    document: ConfigDocument
    formatter: OutputFormatter

    @property
    def timeout(self) -> int:
        return self.document.other.timeout_seconds
