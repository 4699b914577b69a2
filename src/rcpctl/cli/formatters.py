"""Output formatters for CLI commands."""

from __future__ import annotations

import json
import sys
from typing import Any, Optional

from rcpctl.errors import RcpctlError


class StatusFormatter:
    """Format service status for display."""

    STATUS_SYMBOLS = {
        "running": "[+]",
        "stopped": "[-]",
        "error": "[!]",
        "not_installed": "[?]",
        "unknown": "[?]",
    }

    @classmethod
    def format_status(cls, status: str) -> str:
        """Format a status with symbol."""
        symbol = cls.STATUS_SYMBOLS.get(status.lower(), "[?]")
        return f"{symbol} {status}"


class OutputFormatter:
    """
    Renders command results in human or JSON mode.

    Human mode prints one line per message with a status symbol. JSON mode
    suppresses decorative text (info, success, warnings, headers) so stdout
    carries only the JSON documents commands emit. Quiet mode suppresses
    decorative text but still prints requested data and errors.
    """

    SYMBOLS = {"success": "[+]", "error": "[!]", "info": "[*]", "warning": "[~]"}
    COLORS = {"success": "32", "error": "31", "info": "34", "warning": "33"}

    def __init__(self, json_output: bool = False, color: bool = True, quiet: bool = False) -> None:
        self.json_output = json_output
        self.color = color
        self.quiet = quiet

    @property
    def decorative(self) -> bool:
        return not (self.json_output or self.quiet)

    def _symbol(self, kind: str, stream: Any) -> str:
        symbol = self.SYMBOLS[kind]
        if self.color and hasattr(stream, "isatty") and stream.isatty():
            return f"\033[{self.COLORS[kind]}m{symbol}\033[0m"
        return symbol

    def _message(self, kind: str, message: str) -> None:
        if not self.decorative:
            return
        print(f"{self._symbol(kind, sys.stdout)} {message}")

    def success(self, message: str) -> None:
        self._message("success", message)

    def info(self, message: str) -> None:
        self._message("info", message)

    def warning(self, message: str) -> None:
        self._message("warning", message)

    def header(self, text: str) -> None:
        if not self.decorative:
            return
        print(f"\n{text}")
        print("=" * len(text))

    def line(self, text: str = "") -> None:
        """Print a plain data line (human mode only, kept in quiet mode)."""
        if self.json_output:
            return
        print(text)

    def status(self, name: str, status: str, extra: str = "") -> None:
        formatted = StatusFormatter.format_status(status)
        self.line(f"{formatted} {name}: {extra}" if extra else f"{formatted} {name}")

    def json(self, data: Any) -> None:
        """Emit a structured JSON document."""
        print(json.dumps(data, indent=2, default=str))

    def error(self, message: str, hint: Optional[str] = None) -> None:
        print(f"{self._symbol('error', sys.stderr)} {message}", file=sys.stderr)
        if hint and not self.quiet:
            print(f"{self._symbol('info', sys.stderr)} {hint}", file=sys.stderr)

    def report(self, error: RcpctlError) -> int:
        """
        Render an error and return the process exit code for it.

        JSON mode emits ``{"status": "error", "error": {...}}`` on stdout.
        """
        if self.json_output:
            self.json({"status": "error", "error": error.to_dict()})
        else:
            self.error(error.message, error.hint)
        return error.exit_code
