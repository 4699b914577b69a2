"""Bounded subprocess execution shared by every service manager."""

from __future__ import annotations

import subprocess
import sys
from dataclasses import dataclass
from typing import Any, Iterable, Sequence

from rcpctl.errors import CommandFailedError, CommandTimeoutError, ServicePermissionError
from rcpctl.utils.logging import get_logger

DEFAULT_TIMEOUT = 30.0

# Substrings native managers print when the caller lacks privilege
_PERMISSION_MARKERS = (
    "access is denied",
    "access denied",
    "permission denied",
    "operation not permitted",
    "interactive authentication required",
)


@dataclass
class CommandResult:
    """Outcome of a single native command."""

    args: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out

    @property
    def output(self) -> str:
        """Combined, stripped output (sc.exe reports errors on stdout)."""
        return "\n".join(p for p in (self.stderr.strip(), self.stdout.strip()) if p)

    def mentions(self, *markers: str) -> bool:
        text = self.output.lower()
        return any(marker in text for marker in markers)


class ProcessRunner:
    """
    Runs native manager commands with a timeout.

    A command that exceeds ``timeout`` is killed by ``subprocess.run`` and
    reported with ``timed_out=True``; a missing executable is reported as
    exit code 127.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.timeout = timeout
        self._logger = get_logger("rcpctl.runner")

    def _platform_kwargs(self) -> dict[str, Any]:
        """Hide console windows for spawned commands on Windows."""
        if sys.platform != "win32":
            return {}
        startupinfo = subprocess.STARTUPINFO()
        startupinfo.dwFlags |= subprocess.STARTF_USESHOWWINDOW
        startupinfo.wShowWindow = 0
        return {"startupinfo": startupinfo, "creationflags": subprocess.CREATE_NO_WINDOW}

    def run(self, args: Sequence[str]) -> CommandResult:
        cmd = tuple(args)
        self._logger.debug(f"Running: {' '.join(cmd)}")
        try:
            proc = subprocess.run(
                list(cmd),
                capture_output=True,
                text=True,
                timeout=self.timeout,
                **self._platform_kwargs(),
            )
        except subprocess.TimeoutExpired as e:
            self._logger.warning(f"Command timed out after {self.timeout:g}s: {' '.join(cmd)}")
            return CommandResult(
                args=cmd,
                returncode=-1,
                stdout=_decode(e.stdout),
                stderr=_decode(e.stderr),
                timed_out=True,
            )
        except FileNotFoundError:
            return CommandResult(args=cmd, returncode=127, stderr=f"{cmd[0]}: command not found")

        return CommandResult(
            args=cmd,
            returncode=proc.returncode,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
        )


def _decode(data: Any) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode(errors="replace")
    return data


def check(
    result: CommandResult,
    operation: str,
    timeout: float,
    allowed: Iterable[str] = (),
) -> CommandResult:
    """
    Map a command result onto the error taxonomy.

    Args:
        result: Result returned by ``ProcessRunner.run``.
        operation: Human-readable operation name used in error messages.
        timeout: The bound that applied, reported on timeout.
        allowed: Output substrings that turn a non-zero exit into success.

    Returns:
        The result unchanged when it counts as success.

    Raises:
        CommandTimeoutError: The command was killed after ``timeout``.
        ServicePermissionError: The manager refused for lack of privilege.
        CommandFailedError: Any other non-zero exit.
    """
    if result.timed_out:
        raise CommandTimeoutError(operation, timeout)
    if result.returncode == 0:
        return result

    markers = tuple(m.lower() for m in allowed)
    if markers and result.mentions(*markers):
        return result
    if result.mentions(*_PERMISSION_MARKERS):
        raise ServicePermissionError(f"{operation} failed: {result.output}")
    detail = result.output or f"exit status {result.returncode}"
    raise CommandFailedError(operation, detail)
