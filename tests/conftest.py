"""Shared fixtures for rcpctl tests."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from rcpctl.service.base import ServiceDescriptor
from rcpctl.service.runner import CommandResult


class FakeRunner:
    """
    Stands in for ProcessRunner: records every command and answers from a script.

    ``respond(prefix, ...)`` registers the result returned for any command
    starting with ``prefix``; the most recent matching registration wins.
    Unscripted commands succeed with empty output.
    """

    def __init__(self, timeout: float = 5.0) -> None:
        self.timeout = timeout
        self.calls: list[tuple[str, ...]] = []
        self._script: list[tuple[tuple[str, ...], CommandResult]] = []

    def respond(self, *prefix: str, returncode: int = 0, stdout: str = "", stderr: str = "", timed_out: bool = False):
        result = CommandResult(
            args=prefix,
            returncode=returncode,
            stdout=stdout,
            stderr=stderr,
            timed_out=timed_out,
        )
        self._script.append((prefix, result))

    def run(self, args) -> CommandResult:
        args = tuple(args)
        self.calls.append(args)
        for prefix, result in reversed(self._script):
            if args[: len(prefix)] == prefix:
                return result
        return CommandResult(args=args, returncode=0)

    def called(self, *prefix: str) -> bool:
        return any(call[: len(prefix)] == prefix for call in self.calls)


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def descriptor(tmp_path: Path) -> ServiceDescriptor:
    return ServiceDescriptor(
        name="rcpdaemon",
        executable_path="/usr/local/bin/rcpdaemon",
        arguments=("--config", "/etc/rcp/config.json"),
        working_directory=str(tmp_path),
        stdout_path=str(tmp_path / "logs" / "rcpdaemon.out.log"),
        stderr_path=str(tmp_path / "logs" / "rcpdaemon.err.log"),
    )


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    return tmp_path / "rcp" / "config.json"


@pytest.fixture(autouse=True)
def reset_rcpctl_logger():
    """Drop handlers main() installs so they never outlive a test's captured streams."""
    yield
    logger = logging.getLogger("rcpctl")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
