"""Abstract base class for native service managers."""

from __future__ import annotations

import shutil
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Optional, Union

from rcpctl.errors import RcpctlError, ServiceError, ServicePermissionError
from rcpctl.service.runner import CommandResult, ProcessRunner, check
from rcpctl.utils.logging import get_logger
from rcpctl.utils.paths import get_config_file, get_log_dir

SERVICE_NAME = "rcpdaemon"
SERVICE_DESCRIPTION = "RCP Daemon"
DAEMON_EXECUTABLE = "rcpdaemon"


class RestartPolicy(Enum):
    """When the native manager should restart the daemon after it exits."""

    NEVER = "never"
    ON_FAILURE = "on-failure"
    ALWAYS = "always"

    @classmethod
    def parse(cls, value: Union[str, RestartPolicy]) -> RestartPolicy:
        if isinstance(value, RestartPolicy):
            return value
        # Accept both "on-failure" and "on_failure"/"onFailure"
        normalized = value.strip().lower().replace("_", "-")
        if normalized == "onfailure":
            normalized = "on-failure"
        return cls(normalized)


@dataclass(frozen=True)
class ServiceDescriptor:
    """Identity and runtime parameters of the managed process."""

    name: str
    executable_path: str
    arguments: tuple[str, ...] = ()
    working_directory: str = field(default_factory=lambda: str(Path.home()))
    restart_policy: RestartPolicy = RestartPolicy.ON_FAILURE
    restart_delay_seconds: int = 5
    stdout_path: str = ""
    stderr_path: str = ""
    description: str = SERVICE_DESCRIPTION

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("service name must not be empty")
        if self.restart_delay_seconds < 0:
            raise ValueError("restart delay must not be negative")
        # Lists are accepted for convenience but stored as tuples
        object.__setattr__(self, "arguments", tuple(self.arguments))
        object.__setattr__(self, "restart_policy", RestartPolicy.parse(self.restart_policy))

    @property
    def command(self) -> list[str]:
        """Executable followed by each argument, in order."""
        return [self.executable_path, *self.arguments]


def resolve_daemon_command() -> list[str]:
    """Find the best way to invoke the rcpdaemon binary."""
    # Strategy 1: binary next to the current Python
    candidate = Path(sys.executable).parent / DAEMON_EXECUTABLE
    if candidate.is_file():
        return [str(candidate)]

    # Strategy 2: PATH lookup
    which = shutil.which(DAEMON_EXECUTABLE)
    if which:
        return [which]

    # Strategy 3: python -m rcpdaemon
    return [sys.executable, "-m", DAEMON_EXECUTABLE]


def default_descriptor(config_path: Optional[Path] = None, **overrides: Any) -> ServiceDescriptor:
    """
    Build the descriptor used at install time.

    Args:
        config_path: Config file the daemon is started with (default location if None).
        **overrides: Any ServiceDescriptor field to replace the default with.

    Returns:
        A new ServiceDescriptor.
    """
    if overrides.get("executable_path"):
        command = [str(overrides["executable_path"])]
    else:
        command = resolve_daemon_command()
    config = Path(config_path) if config_path else get_config_file()
    log_dir = get_log_dir()

    values: dict[str, Any] = {
        "name": SERVICE_NAME,
        "executable_path": command[0],
        "arguments": (*command[1:], "--config", str(config)),
        "working_directory": str(Path.home()),
        "restart_policy": RestartPolicy.ON_FAILURE,
        "restart_delay_seconds": 5,
        "stdout_path": str(log_dir / f"{SERVICE_NAME}.out.log"),
        "stderr_path": str(log_dir / f"{SERVICE_NAME}.err.log"),
        "description": SERVICE_DESCRIPTION,
    }
    values.update({k: v for k, v in overrides.items() if v is not None})
    return ServiceDescriptor(**values)


@dataclass
class BestEffort:
    """Outcome of an operation whose failure must not abort its caller."""

    operation: str
    attempted: bool = True
    succeeded: bool = False
    detail: str = ""


class ServiceManager(ABC):
    """
    Abstract base class for native service managers.

    Implementations register the daemon with systemd, launchd or the
    Windows Service Control Manager. Operations return on success and
    raise an RcpctlError subclass on failure; no state is kept between
    calls beyond the injected process runner.
    """

    def __init__(self, runner: Optional[ProcessRunner] = None) -> None:
        self._runner = runner or ProcessRunner()
        self._logger = get_logger("rcpctl.service")

    @property
    @abstractmethod
    def platform_name(self) -> str:
        """Return the platform name (e.g., 'systemd', 'launchd', 'windows')."""
        pass

    @abstractmethod
    def is_installed(self, name: str) -> bool:
        """Check whether a descriptor with this name is installed."""
        pass

    @abstractmethod
    def install(self, descriptor: ServiceDescriptor) -> None:
        """
        Write the native descriptor and register it with the manager.

        Raises:
            AlreadyExistsError: A descriptor with the same name is installed.
            ServicePermissionError: The protected location is not writable.
            CommandFailedError: The native manager rejected the registration.
        """
        pass

    @abstractmethod
    def uninstall(self, name: str) -> BestEffort:
        """
        Stop (best effort) and remove the service.

        Returns:
            The outcome of the best-effort stop that preceded removal.

        Raises:
            NotFoundError: No descriptor with this name is installed.
        """
        pass

    @abstractmethod
    def start(self, name: str) -> None:
        """Start the service."""
        pass

    @abstractmethod
    def stop(self, name: str) -> None:
        """Stop the service. Stopping a stopped service succeeds."""
        pass

    @abstractmethod
    def restart(self, name: str) -> None:
        """Restart the service."""
        pass

    def _run(self, operation: str, *args: str, allowed: Iterable[str] = ()) -> CommandResult:
        """Run a native command and raise on failure."""
        result = self._runner.run(args)
        return check(result, operation, self._runner.timeout, allowed)

    def _write_descriptor(self, path: Path, content: str, descriptor: ServiceDescriptor) -> None:
        """Write a descriptor file and make sure its log directories exist."""
        targets = [path] + [Path(p) for p in (descriptor.stdout_path, descriptor.stderr_path) if p]
        try:
            for target in targets:
                target.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except PermissionError as e:
            raise ServicePermissionError(f"Cannot write {e.filename or path}: permission denied") from e
        except OSError as e:
            raise ServiceError(f"Failed to write {path}: {e}") from e
        self._logger.info(f"Created service file: {path}")

    def _remove_descriptor(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except PermissionError as e:
            raise ServicePermissionError(f"Cannot remove {path}: permission denied") from e
        except OSError as e:
            raise ServiceError(f"Failed to remove {path}: {e}") from e
        self._logger.info(f"Removed service file: {path}")

    def _best_effort_stop(self, name: str) -> BestEffort:
        outcome = BestEffort(operation=f"stop {name}")
        try:
            self.stop(name)
            outcome.succeeded = True
        except RcpctlError as e:
            outcome.detail = e.message
            self._logger.info(f"Best-effort stop before uninstall failed: {e.message}")
        else:
            self._logger.info(f"Stopped '{name}' before uninstall")
        return outcome

    def _stop_then_start(self, name: str) -> None:
        """Restart for managers without an atomic restart. A failed stop aborts."""
        self.stop(name)
        self.start(name)
