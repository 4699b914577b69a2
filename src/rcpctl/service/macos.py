"""macOS launchd service manager."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from rcpctl.errors import AlreadyExistsError, NotFoundError
from rcpctl.service.base import BestEffort, ServiceDescriptor, ServiceManager
from rcpctl.service.descriptor import render_launchd_plist
from rcpctl.service.runner import ProcessRunner

USER_AGENT_DIR = Path("~/Library/LaunchAgents")
SYSTEM_DAEMON_DIR = Path("/Library/LaunchDaemons")

# launchctl unload prints this for a job that is not loaded
NOT_LOADED_MARKERS = ("could not find specified service", "not loaded")
ALREADY_LOADED_MARKERS = ("already loaded",)


class LaunchdServiceManager(ServiceManager):
    """
    Service manager for macOS using launchd property lists.

    Installing only writes the plist; launchd has no separate enable step.
    Start and stop load and unload the job, and restart is a stop followed
    by a start since launchctl has no atomic restart.
    """

    def __init__(
        self,
        runner: Optional[ProcessRunner] = None,
        user: bool = True,
        plist_dir: Optional[Path] = None,
    ) -> None:
        super().__init__(runner)
        default_dir = USER_AGENT_DIR if user else SYSTEM_DAEMON_DIR
        self._plist_dir = Path(plist_dir or default_dir).expanduser()

    @property
    def platform_name(self) -> str:
        return "launchd"

    def plist_file(self, name: str) -> Path:
        return self._plist_dir / f"{name}.plist"

    def is_installed(self, name: str) -> bool:
        return self.plist_file(name).exists()

    def install(self, descriptor: ServiceDescriptor) -> None:
        plist_file = self.plist_file(descriptor.name)
        if plist_file.exists():
            raise AlreadyExistsError(descriptor.name)

        self._write_descriptor(plist_file, render_launchd_plist(descriptor), descriptor)
        self._logger.info(f"Service '{descriptor.name}' installed")

    def uninstall(self, name: str) -> BestEffort:
        plist_file = self.plist_file(name)
        if not plist_file.exists():
            raise NotFoundError(name)

        stopped = self._best_effort_stop(name)
        self._remove_descriptor(plist_file)

        self._logger.info(f"Service '{name}' uninstalled")
        return stopped

    def start(self, name: str) -> None:
        self._run(
            "start service",
            "launchctl", "load", "-w", str(self.plist_file(name)),
            allowed=ALREADY_LOADED_MARKERS,
        )
        self._logger.info(f"Service '{name}' started")

    def stop(self, name: str) -> None:
        self._run(
            "stop service",
            "launchctl", "unload", str(self.plist_file(name)),
            allowed=NOT_LOADED_MARKERS,
        )
        self._logger.info(f"Service '{name}' stopped")

    def restart(self, name: str) -> None:
        self._stop_then_start(name)
        self._logger.info(f"Service '{name}' restarted")
