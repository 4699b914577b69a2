"""Linux systemd service manager."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from rcpctl.errors import AlreadyExistsError, NotFoundError, RcpctlError
from rcpctl.service.base import BestEffort, ServiceDescriptor, ServiceManager
from rcpctl.service.descriptor import render_systemd_unit
from rcpctl.service.runner import CommandResult, ProcessRunner

USER_UNIT_DIR = Path("~/.config/systemd/user")
SYSTEM_UNIT_DIR = Path("/etc/systemd/system")


class SystemdServiceManager(ServiceManager):
    """
    Service manager for Linux using systemd.

    User scope (the default) writes a user unit and drives
    ``systemctl --user``; system scope writes under /etc/systemd/system
    and requires root.
    """

    def __init__(
        self,
        runner: Optional[ProcessRunner] = None,
        user: bool = True,
        unit_dir: Optional[Path] = None,
    ) -> None:
        super().__init__(runner)
        self._user = user
        default_dir = USER_UNIT_DIR if user else SYSTEM_UNIT_DIR
        self._unit_dir = Path(unit_dir or default_dir).expanduser()

    @property
    def platform_name(self) -> str:
        return "systemd"

    def unit_file(self, name: str) -> Path:
        return self._unit_dir / f"{name}.service"

    def _systemctl(self, operation: str, *args: str) -> CommandResult:
        """Run a systemctl command in the configured scope."""
        scope = ("--user",) if self._user else ()
        return self._run(operation, "systemctl", *scope, *args)

    def is_installed(self, name: str) -> bool:
        return self.unit_file(name).exists()

    def install(self, descriptor: ServiceDescriptor) -> None:
        """Write the unit file, reload systemd and enable the unit."""
        unit_file = self.unit_file(descriptor.name)
        if unit_file.exists():
            raise AlreadyExistsError(descriptor.name)

        wanted_by = "default.target" if self._user else "multi-user.target"
        self._write_descriptor(unit_file, render_systemd_unit(descriptor, wanted_by), descriptor)

        try:
            self._systemctl("reload systemd", "daemon-reload")
            self._systemctl("enable service", "enable", descriptor.name)
        except RcpctlError:
            # Leave nothing half-installed behind
            self._remove_descriptor(unit_file)
            raise

        self._logger.info(f"Service '{descriptor.name}' installed and enabled")

    def uninstall(self, name: str) -> BestEffort:
        """Stop (best effort), disable and remove the unit, then reload systemd."""
        unit_file = self.unit_file(name)
        if not unit_file.exists():
            raise NotFoundError(name)

        stopped = self._best_effort_stop(name)
        self._systemctl("disable service", "disable", name)
        self._remove_descriptor(unit_file)
        self._systemctl("reload systemd", "daemon-reload")

        self._logger.info(f"Service '{name}' uninstalled")
        return stopped

    def start(self, name: str) -> None:
        self._systemctl("start service", "start", name)
        self._logger.info(f"Service '{name}' started")

    def stop(self, name: str) -> None:
        # systemctl stop on an inactive unit already exits 0
        self._systemctl("stop service", "stop", name)
        self._logger.info(f"Service '{name}' stopped")

    def restart(self, name: str) -> None:
        self._systemctl("restart service", "restart", name)
        self._logger.info(f"Service '{name}' restarted")
