"""Windows Service Control Manager service manager."""

from __future__ import annotations

import time
from typing import Optional

from rcpctl.errors import AlreadyExistsError, CommandTimeoutError, NotFoundError, RcpctlError
from rcpctl.service.base import BestEffort, RestartPolicy, ServiceDescriptor, ServiceManager
from rcpctl.service.descriptor import render_windows_command_line
from rcpctl.service.runner import ProcessRunner, check

# sc.exe error codes, as printed in its output
NOT_INSTALLED_MARKERS = ("1060", "does not exist as an installed service")
ALREADY_RUNNING_MARKERS = ("1056", "already running")
NOT_STARTED_MARKERS = ("1062", "has not been started")

# Seconds after which the SCM failure counter resets
FAILURE_RESET_SECONDS = 86400
POLL_INTERVAL = 0.5


class WindowsServiceManager(ServiceManager):
    """
    Service manager for Windows using ``sc.exe``.

    ``sc create`` registers the service directly (no separate enable step).
    SCM has no atomic restart, so restart stops the service, waits for the
    STOPPED state and starts it again.
    """

    def __init__(self, runner: Optional[ProcessRunner] = None) -> None:
        super().__init__(runner)

    @property
    def platform_name(self) -> str:
        return "windows"

    def is_installed(self, name: str) -> bool:
        result = self._runner.run(("sc", "query", name))
        if result.mentions(*NOT_INSTALLED_MARKERS):
            return False
        check(result, "query service", self._runner.timeout)
        return True

    def install(self, descriptor: ServiceDescriptor) -> None:
        """Register the service with SCM and apply its restart policy."""
        name = descriptor.name
        if self.is_installed(name):
            raise AlreadyExistsError(name)

        self._run(
            "create service",
            "sc", "create", name,
            "binPath=", render_windows_command_line(descriptor),
            "start=", "auto",
            "DisplayName=", descriptor.description,
        )

        try:
            self._run("describe service", "sc", "description", name, descriptor.description)
            self._apply_restart_policy(descriptor)
        except RcpctlError:
            rollback = self._runner.run(("sc", "delete", name))
            if not rollback.ok:
                self._logger.error(f"Failed to roll back service '{name}': {rollback.output}")
            raise

        if descriptor.stdout_path or descriptor.stderr_path:
            self._logger.debug("SCM does not redirect service output; log paths are left to the daemon")
        self._logger.info(f"Service '{name}' created")

    def _apply_restart_policy(self, descriptor: ServiceDescriptor) -> None:
        if descriptor.restart_policy is RestartPolicy.NEVER:
            return

        delay_ms = descriptor.restart_delay_seconds * 1000
        actions = "/".join([f"restart/{delay_ms}"] * 3)
        self._run(
            "set failure actions",
            "sc", "failure", descriptor.name,
            "reset=", str(FAILURE_RESET_SECONDS),
            "actions=", actions,
        )
        if descriptor.restart_policy is RestartPolicy.ALWAYS:
            # Also restart when the process exits without crashing
            self._run("set failure flag", "sc", "failureflag", descriptor.name, "1")

    def uninstall(self, name: str) -> BestEffort:
        if not self.is_installed(name):
            raise NotFoundError(name)

        stopped = self._best_effort_stop(name)
        self._run("delete service", "sc", "delete", name)

        self._logger.info(f"Service '{name}' deleted")
        return stopped

    def start(self, name: str) -> None:
        self._run("start service", "sc", "start", name, allowed=ALREADY_RUNNING_MARKERS)
        self._logger.info(f"Service '{name}' started")

    def stop(self, name: str) -> None:
        self._run("stop service", "sc", "stop", name, allowed=NOT_STARTED_MARKERS)
        self._logger.info(f"Service '{name}' stopped")

    def restart(self, name: str) -> None:
        self.stop(name)
        self._wait_until_stopped(name)
        self.start(name)
        self._logger.info(f"Service '{name}' restarted")

    def _wait_until_stopped(self, name: str) -> None:
        """Poll ``sc query`` until the service leaves STOP_PENDING."""
        deadline = time.monotonic() + self._runner.timeout
        while True:
            result = self._run("query service", "sc", "query", name)
            if "STOPPED" in result.stdout:
                return
            if time.monotonic() >= deadline:
                raise CommandTimeoutError("stop service", self._runner.timeout)
            time.sleep(POLL_INTERVAL)
