"""Tests for the Windows SCM service manager."""

import logging

import pytest

from rcpctl.errors import (
    AlreadyExistsError,
    CommandFailedError,
    CommandTimeoutError,
    NotFoundError,
    ServicePermissionError,
)
from rcpctl.service.base import RestartPolicy, ServiceDescriptor
from rcpctl.service.windows import WindowsServiceManager

NOT_INSTALLED = "[SC] EnumQueryServicesStatus:OpenService FAILED 1060:\n\nThe specified service does not exist as an installed service."
RUNNING = "SERVICE_NAME: rcpdaemon\n        STATE              : 4  RUNNING"
STOPPED = "SERVICE_NAME: rcpdaemon\n        STATE              : 1  STOPPED"
STOP_PENDING = "SERVICE_NAME: rcpdaemon\n        STATE              : 3  STOP_PENDING"


@pytest.fixture
def manager(runner):
    return WindowsServiceManager(runner)


@pytest.fixture
def win_descriptor():
    return ServiceDescriptor(
        name="rcpdaemon",
        executable_path=r"C:\Program Files\rcp\rcpdaemon.exe",
        arguments=("--config", r"C:\Users\me\.config\rcp\config.json"),
        working_directory=r"C:\Users\me",
    )


class TestIsInstalled:
    """Tests for WindowsServiceManager.is_installed."""

    def test_missing(self, manager, runner):
        runner.respond("sc", "query", returncode=1060, stdout=NOT_INSTALLED)
        assert manager.is_installed("rcpdaemon") is False

    def test_present(self, manager, runner):
        runner.respond("sc", "query", stdout=RUNNING)
        assert manager.is_installed("rcpdaemon") is True

    def test_access_denied(self, manager, runner):
        runner.respond("sc", "query", returncode=5, stdout="[SC] OpenService FAILED 5:\n\nAccess is denied.")
        with pytest.raises(ServicePermissionError):
            manager.is_installed("rcpdaemon")


class TestInstall:
    """Tests for WindowsServiceManager.install."""

    def test_creates_service(self, manager, runner, win_descriptor):
        runner.respond("sc", "query", returncode=1060, stdout=NOT_INSTALLED)

        manager.install(win_descriptor)

        create = next(call for call in runner.calls if call[:2] == ("sc", "create"))
        assert create == (
            "sc", "create", "rcpdaemon",
            "binPath=", r'"C:\Program Files\rcp\rcpdaemon.exe" --config C:\Users\me\.config\rcp\config.json',
            "start=", "auto",
            "DisplayName=", "RCP Daemon",
        )
        assert runner.called("sc", "description", "rcpdaemon", "RCP Daemon")

    def test_on_failure_policy(self, manager, runner, win_descriptor):
        runner.respond("sc", "query", returncode=1060, stdout=NOT_INSTALLED)

        manager.install(win_descriptor)

        assert (
            "sc", "failure", "rcpdaemon",
            "reset=", "86400",
            "actions=", "restart/5000/restart/5000/restart/5000",
        ) in runner.calls
        assert not runner.called("sc", "failureflag")

    def test_always_policy_sets_failure_flag(self, manager, runner):
        runner.respond("sc", "query", returncode=1060, stdout=NOT_INSTALLED)
        d = ServiceDescriptor(name="rcpdaemon", executable_path="rcpdaemon.exe", restart_policy=RestartPolicy.ALWAYS)

        manager.install(d)

        assert ("sc", "failureflag", "rcpdaemon", "1") in runner.calls

    def test_never_policy_skips_failure_actions(self, manager, runner):
        runner.respond("sc", "query", returncode=1060, stdout=NOT_INSTALLED)
        d = ServiceDescriptor(name="rcpdaemon", executable_path="rcpdaemon.exe", restart_policy="never")

        manager.install(d)

        assert not runner.called("sc", "failure")

    def test_already_installed(self, manager, runner, win_descriptor):
        runner.respond("sc", "query", stdout=RUNNING)

        with pytest.raises(AlreadyExistsError):
            manager.install(win_descriptor)

        assert not runner.called("sc", "create")

    def test_rolls_back_when_configuration_fails(self, manager, runner, win_descriptor):
        runner.respond("sc", "query", returncode=1060, stdout=NOT_INSTALLED)
        runner.respond("sc", "failure", returncode=87, stdout="[SC] ChangeServiceConfig2 FAILED 87")

        with pytest.raises(CommandFailedError):
            manager.install(win_descriptor)

        assert runner.called("sc", "delete", "rcpdaemon")

    def test_create_requires_elevation(self, manager, runner, win_descriptor):
        runner.respond("sc", "query", returncode=1060, stdout=NOT_INSTALLED)
        runner.respond("sc", "create", returncode=5, stdout="[SC] OpenSCManager FAILED 5:\n\nAccess is denied.")

        with pytest.raises(ServicePermissionError) as exc_info:
            manager.install(win_descriptor)

        assert "elevated" in exc_info.value.hint


class TestUninstall:
    """Tests for WindowsServiceManager.uninstall."""

    def test_not_installed(self, manager, runner):
        runner.respond("sc", "query", returncode=1060, stdout=NOT_INSTALLED)
        with pytest.raises(NotFoundError):
            manager.uninstall("rcpdaemon")

    def test_stops_then_deletes(self, manager, runner):
        runner.respond("sc", "query", stdout=RUNNING)

        outcome = manager.uninstall("rcpdaemon")

        assert outcome.succeeded
        assert runner.calls[1:] == [("sc", "stop", "rcpdaemon"), ("sc", "delete", "rcpdaemon")]

    def test_failed_stop_still_deletes(self, manager, runner, caplog):
        runner.respond("sc", "query", stdout=RUNNING)
        runner.respond("sc", "stop", returncode=1061, stdout="[SC] ControlService FAILED 1061")
        caplog.set_level(logging.INFO, logger="rcpctl")

        outcome = manager.uninstall("rcpdaemon")

        assert not outcome.succeeded
        assert runner.called("sc", "delete", "rcpdaemon")
        assert "Best-effort stop before uninstall failed" in caplog.text


class TestLifecycle:
    """Tests for start, stop and restart."""

    def test_start_already_running(self, manager, runner):
        runner.respond("sc", "start", returncode=1056, stdout="[SC] StartService FAILED 1056:\n\nAn instance of the service is already running.")
        manager.start("rcpdaemon")

    def test_stop_already_stopped(self, manager, runner):
        runner.respond("sc", "stop", returncode=1062, stdout="[SC] ControlService FAILED 1062:\n\nThe service has not been started.")
        manager.stop("rcpdaemon")

    def test_restart_waits_for_stopped(self, manager, runner):
        runner.respond("sc", "query", stdout=STOPPED)

        manager.restart("rcpdaemon")

        assert runner.calls == [
            ("sc", "stop", "rcpdaemon"),
            ("sc", "query", "rcpdaemon"),
            ("sc", "start", "rcpdaemon"),
        ]

    def test_restart_aborts_when_stop_fails(self, manager, runner):
        runner.respond("sc", "stop", returncode=5, stdout="Access is denied.")

        with pytest.raises(ServicePermissionError):
            manager.restart("rcpdaemon")

        assert not runner.called("sc", "start")

    def test_restart_times_out_waiting(self, manager, runner):
        runner.timeout = 0
        runner.respond("sc", "query", stdout=STOP_PENDING)

        with pytest.raises(CommandTimeoutError):
            manager.restart("rcpdaemon")

        assert not runner.called("sc", "start")
