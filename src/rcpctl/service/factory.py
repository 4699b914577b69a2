"""Factory for creating platform-specific service managers."""

from __future__ import annotations

import sys
from typing import Optional

from rcpctl.errors import UnsupportedPlatformError
from rcpctl.service.base import BestEffort, ServiceDescriptor, ServiceManager
from rcpctl.service.runner import ProcessRunner


class UnsupportedServiceManager(ServiceManager):
    """Stand-in for platforms without a supported native manager; every operation fails."""

    def __init__(self, platform: str, runner: Optional[ProcessRunner] = None) -> None:
        super().__init__(runner)
        self._platform = platform

    @property
    def platform_name(self) -> str:
        return f"unsupported ({self._platform})"

    def _unsupported(self) -> UnsupportedPlatformError:
        return UnsupportedPlatformError(self._platform)

    def is_installed(self, name: str) -> bool:
        raise self._unsupported()

    def install(self, descriptor: ServiceDescriptor) -> None:
        raise self._unsupported()

    def uninstall(self, name: str) -> BestEffort:
        raise self._unsupported()

    def start(self, name: str) -> None:
        raise self._unsupported()

    def stop(self, name: str) -> None:
        raise self._unsupported()

    def restart(self, name: str) -> None:
        raise self._unsupported()


def get_service_manager(
    platform: Optional[str] = None,
    runner: Optional[ProcessRunner] = None,
    system: bool = False,
) -> ServiceManager:
    """
    Get the service manager for a platform.

    Args:
        platform: A ``sys.platform`` value (the current one if None).
        runner: Process runner to inject (a default one if None).
        system: Use system-wide scope instead of the per-user scope
            (systemd and launchd only).

    Returns:
        ServiceManager implementation for the platform. Unsupported
        platforms get a manager whose operations raise
        UnsupportedPlatformError.
    """
    platform = platform or sys.platform

    if platform == "win32":
        from rcpctl.service.windows import WindowsServiceManager
        return WindowsServiceManager(runner)

    elif platform.startswith("linux"):
        from rcpctl.service.linux import SystemdServiceManager
        return SystemdServiceManager(runner, user=not system)

    elif platform == "darwin":
        from rcpctl.service.macos import LaunchdServiceManager
        return LaunchdServiceManager(runner, user=not system)

    return UnsupportedServiceManager(platform, runner)


def is_service_supported(platform: Optional[str] = None) -> bool:
    """Check if service management is supported on this platform."""
    platform = platform or sys.platform
    return platform in ("win32", "darwin") or platform.startswith("linux")


def get_platform_name(platform: Optional[str] = None) -> str:
    """Get a human-readable platform name."""
    platform = platform or sys.platform
    if platform == "win32":
        return "Windows (Service Control Manager)"
    elif platform.startswith("linux"):
        return "Linux (systemd)"
    elif platform == "darwin":
        return "macOS (launchd)"
    else:
        return f"Unknown ({platform})"
