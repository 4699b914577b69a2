"""Error taxonomy shared by the service managers, config store and CLI."""

from __future__ import annotations

from typing import Any, Optional

ELEVATE_HINT = "Re-run the command with elevated privileges (sudo / Administrator)"


class RcpctlError(Exception):
    """
    Base class for every failure surfaced to the command dispatcher.

    Each subclass carries a taxonomy ``tag`` (used in JSON output) and the
    process ``exit_code`` the CLI returns for it.
    """

    tag = "error"
    exit_code = 1

    def __init__(self, message: str, hint: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.tag, "message": self.message}
        if self.hint:
            data["hint"] = self.hint
        return data


# Service management


class ServiceError(RcpctlError):
    """Failure while managing the native service."""


class ServicePermissionError(ServiceError):
    """The caller may not write the descriptor or register the service."""

    tag = "permission"
    exit_code = 5

    def __init__(self, message: str, hint: Optional[str] = ELEVATE_HINT) -> None:
        super().__init__(message, hint)


class AlreadyExistsError(ServiceError):
    """A descriptor with the same name is already installed."""

    tag = "already_exists"
    exit_code = 4

    def __init__(self, name: str) -> None:
        super().__init__(
            f"Service '{name}' is already installed",
            hint="Uninstall it first with: rcpctl service uninstall",
        )
        self.name = name


class NotFoundError(ServiceError):
    """No descriptor with the given name is installed."""

    tag = "not_found"
    exit_code = 3

    def __init__(self, name: str) -> None:
        super().__init__(
            f"Service '{name}' is not installed",
            hint="Install it with: rcpctl service install",
        )
        self.name = name


class CommandFailedError(ServiceError):
    """The native service manager reported failure."""

    tag = "command_failed"
    exit_code = 6

    def __init__(self, operation: str, detail: str) -> None:
        message = f"{operation} failed"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.operation = operation
        self.detail = detail

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["operation"] = self.operation
        data["detail"] = self.detail
        return data


class CommandTimeoutError(ServiceError):
    """A native command exceeded its time bound and was killed."""

    tag = "timeout"
    exit_code = 7

    def __init__(self, operation: str, timeout: float) -> None:
        super().__init__(f"{operation} timed out after {timeout:g} seconds")
        self.operation = operation
        self.timeout = timeout


class UnsupportedPlatformError(ServiceError):
    """No native service manager is available on this platform."""

    tag = "unsupported_platform"
    exit_code = 8

    def __init__(self, platform: str) -> None:
        super().__init__(
            f"Service management is not supported on platform: {platform}",
            hint="Run rcpdaemon in the foreground instead",
        )
        self.platform = platform


# Configuration


class ConfigError(RcpctlError):
    """Failure while reading or editing the configuration."""


class UnknownKeyError(ConfigError):
    tag = "unknown_key"
    exit_code = 2

    def __init__(self, key: str) -> None:
        super().__init__(
            f"Unknown config key: {key}",
            hint="List known keys with: rcpctl config list",
        )
        self.key = key


class ValidationError(ConfigError):
    """A raw value is outside the key's accepted domain."""

    tag = "validation"
    exit_code = 2

    def __init__(self, key: str, message: str) -> None:
        super().__init__(f"{key} {message}")
        self.key = key
        self.reason = message

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["key"] = self.key
        data["reason"] = self.reason
        return data


class ConfigParseError(ConfigError):
    """The config file exists but could not be parsed."""

    tag = "parse"
    exit_code = 9

    def __init__(self, path: Any, detail: str) -> None:
        super().__init__(
            f"Failed to parse config file {path}: {detail}",
            hint="Fix or remove the file; it is never repaired automatically",
        )
        self.path = path
        self.detail = detail


# Status collaborator


class StatusUnavailableError(RcpctlError):
    """The daemon could not be reached for a status query."""

    tag = "unavailable"
    exit_code = 3

    def __init__(self, address: str, detail: str) -> None:
        super().__init__(
            f"Could not connect to rcpdaemon at {address}: {detail}",
            hint="Start the service with: rcpctl service start",
        )
        self.address = address


class StatusProtocolError(RcpctlError):
    """The daemon answered, but not with a usable status payload."""

    tag = "protocol"
    exit_code = 10
