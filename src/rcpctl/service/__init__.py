"""Native service management (systemd, launchd, Windows SCM)."""

from rcpctl.service.base import (
    BestEffort,
    RestartPolicy,
    ServiceDescriptor,
    ServiceManager,
    default_descriptor,
)
from rcpctl.service.factory import get_service_manager

__all__ = [
    "BestEffort",
    "RestartPolicy",
    "ServiceDescriptor",
    "ServiceManager",
    "default_descriptor",
    "get_service_manager",
]
