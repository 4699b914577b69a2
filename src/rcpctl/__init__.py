"""
rcpctl - service lifecycle controller for rcpdaemon

Installs and drives rcpdaemon as a native service (systemd, launchd,
Windows SCM) and manages its configuration file.
"""

__version__ = "0.3.0"

from rcpctl.core.document import ConfigDocument
from rcpctl.service.base import ServiceDescriptor

__all__ = ["ConfigDocument", "ServiceDescriptor", "__version__"]
