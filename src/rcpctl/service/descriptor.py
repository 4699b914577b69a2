"""Render native service descriptors from a ServiceDescriptor.

Every function here is pure: the same descriptor always renders to
byte-identical text, so a reinstall can be compared against what is on disk.
"""

from __future__ import annotations

import plistlib
import subprocess
from typing import Any

from rcpctl.service.base import RestartPolicy, ServiceDescriptor

SYSTEMD_RESTART = {
    RestartPolicy.NEVER: "no",
    RestartPolicy.ON_FAILURE: "on-failure",
    RestartPolicy.ALWAYS: "always",
}

_SYSTEMD_SPECIAL = set(" \t\"'\\;")


def _systemd_escape(value: str) -> str:
    """Escape unit-file specifiers and variable expansion."""
    return value.replace("%", "%%").replace("$", "$$")


def _systemd_quote(word: str) -> str:
    word = _systemd_escape(word)
    if word and not (_SYSTEMD_SPECIAL & set(word)):
        return word
    escaped = word.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def render_systemd_unit(descriptor: ServiceDescriptor, wanted_by: str = "default.target") -> str:
    """
    Render a systemd unit file.

    Args:
        descriptor: Service to describe.
        wanted_by: Install target ("default.target" for user units,
            "multi-user.target" for system units).
    """
    exec_start = " ".join(_systemd_quote(word) for word in descriptor.command)

    lines = [
        "[Unit]",
        f"Description={descriptor.description}",
        "After=network.target",
        "",
        "[Service]",
        "Type=simple",
        f"ExecStart={exec_start}",
        f"WorkingDirectory={_systemd_escape(descriptor.working_directory)}",
        f"Restart={SYSTEMD_RESTART[descriptor.restart_policy]}",
        f"RestartSec={descriptor.restart_delay_seconds}",
    ]
    if descriptor.stdout_path:
        lines.append(f"StandardOutput=append:{_systemd_escape(descriptor.stdout_path)}")
    if descriptor.stderr_path:
        lines.append(f"StandardError=append:{_systemd_escape(descriptor.stderr_path)}")
    lines += [
        "",
        "[Install]",
        f"WantedBy={wanted_by}",
        "",
    ]
    return "\n".join(lines)


def _keep_alive(policy: RestartPolicy) -> Any:
    if policy is RestartPolicy.ALWAYS:
        return True
    if policy is RestartPolicy.ON_FAILURE:
        return {"SuccessfulExit": False}
    return False


def render_launchd_plist(descriptor: ServiceDescriptor) -> str:
    """Render a launchd property list. The label is the service name."""
    plist: dict[str, Any] = {
        "Label": descriptor.name,
        "ProgramArguments": descriptor.command,
        "WorkingDirectory": descriptor.working_directory,
        "RunAtLoad": True,
        "KeepAlive": _keep_alive(descriptor.restart_policy),
        "ThrottleInterval": descriptor.restart_delay_seconds,
    }
    if descriptor.stdout_path:
        plist["StandardOutPath"] = descriptor.stdout_path
    if descriptor.stderr_path:
        plist["StandardErrorPath"] = descriptor.stderr_path

    return plistlib.dumps(plist, sort_keys=True).decode("utf-8")


def render_windows_command_line(descriptor: ServiceDescriptor) -> str:
    """Render the SCM binPath: executable and arguments quoted for CreateProcess."""
    return subprocess.list2cmdline(descriptor.command)
