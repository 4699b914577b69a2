"""Service lifecycle commands."""

from __future__ import annotations

import argparse
from dataclasses import asdict
from typing import Optional

from rcpctl.cli.context import CommandContext
from rcpctl.core.status import StatusClient
from rcpctl.errors import NotFoundError, RcpctlError, StatusUnavailableError
from rcpctl.service.base import SERVICE_NAME, RestartPolicy, ServiceManager, default_descriptor
from rcpctl.service.factory import get_platform_name, get_service_manager, is_service_supported
from rcpctl.service.runner import ProcessRunner
from rcpctl.utils.logging import get_logger

logger = get_logger("rcpctl.cli")


def _manager(args: argparse.Namespace, ctx: CommandContext) -> ServiceManager:
    runner = ProcessRunner(timeout=ctx.timeout)
    return get_service_manager(runner=runner, system=args.system)


def _require_installed(manager: ServiceManager) -> None:
    if not manager.is_installed(SERVICE_NAME):
        raise NotFoundError(SERVICE_NAME)


def _emit_done(ctx: CommandContext, operation: str, message: str, **extra) -> None:
    if ctx.formatter.json_output:
        ctx.formatter.json({"status": "success", "operation": operation, "name": SERVICE_NAME, **extra})
    else:
        ctx.formatter.success(message)


def cmd_status(args: argparse.Namespace, ctx: CommandContext) -> int:
    """Show whether the service is installed and what the daemon reports."""
    installed: Optional[bool] = None
    if is_service_supported():
        try:
            installed = _manager(args, ctx).is_installed(SERVICE_NAME)
        except RcpctlError as e:
            logger.debug(f"Could not determine install state: {e.message}")

    client = StatusClient.from_config(ctx.document)
    try:
        status = client.get_status()
    except StatusUnavailableError as e:
        if installed is False:
            raise NotFoundError(SERVICE_NAME) from e
        raise

    if ctx.formatter.json_output:
        ctx.formatter.json({"name": SERVICE_NAME, "installed": installed, **status.to_dict()})
        return 0

    formatter = ctx.formatter
    formatter.header("rcpdaemon Service Status")
    formatter.status(SERVICE_NAME, "running" if status.running else "stopped")
    if status.pid is not None:
        formatter.line(f"    Process ID: {status.pid}")
    if status.uptime:
        formatter.line(f"    Uptime: {status.uptime}")
    formatter.line(f"    Version: {status.version}")
    if installed is not None:
        formatter.line(f"    Installed: {'yes' if installed else 'no'} ({get_platform_name()})")
    if not status.running:
        formatter.info("Start the service with: rcpctl service start")
    return 0


def cmd_start(args: argparse.Namespace, ctx: CommandContext) -> int:
    manager = _manager(args, ctx)
    _require_installed(manager)
    manager.start(SERVICE_NAME)
    _emit_done(ctx, "start", "Service started")
    return 0


def cmd_stop(args: argparse.Namespace, ctx: CommandContext) -> int:
    manager = _manager(args, ctx)
    _require_installed(manager)
    manager.stop(SERVICE_NAME)
    _emit_done(ctx, "stop", "Service stopped")
    return 0


def cmd_restart(args: argparse.Namespace, ctx: CommandContext) -> int:
    manager = _manager(args, ctx)
    _require_installed(manager)
    manager.restart(SERVICE_NAME)
    _emit_done(ctx, "restart", "Service restarted")
    return 0


def cmd_install(args: argparse.Namespace, ctx: CommandContext) -> int:
    """Install rcpdaemon as a native service."""
    manager = _manager(args, ctx)
    descriptor = default_descriptor(
        ctx.config_path,
        executable_path=args.executable,
        arguments=tuple(args.arguments) if args.arguments is not None else None,
        working_directory=args.working_dir,
        restart_policy=args.restart,
        restart_delay_seconds=args.restart_delay,
        stdout_path=args.stdout,
        stderr_path=args.stderr,
    )

    ctx.formatter.info(f"Installing {descriptor.name} service ({manager.platform_name})...")
    manager.install(descriptor)

    _emit_done(
        ctx,
        "install",
        "Service installed successfully",
        platform=manager.platform_name,
        command=descriptor.command,
    )
    ctx.formatter.info("Start the service with: rcpctl service start")
    return 0


def cmd_uninstall(args: argparse.Namespace, ctx: CommandContext) -> int:
    """Remove the native service."""
    manager = _manager(args, ctx)
    ctx.formatter.info(f"Uninstalling {SERVICE_NAME} service...")
    stopped = manager.uninstall(SERVICE_NAME)

    if not stopped.succeeded:
        ctx.formatter.warning(f"Could not stop the service first: {stopped.detail}")
    _emit_done(ctx, "uninstall", "Service uninstalled successfully", stop=asdict(stopped))
    return 0


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError("must not be negative")
    return number


def register_commands(subparsers: argparse._SubParsersAction) -> None:
    """Register service management commands."""
    service_parser = subparsers.add_parser(
        "service",
        help="Manage the rcpdaemon system service",
    )
    service_parser.add_argument(
        "--system",
        action="store_true",
        help="Use the system-wide service scope instead of the per-user one (systemd/launchd)",
    )
    service_subparsers = service_parser.add_subparsers(
        dest="service_command",
        metavar="<command>",
    )

    status_parser = service_subparsers.add_parser("status", help="Show service status")
    status_parser.set_defaults(func=cmd_status)

    start_parser = service_subparsers.add_parser("start", help="Start the service")
    start_parser.set_defaults(func=cmd_start)

    stop_parser = service_subparsers.add_parser("stop", help="Stop the service")
    stop_parser.set_defaults(func=cmd_stop)

    restart_parser = service_subparsers.add_parser("restart", help="Restart the service")
    restart_parser.set_defaults(func=cmd_restart)

    install_parser = service_subparsers.add_parser("install", help="Install as a system service")
    install_parser.add_argument("--executable", help="Daemon executable (default: rcpdaemon)")
    install_parser.add_argument(
        "--arg",
        dest="arguments",
        action="append",
        metavar="ARG",
        help="Daemon argument, repeat for each (replaces the default --config arguments)",
    )
    install_parser.add_argument("--working-dir", help="Working directory (default: home)")
    install_parser.add_argument(
        "--restart",
        choices=[p.value for p in RestartPolicy],
        help="Restart policy (default: on-failure)",
    )
    install_parser.add_argument(
        "--restart-delay",
        type=_non_negative_int,
        metavar="SECONDS",
        help="Delay before a restart (default: 5)",
    )
    install_parser.add_argument("--stdout", help="File receiving the daemon's standard output")
    install_parser.add_argument("--stderr", help="File receiving the daemon's standard error")
    install_parser.set_defaults(func=cmd_install)

    uninstall_parser = service_subparsers.add_parser("uninstall", help="Remove the system service")
    uninstall_parser.set_defaults(func=cmd_uninstall)
