"""Configuration management commands."""

from __future__ import annotations

import argparse
import time

from rcpctl.cli.context import CommandContext
from rcpctl.core.config import init_config, save_config
from rcpctl.core.document import ConfigDocument
from rcpctl.core.keys import changed_values, get_value, list_values, lookup
from rcpctl.core.watcher import ConfigWatcher
from rcpctl.errors import ConfigError

SECTION_TITLES = {
    "connection": "Connection settings",
    "auth": "Authentication settings",
    "output": "Output settings",
    "other": "Other settings",
}


def cmd_config_get(args: argparse.Namespace, ctx: CommandContext) -> int:
    """Print one configuration value."""
    value = get_value(ctx.document, args.key)

    if ctx.formatter.json_output:
        ctx.formatter.json({"key": args.key, "value": value})
    else:
        ctx.formatter.line(f"{args.key} = {value}")
    return 0


def cmd_config_set(args: argparse.Namespace, ctx: CommandContext) -> int:
    """Validate and persist one configuration value."""
    descriptor = lookup(args.key)
    document = descriptor.apply(ctx.document, args.value)
    save_config(document, ctx.config_path)

    shown = descriptor.display(document)

    if ctx.formatter.json_output:
        ctx.formatter.json({"status": "success", "key": descriptor.name, "value": shown})
    else:
        ctx.formatter.success(f"Updated {descriptor.name} = {shown}")
    return 0


def cmd_config_list(args: argparse.Namespace, ctx: CommandContext) -> int:
    """Show every configuration value, secrets masked."""
    entries = list_values(ctx.document)

    if ctx.formatter.json_output:
        data: dict[str, dict[str, str]] = {}
        for entry in entries:
            data.setdefault(entry.section, {})[entry.key] = entry.value
        ctx.formatter.json(data)
        return 0

    ctx.formatter.line(f"Config file: {ctx.config_path}")
    section = None
    for entry in entries:
        if entry.section != section:
            section = entry.section
            ctx.formatter.line(f"{SECTION_TITLES[section]}:")
        ctx.formatter.line(f"  {entry.key} = {entry.value}")
    return 0


def cmd_config_init(args: argparse.Namespace, ctx: CommandContext) -> int:
    """Create a config file with defaults."""
    path, created = init_config(ctx.config_path)

    if ctx.formatter.json_output:
        ctx.formatter.json({"status": "success", "path": str(path), "created": created})
    elif created:
        ctx.formatter.success(f"Created config: {path}")
    else:
        ctx.formatter.info(f"Config already exists: {path}")
    return 0


def cmd_config_path(args: argparse.Namespace, ctx: CommandContext) -> int:
    if ctx.formatter.json_output:
        ctx.formatter.json({"path": str(ctx.config_path), "exists": ctx.config_path.exists()})
    else:
        ctx.formatter.line(str(ctx.config_path))
    return 0


def cmd_config_watch(args: argparse.Namespace, ctx: CommandContext) -> int:
    """Follow the config file and report each edit until interrupted."""
    formatter = ctx.formatter

    def on_change(previous: ConfigDocument, current: ConfigDocument) -> None:
        changes = changed_values(previous, current)
        if formatter.json_output:
            formatter.json({"status": "reloaded", "changes": {entry.key: entry.value for entry in changes}})
            return
        formatter.success(f"Config reloaded ({len(changes)} changed)")
        for entry in changes:
            formatter.line(f"  {entry.key} = {entry.value}")

    def on_error(error: ConfigError) -> None:
        # The watch keeps running; the previous settings stay in effect
        if formatter.json_output:
            formatter.json({"status": "error", "error": error.to_dict()})
        else:
            formatter.error(error.message, error.hint)

    watcher = ConfigWatcher(
        ctx.config_path,
        on_change=on_change,
        on_error=on_error,
        debounce_seconds=args.debounce,
    )
    watcher.start()
    formatter.info(f"Watching {ctx.config_path} (Ctrl+C to stop)")
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        formatter.info("Stopped watching")
    finally:
        watcher.stop()
    return 0


def _positive_float(value: str) -> float:
    number = float(value)
    if number <= 0:
        raise argparse.ArgumentTypeError("must be greater than 0")
    return number


def register_commands(subparsers: argparse._SubParsersAction) -> None:
    """Register configuration commands."""
    config_parser = subparsers.add_parser(
        "config",
        help="Show or manage configuration",
    )
    config_subparsers = config_parser.add_subparsers(
        dest="config_command",
        metavar="<command>",
    )

    get_parser = config_subparsers.add_parser("get", help="Show a config value")
    get_parser.add_argument("key", help="Config key to show")
    get_parser.set_defaults(func=cmd_config_get)

    set_parser = config_subparsers.add_parser("set", help="Set a config value")
    set_parser.add_argument("key", help="Config key to set")
    set_parser.add_argument("value", help="Value to set (empty string clears optional keys)")
    set_parser.set_defaults(func=cmd_config_set)

    list_parser = config_subparsers.add_parser("list", help="List all config values")
    list_parser.set_defaults(func=cmd_config_list)

    init_parser = config_subparsers.add_parser("init", help="Create a config file with defaults")
    init_parser.set_defaults(func=cmd_config_init)

    path_parser = config_subparsers.add_parser("path", help="Show the config file path")
    path_parser.set_defaults(func=cmd_config_path)

    watch_parser = config_subparsers.add_parser(
        "watch",
        help="Follow the config file and report each change as it is saved",
    )
    watch_parser.add_argument(
        "--debounce",
        type=_positive_float,
        default=0.5,
        metavar="SECONDS",
        help="Wait this long after the last write before reloading (default: 0.5)",
    )
    watch_parser.set_defaults(func=cmd_config_watch)
