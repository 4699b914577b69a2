"""Main CLI entry point."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from rcpctl import __version__
from rcpctl.cli.context import CommandContext
from rcpctl.cli.formatters import OutputFormatter
from rcpctl.core.config import load_config, resolve_config_path
from rcpctl.errors import RcpctlError
from rcpctl.utils.logging import setup_logging


def _add_config_option(parser: argparse.ArgumentParser, default=None) -> None:
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=default,
        metavar="PATH",
        help="Config file (default: ~/.config/rcp/config.json)",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="rcpctl",
        description="Manage the rcpdaemon system service and its configuration",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
Examples:
  rcpctl service install      Install rcpdaemon as a system service
  rcpctl service start        Start the service
  rcpctl service status       Show service status
  rcpctl config set port 8080 Change a config value
  rcpctl config list          Show configuration

Config: ~/.config/rcp/config.json
""",
    )

    parser.add_argument(
        "-V", "--version",
        action="version",
        version=f"rcpctl {__version__}",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        default=None,
        help="Output as JSON",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=None,
        help="Suppress non-essential output",
    )
    parser.add_argument(
        "--no-color",
        dest="color",
        action="store_false",
        default=None,
        help="Disable colored output",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        metavar="PATH",
        help="Also write log messages to this file",
    )
    _add_config_option(parser)

    subparsers = parser.add_subparsers(
        dest="command",
        metavar="<command>",
        title="Commands",
    )

    # Register all command modules
    from rcpctl.cli.commands import config, service

    service.register_commands(subparsers)
    config.register_commands(subparsers)

    # Accept --config after any subcommand as well
    for subparser in _subcommand_parsers(parser):
        _add_config_option(subparser, default=argparse.SUPPRESS)

    return parser


def _subcommand_parsers(parser: argparse.ArgumentParser):
    for action in parser._actions:
        if isinstance(action, argparse._SubParsersAction):
            for subparser in action.choices.values():
                yield subparser
                yield from _subcommand_parsers(subparser)


def _print_group_help(parser: argparse.ArgumentParser, command: str) -> None:
    for action in parser._actions:
        if isinstance(action, argparse._SubParsersAction):
            action.choices[command].print_help()


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    # No command specified - show help
    if args.command is None:
        parser.print_help()
        return 0

    if not hasattr(args, "func"):
        _print_group_help(parser, args.command)
        return 0

    formatter = OutputFormatter(
        json_output=bool(args.json),
        color=args.color is not False,
        quiet=bool(args.quiet),
    )
    setup_logging(log_file=args.log_file, level="debug" if args.verbose else "warn")

    config_path = resolve_config_path(args.config)
    try:
        document = load_config(config_path)
    except RcpctlError as e:
        return formatter.report(e)

    # Command-line flags win over the config file
    formatter = OutputFormatter(
        json_output=document.wants_json if args.json is None else args.json,
        color=document.output.color if args.color is None else args.color,
        quiet=document.output.quiet if args.quiet is None else args.quiet,
    )
    if not args.verbose:
        level = "error" if formatter.quiet else document.output.log_level
        setup_logging(log_file=args.log_file, level=level)

    ctx = CommandContext(config_path=config_path, document=document, formatter=formatter)
    try:
        return args.func(args, ctx)
    except RcpctlError as e:
        return formatter.report(e)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
