"""Command-line entry point with lazily loaded command modules."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from collections.abc import Callable
from importlib import import_module

logger = logging.getLogger(__name__)

CommandHandler = Callable[[argparse.Namespace], int]

# command name -> module under podcast_profiles.cli.commands
COMMAND_MODULES: dict[str, str] = {
    "scrape": "scrape",
    "extract-url": "extract_url",
}


def create_parser() -> argparse.ArgumentParser:
    """Create minimal parser - commands loaded on-demand in main()."""
    parser = argparse.ArgumentParser(
        prog="podcast-profiles",
        description="Scrape podcast show profiles into the profiles table",
        add_help=False,
    )

    parser.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "INFO"),
        help="Logging level (e.g. INFO, DEBUG; default LOG_LEVEL or INFO)",
    )

    parser.add_argument(
        "command",
        nargs="?",
        help="Command to run (use 'COMMAND --help' for command-specific help)",
    )

    return parser


def _load_command_parser(command: str) -> tuple[Callable, CommandHandler] | None:
    """Load parser and handler for a specific command on-demand.

    Returns: (add_parser_func, handle_command_func) or None if not found
    """
    module_name = COMMAND_MODULES.get(command)
    if not module_name:
        return None

    module = import_module(f"podcast_profiles.cli.commands.{module_name}")
    suffix = command.replace("-", "_")
    parser_func = getattr(module, f"add_{suffix}_parser", None)
    handler_func = getattr(module, f"handle_{suffix}_command", None)

    if parser_func and handler_func:
        return parser_func, handler_func
    return None


def main(
    argv: list[str] | None = None,
    *,
    setup_logging_func: Callable[[str], None] | None = None,
) -> int:
    """Main CLI entry point with on-demand command loading."""
    parser = create_parser()
    args, remaining = parser.parse_known_args(argv)

    log_level = getattr(args, "log_level", "INFO") or "INFO"
    if setup_logging_func is None:
        from .context import setup_logging as default_setup_logging

        setup_logging_func = default_setup_logging

    setup_logging_func(log_level)

    command = args.command
    if not command:
        print("Available commands:", file=sys.stderr)
        print("  scrape       - Scrape every pending profile and save it", file=sys.stderr)
        print("  extract-url  - Extract a single profile URL", file=sys.stderr)
        print("Use: podcast-profiles COMMAND --help for more info", file=sys.stderr)
        return 1

    result = _load_command_parser(command)
    if result is None:
        print(f"Unknown command: {command}", file=sys.stderr)
        return 1

    add_parser_func, handle_func = result

    full_parser = argparse.ArgumentParser(
        prog=f"podcast-profiles {command}",
        description=f"Run {command} command",
    )
    full_parser.add_argument("--log-level", default="INFO")

    subparsers = full_parser.add_subparsers(dest="command")
    add_parser_func(subparsers)

    full_args = full_parser.parse_args([command] + remaining)

    try:
        return handle_func(full_args)
    except Exception:
        logger.exception("Fatal error while running %s", command)
        return 1


if __name__ == "__main__":
    sys.exit(main())
