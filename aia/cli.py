#!/usr/bin/env python3

import argparse
import argcomplete
import atexit
import logging
import readline  # noqa: F401  (line editing for input())
import sys

from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler

from .ai import CommandDispatcher, LLMClient, Session, build_context
from .config import ConfigError, load_config

logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


def _reattach_terminal():
    """
    Once piped input has been consumed, reads user prompts from the terminal.
    Without a terminal, prompts hit end-of-input and the session ends normally.
    """
    if sys.stdin.isatty():
        return
    try:
        tty = open("/dev/tty", "r")
    except OSError as e:
        logger.debug("No terminal available for interactive input: %s", e)
        return
    atexit.register(tty.close)
    sys.stdin = tty


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="aia",
        description="An AI-powered terminal assistant. Describe what you want to do and "
        "it will suggest a command, ask a question, or answer directly.",
    )
    parser.add_argument(
        "goal",
        nargs="*",
        help="Your first request. If omitted, you will be prompted for it.",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Show debug logging."
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to the configuration file. Defaults to ~/.config/aia/config.toml.",
    )
    return parser


def run_cli(argv: Optional[List[str]] = None) -> int:
    """
    Parses command-line arguments and runs an interactive session.

    This function is designed to be testable by allowing arguments to be passed
    directly.

    Args:
        argv: A list of strings representing the command-line arguments.
              If None, `sys.argv[1:]` is used automatically by `parse_args`.

    Returns:
        The process exit code.
    """
    parser = _build_parser()

    # Enable argument auto-completion.
    argcomplete.autocomplete(parser)

    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    console = Console()
    console.print("[bold]AIA Terminal Assistant[/]")

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    context = build_context()
    _reattach_terminal()

    session = Session(
        context,
        LLMClient(config.provider_configs()),
        config.model_id,
        dispatcher=CommandDispatcher(
            console, shell=config.shell, command_timeout=config.command_timeout
        ),
        console=console,
        max_history_turns=config.max_history_turns,
    )

    initial_goal = " ".join(args.goal) if args.goal else None
    return session.run(initial_goal)


def main():
    """The main entry point for the command-line interface, called by the `aia` script."""
    try:
        sys.exit(run_cli())
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()
