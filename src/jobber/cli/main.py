# src/jobber/cli/main.py

"""
CLI entrypoint.

Parses global flags, initializes logging, builds AppState, then either runs a
single command ("jobber start 9:00 -m ...") or an interactive console loop
when no command is given. The jobs file is rewritten only if modified.
"""

from __future__ import annotations

import argparse
import logging
import sys

from ..config import Settings, get_settings
from ..core.errors import DecodeFailure, JobberError
from ..core.ports import Prompter
from ..core.state import AppState
from ..logging_setup import setup_logging
from .bootstrap import create_initial_state, save_store
from .commands import registry as command_registry

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="jobber",
        description="jobber - job time tracker",
        epilog="Run without COMMAND for an interactive console. Use 'help' to list commands.",
    )
    ap.add_argument("-f", "--file", default=None, help="jobs file (default: env JOBBER_FILE or jobber.dat)")
    ap.add_argument("-R", "--resolution", type=float, default=None, help="time resolution in hours (default: 0.25)")
    ap.add_argument("-M", "--money", type=float, default=None, metavar="RATE", help="display hours*RATE")
    ap.add_argument("-v", "--verbose", action="store_true", help="output more information")
    ap.add_argument("command", nargs=argparse.REMAINDER, help="command and its arguments")
    return ap


def _emit(text: str) -> None:
    print(text, flush=True)


def run_console_loop(state: AppState) -> None:
    logger.info("Console started (file=%s).", state.settings.jobs_file)
    print("Type commands (e.g. 'start 9:00 -m text'). Use help for commands, exit to quit.")
    while True:
        try:
            line = input(">>> ").strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if line.lower() in ("exit", "quit", "/exit", "/quit"):
            break

        try:
            reply = command_registry.handle(state, line, emit=_emit)
        except JobberError as e:
            reply = str(e)

        if reply is not None:
            print(reply)

    logger.info("Console finished.")


def main(
    argv: list[str] | None = None,
    *,
    settings: Settings | None = None,
    prompter: Prompter | None = None,
) -> int:
    args = _build_parser().parse_args(argv)

    try:
        settings = (settings or get_settings()).with_overrides(
            jobs_file=args.file,
            resolution=args.resolution,
            rate=args.money,
            verbose=args.verbose,
        )
    except ValueError as e:
        print(f"Invalid option: {e}", file=sys.stderr)
        return 2

    # command output goes to stdout; the console log stays quiet unless verbose
    console_level = logging.DEBUG if settings.verbose else logging.WARNING
    file_level = getattr(logging, str(settings.log_level).upper(), logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level, file_level=file_level)
    logger.info("Starting %s (file=%s)...", settings.app_name, settings.jobs_file)

    try:
        state = create_initial_state(settings=settings, prompter=prompter)
    except DecodeFailure as e:
        # never touch a file we could not read completely
        logger.error("Failed to load %s: %s", settings.jobs_file, e)
        print(f"Cannot load {settings.jobs_file}: {e}", file=sys.stderr)
        return 1

    status = 0
    try:
        if args.command:
            try:
                print(command_registry.dispatch(state, args.command, emit=_emit))
            except JobberError as e:
                logger.info("Command failed: %s", e)
                print(str(e), file=sys.stderr)
                status = 1
        else:
            run_console_loop(state)
    finally:
        save_store(state)
        logger.info("Bye.")
    return status


if __name__ == "__main__":
    sys.exit(main())
