# src/things_bridge/cli/main.py

"""
CLI entrypoint.

Initializes logging, validates settings, builds ConsoleState, then either
runs a single command given on the command line (`things-bridge today`) or
starts the interactive console.
"""

from __future__ import annotations

import logging
import sys

from ..config import get_settings, validate_settings
from ..logging_setup import setup_logging
from .bootstrap import create_console_state
from .console import run_command, run_console_loop

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    errors = validate_settings(settings)
    if errors:
        print("Configuration errors:", file=sys.stderr)
        for error in errors:
            print(f"   * {error}", file=sys.stderr)
        return 1

    logger.info("Starting %s (db=%s)...", settings.app_name, settings.db_path)
    state = create_console_state(settings=settings)

    try:
        if argv:
            print(run_command(state, " ".join(argv)))
        else:
            run_console_loop(state)
    finally:
        state.reader.close()
        logger.info("Bye.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
