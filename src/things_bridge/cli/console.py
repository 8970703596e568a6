# src/things_bridge/cli/console.py

from __future__ import annotations

import logging
from datetime import datetime

from ..store.connection import StoreError
from .bootstrap import ConsoleState
from .commands import registry as command_registry

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def run_command(state: ConsoleState, line: str) -> str:
    """Run one command line; bare words are treated as a command name."""
    line = line.strip()
    if not line.startswith("/"):
        line = "/" + line

    try:
        reply = command_registry.handle(state, line)
    except StoreError as e:
        logger.warning("Store error while handling %r: %s", line, e)
        return f"[DB] {e}"
    except Exception:
        logger.exception("Command handler crashed.")
        return "Internal error while handling a command."

    return reply if reply is not None else ""


def run_console_loop(state: ConsoleState) -> None:
    logger.info("Console started (db=%s).", state.reader.db_path)
    _print_ts("[CONSOLE] Type a command. Use /help for commands. Use /exit to quit.\n")

    while True:
        try:
            user_input = input(">>> things: ").strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit", "exit", "quit"):
            logger.info("Console exit command received.")
            break

        _print_ts(run_command(state, user_input))

    logger.info("Console finished.")
