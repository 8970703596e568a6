# src/things_bridge/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the composition root for the console:
- loads settings once,
- ensures the local (gitignored) data dir exists,
- wires a ThingsReader into ConsoleState.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from ..config import get_settings
from ..store.reader import ThingsReader

logger = logging.getLogger(__name__)


@dataclass
class ConsoleState:
    settings: Any
    reader: ThingsReader
    json_output: bool = False


def create_console_state(*, settings=None, reader: ThingsReader | None = None) -> ConsoleState:
    """
    Create ConsoleState from the provided settings.

    Keeping settings and the reader injectable makes the console testable
    against a throwaway database. If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    data_dir = getattr(settings, "data_dir", None)
    if data_dir is not None:
        data_dir.mkdir(parents=True, exist_ok=True)

    if reader is None:
        reader = ThingsReader.from_settings(settings)

    logger.debug("Console state ready db=%s", reader.db_path)
    return ConsoleState(settings=settings, reader=reader)
