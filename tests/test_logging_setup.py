# tests/test_logging_setup.py

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from things_bridge.logging_setup import _ConsoleNoiseFilter, setup_logging


def _record(name: str, level: int) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, "msg", None, None)


@pytest.mark.parametrize(
    ("name", "level", "shown"),
    [
        ("things_bridge.store.queries", logging.DEBUG, True),
        ("things_bridge.cli.console", logging.INFO, True),
        ("things_bridge.store.decode", logging.DEBUG, False),
        ("things_bridge.store.decode", logging.WARNING, True),
        ("things_bridge.store.recurrence", logging.INFO, False),
        ("py.warnings", logging.WARNING, False),
        ("py.warnings", logging.ERROR, True),
        ("dotenv.main", logging.WARNING, False),
        ("dotenv.main", logging.ERROR, True),
    ],
)
def test_console_filter(name: str, level: int, shown: bool) -> None:
    assert _ConsoleNoiseFilter().filter(_record(name, level)) is shown


@pytest.fixture()
def restore_root_logging() -> Iterator[None]:
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()
    for h in handlers:
        root.addHandler(h)
    root.setLevel(level)
    logging.captureWarnings(False)


def test_setup_logging_writes_file_and_replaces_handlers(tmp_path: Path, restore_root_logging) -> None:
    setup_logging(log_dir=tmp_path / "logs")
    setup_logging(log_dir=tmp_path / "logs")

    root = logging.getLogger()
    assert len(root.handlers) == 2

    logging.getLogger("things_bridge.store.decode").debug("row detail")
    for h in root.handlers:
        h.flush()

    log_file = tmp_path / "logs" / "things-bridge.log"
    assert "row detail" in log_file.read_text(encoding="utf-8")
