# tests/conftest.py

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from types import SimpleNamespace

import pytest

from things_bridge.cli.bootstrap import ConsoleState, create_console_state
from things_bridge.store.reader import ThingsReader

from .fakes import NOW, OFFSET, FakeClock, ThingsDbBuilder


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(NOW)


@pytest.fixture()
def things_db(tmp_path: Path) -> Iterator[ThingsDbBuilder]:
    builder = ThingsDbBuilder(tmp_path / "main.sqlite")
    yield builder
    builder.close()


@pytest.fixture()
def reader(things_db: ThingsDbBuilder, clock: FakeClock) -> Iterator[ThingsReader]:
    """
    Reader pinned to the test offset.

    Calibration itself is covered in test_epoch.py; pinning keeps view tests
    independent of which rows happen to be scheduled.
    """
    r = ThingsReader(things_db.path, clock=clock, epoch_offset=OFFSET)
    yield r
    r.close()


@pytest.fixture()
def settings(tmp_path: Path, things_db: ThingsDbBuilder) -> SimpleNamespace:
    """
    Minimal settings object compatible with ThingsReader.from_settings.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="things-bridge",
        log_level="INFO",
        data_dir=tmp_path / "data",
        db_path=things_db.path,
        epoch_offset=OFFSET,
        result_cap=50,
    )


@pytest.fixture()
def console_state(settings: SimpleNamespace, reader: ThingsReader) -> ConsoleState:
    return create_console_state(settings=settings, reader=reader)
