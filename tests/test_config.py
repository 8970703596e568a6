# tests/test_config.py

from __future__ import annotations

from pathlib import Path

import pytest

from things_bridge.config import (
    THINGS_DB_RELPATH,
    THINGS_GROUP_CONTAINER,
    Settings,
    find_things_db_path,
    validate_settings,
)


def _touch_db(root: Path) -> Path:
    path = root / THINGS_DB_RELPATH
    path.parent.mkdir(parents=True)
    path.write_bytes(b"")
    return path


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> pytest.MonkeyPatch:
    for name in (
        "THINGS_DB_PATH",
        "THINGS_EPOCH_OFFSET",
        "THINGS_BRIDGE_APP_NAME",
        "THINGS_BRIDGE_LOG_LEVEL",
        "THINGS_BRIDGE_DATA_DIR",
        "THINGS_BRIDGE_RESULT_CAP",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    return monkeypatch


def test_finds_database_directly_in_container(tmp_path: Path) -> None:
    container = tmp_path / THINGS_GROUP_CONTAINER
    expected = _touch_db(container)
    assert find_things_db_path(tmp_path) == expected


def test_finds_database_in_things_data_dir(tmp_path: Path) -> None:
    container = tmp_path / THINGS_GROUP_CONTAINER
    (container / "ThingsData-AAAA").mkdir(parents=True)
    expected = _touch_db(container / "ThingsData-BBBB")
    (container / "Other").mkdir()

    assert find_things_db_path(tmp_path) == expected


def test_falls_back_to_direct_path(tmp_path: Path) -> None:
    expected = tmp_path / THINGS_GROUP_CONTAINER / THINGS_DB_RELPATH
    assert find_things_db_path(tmp_path) == expected


def test_settings_defaults(clean_env: pytest.MonkeyPatch, tmp_path: Path) -> None:
    s = Settings.from_env()

    assert s.app_name == "things-bridge"
    assert s.log_level == "INFO"
    assert s.data_dir == Path(".local/things-bridge")
    assert s.db_path == tmp_path / "home" / THINGS_GROUP_CONTAINER / THINGS_DB_RELPATH
    assert s.epoch_offset is None
    assert s.result_cap == 50


def test_settings_overrides(clean_env: pytest.MonkeyPatch, tmp_path: Path) -> None:
    clean_env.setenv("THINGS_DB_PATH", str(tmp_path / "custom.sqlite"))
    clean_env.setenv("THINGS_EPOCH_OFFSET", "1637712000")
    clean_env.setenv("THINGS_BRIDGE_RESULT_CAP", "20")
    clean_env.setenv("THINGS_BRIDGE_DATA_DIR", str(tmp_path / "data"))

    s = Settings.from_env()

    assert s.db_path == tmp_path / "custom.sqlite"
    assert s.epoch_offset == 1637712000
    assert s.result_cap == 20
    assert s.data_dir == tmp_path / "data"


@pytest.mark.parametrize(("raw", "expected"), [("0", 1), ("-5", 1), ("abc", 50), ("", 50)])
def test_result_cap_is_sanitized(clean_env: pytest.MonkeyPatch, raw: str, expected: int) -> None:
    clean_env.setenv("THINGS_BRIDGE_RESULT_CAP", raw)
    assert Settings.from_env().result_cap == expected


def test_bad_epoch_offset_is_ignored(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("THINGS_EPOCH_OFFSET", "not-a-number")
    assert Settings.from_env().epoch_offset is None


def test_validate_settings_reports_missing_database(clean_env: pytest.MonkeyPatch, tmp_path: Path) -> None:
    clean_env.setenv("THINGS_DB_PATH", str(tmp_path / "missing.sqlite"))
    errors = validate_settings(Settings.from_env())
    assert len(errors) == 1
    assert "THINGS_DB_PATH" in errors[0]

    (tmp_path / "missing.sqlite").write_bytes(b"")
    assert validate_settings(Settings.from_env()) == []
