# src/things_bridge/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- Nothing touches the Things database at import time.
- The database path is auto-discovered, THINGS_DB_PATH overrides it.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

ENV_PREFIX = "THINGS_BRIDGE"

THINGS_GROUP_CONTAINER = "Library/Group Containers/JLMPQHK86H.com.culturedcode.ThingsMac"
THINGS_DB_RELPATH = "Things Database.thingsdatabase/main.sqlite"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv() -> None:
    """Load a local .env without overriding variables already set."""
    load_dotenv(override=False)


_load_dotenv()


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_optional_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def find_things_db_path(home: Path | None = None) -> Path:
    """
    Locate main.sqlite inside the Things group container.

    Older installs keep the database directly in the container, newer ones
    nest it in a ThingsData-XXXX/ directory. When nothing is found the direct
    path is returned so the caller reports a clear "not found" later.
    """
    home = Path.home() if home is None else home
    container = home / THINGS_GROUP_CONTAINER

    direct = container / THINGS_DB_RELPATH
    if direct.exists():
        return direct

    try:
        entries = sorted(container.iterdir()) if container.is_dir() else []
    except OSError:
        # Permission denied inside the container: fall through.
        entries = []

    for entry in entries:
        if entry.name.startswith("ThingsData-"):
            candidate = entry / THINGS_DB_RELPATH
            if candidate.exists():
                return candidate

    return direct


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    data_dir: Path

    # ---- Things database ----
    db_path: Path
    epoch_offset: Optional[int]

    # ---- Query tuning ----
    result_cap: int

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "things-bridge") or "things-bridge"
        log_level = _env(_k("LOG_LEVEL"), "INFO")
        data_dir = _env_path(_k("DATA_DIR"), Path(".local/things-bridge"))

        # Unprefixed, unlike the THINGS_BRIDGE_* variables.
        raw_db = os.getenv("THINGS_DB_PATH")
        db_path = Path(raw_db).expanduser() if raw_db and raw_db.strip() else find_things_db_path()

        epoch_offset = _env_optional_int("THINGS_EPOCH_OFFSET")
        result_cap = max(1, _env_int(_k("RESULT_CAP"), 50))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            db_path=db_path,
            epoch_offset=epoch_offset,
            result_cap=result_cap,
        )


def validate_settings(settings: Settings) -> List[str]:
    """Return human-readable configuration problems (empty list when usable)."""
    errors: List[str] = []
    if not settings.db_path.exists():
        errors.append(
            f"Things 3 database not found at: {settings.db_path}\n"
            "  Is Things 3 installed? Set THINGS_DB_PATH to override."
        )
    return errors


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
