# src/things_bridge/store/connection.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
import threading
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

# TMTask columns that moved or appeared across Things releases. Missing ones are
# selected as NULL so the base query keeps working on older databases.
OPTIONAL_TASK_COLUMNS = (
    "startBucket",
    "todayIndex",
    "heading",
    "reminderTime",
    "rt1_recurrenceRule",
    "rt1_nextInstanceStartDate",
    "rt1_instanceCreationPaused",
)

RECURRENCE_COLUMNS = (
    "rt1_recurrenceRule",
    "rt1_nextInstanceStartDate",
    "rt1_instanceCreationPaused",
)


class StoreError(RuntimeError):
    """Any failure reading the Things database, with the sqlite error as __cause__."""


class StoreUnavailableError(StoreError):
    """The database file could not be opened."""


@dataclass(frozen=True, slots=True)
class TaskSchema:
    """Which TMTask columns exist in the database we are reading."""

    columns: frozenset[str]

    def has(self, name: str) -> bool:
        return name in self.columns

    @property
    def has_recurrence(self) -> bool:
        return all(c in self.columns for c in RECURRENCE_COLUMNS)

    def col(self, alias: str, name: str) -> str:
        """`alias.name` when the column exists, otherwise a NULL literal."""
        if name in self.columns:
            return f'{alias}."{name}"'
        return "NULL"


def _contains(haystack: Any, needle: Any) -> int:
    # Case-insensitive substring test registered as a SQL function. LIKE folds
    # ASCII only and treats % and _ in user input as wildcards.
    if haystack is None or needle is None:
        return 0
    return int(str(needle).casefold() in str(haystack).casefold())


class ThingsDatabase:
    """
    Lazily opened, shared, read-only connection to the Things database.

    Thread-safety:
    - the connection is opened with mode=ro and check_same_thread=False
    - opening (and closing) is serialized by a lock, so there is one connection
    - nothing here writes, so queries on it need no extra locking
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = Path(db_path)
        self._conn: sqlite3.Connection | None = None
        self._schema: TaskSchema | None = None
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._db_path

    def close(self) -> None:
        with self._lock:
            conn, self._conn = self._conn, None
            self._schema = None
        if conn is not None:
            with contextlib.suppress(Exception):
                conn.close()

    # ---- low-level helpers ----

    def _open(self) -> sqlite3.Connection:
        if not self._db_path.exists():
            raise StoreUnavailableError(f"Things database not found: {self._db_path}")
        uri = f"{self._db_path.resolve().as_uri()}?mode=ro"
        try:
            conn = sqlite3.connect(uri, uri=True, timeout=30.0, check_same_thread=False)
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"Cannot open Things database {self._db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        logger.info("Opened Things database read-only db=%s", self._db_path)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")
        conn.create_function("bridge_contains", 2, _contains, deterministic=True)

    def conn(self) -> sqlite3.Connection:
        conn = self._conn
        if conn is not None:
            return conn
        with self._lock:
            if self._conn is None:
                self._conn = self._open()
            return self._conn

    def schema(self) -> TaskSchema:
        if self._schema is None:
            try:
                rows = self.conn().execute("PRAGMA table_info(TMTask)").fetchall()
            except sqlite3.Error as e:
                raise StoreError(f"Cannot inspect TMTask: {e}") from e
            cols = frozenset(str(r["name"]) for r in rows)
            if not cols:
                raise StoreError(f"TMTask table missing in {self._db_path}")
            missing = [c for c in OPTIONAL_TASK_COLUMNS if c not in cols]
            if missing:
                logger.warning("TMTask lacks columns %s; selecting them as NULL", ", ".join(missing))
            self._schema = TaskSchema(columns=cols)
        return self._schema

    # ---- query helpers ----

    def fetch_all(self, sql: str, params: Sequence[Any] = ()) -> list[sqlite3.Row]:
        try:
            return self.conn().execute(sql, tuple(params)).fetchall()
        except StoreError:
            raise
        except sqlite3.Error as e:
            raise StoreError(f"Query failed: {e}") from e

    def fetch_one(self, sql: str, params: Sequence[Any] = ()) -> sqlite3.Row | None:
        try:
            return self.conn().execute(sql, tuple(params)).fetchone()
        except StoreError:
            raise
        except sqlite3.Error as e:
            raise StoreError(f"Query failed: {e}") from e
