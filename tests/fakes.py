# tests/fakes.py

from __future__ import annotations

import calendar
import plistlib
import sqlite3
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any

SECONDS_PER_DAY = 86400

# Schedule-date offset used by most tests (same as the production fallback).
OFFSET = 1637712000

# 2026-10-18 12:00:00 UTC
NOW = calendar.timegm((2026, 10, 18, 12, 0, 0))
TODAY = date(2026, 10, 18)


def unix(day: date, hour: int = 0) -> int:
    return calendar.timegm((day.year, day.month, day.day, hour, 0, 0))


def raw_date(day: date, offset: int = OFFSET) -> int:
    """Encode a calendar day the way TMTask.startDate stores it."""
    return unix(day) - offset


def utc(ts: int) -> datetime:
    return datetime.fromtimestamp(ts, tz=timezone.utc)


def rule_xml(fu: int) -> bytes:
    return (
        b'<?xml version="1.0" encoding="UTF-8"?>\n'
        b'<!DOCTYPE plist PUBLIC "-//Apple//DTD PLIST 1.0//EN" '
        b'"http://www.apple.com/DTDs/PropertyList-1.0.dtd">\n'
        b'<plist version="1.0"><dict>\n'
        b"  <key>fa</key>\n  <integer>1</integer>\n"
        b"  <key>fu</key>\n  <integer>" + str(fu).encode() + b"</integer>\n"
        b"  <key>tp</key>\n  <integer>0</integer>\n"
        b"</dict></plist>\n"
    )


def rule_binary(fu: int) -> bytes:
    return plistlib.dumps({"fa": 1, "fu": fu, "tp": 0}, fmt=plistlib.FMT_BINARY)


class FakeClock:
    """Mutable wall clock for calibration and window tests."""

    def __init__(self, now: float = NOW) -> None:
        self.now = float(now)

    def __call__(self) -> float:
        return self.now

    def advance(self, *, days: float = 0, seconds: float = 0) -> None:
        self.now += days * SECONDS_PER_DAY + seconds


_TASK_COLUMNS_RECURRING = """
    rt1_recurrenceRule BLOB,
    rt1_nextInstanceStartDate INTEGER,
    rt1_instanceCreationPaused INTEGER,
"""


class ThingsDbBuilder:
    """
    Writes a small Things-shaped SQLite database for tests.

    Only the columns the bridge reads are created. `recurrence=False` builds
    the table without the rt1_* columns, like older app versions.
    """

    def __init__(self, path: Path, *, recurrence: bool = True) -> None:
        self.path = Path(path)
        self.recurrence = recurrence
        self._conn = sqlite3.connect(str(self.path), isolation_level=None)
        self._create_schema()
        self._seq = 0

    def close(self) -> None:
        self._conn.close()

    def _create_schema(self) -> None:
        rt = _TASK_COLUMNS_RECURRING if self.recurrence else ""
        self._conn.executescript(
            f"""
            CREATE TABLE TMTask (
                uuid TEXT PRIMARY KEY,
                title TEXT,
                type INTEGER,
                status INTEGER,
                start INTEGER,
                notes TEXT,
                startDate INTEGER,
                startBucket INTEGER,
                deadline INTEGER,
                creationDate REAL,
                userModificationDate REAL,
                stopDate REAL,
                project TEXT,
                area TEXT,
                heading TEXT,
                reminderTime REAL,
                {rt}
                todayIndex INTEGER,
                "index" INTEGER,
                trashed INTEGER
            );
            CREATE TABLE TMArea (uuid TEXT PRIMARY KEY, title TEXT);
            CREATE TABLE TMTag (uuid TEXT PRIMARY KEY, title TEXT, shortcut TEXT);
            CREATE TABLE TMTaskTag (tasks TEXT, tags TEXT);
            CREATE TABLE TMChecklistItem (
                uuid TEXT PRIMARY KEY,
                title TEXT,
                status INTEGER,
                task TEXT,
                "index" INTEGER
            );
            """
        )

    def _next_id(self, prefix: str) -> str:
        self._seq += 1
        return f"{prefix}-{self._seq:04d}"

    def add_task(self, uuid: str | None = None, **fields: Any) -> str:
        uuid = uuid or self._next_id("task")
        row: dict[str, Any] = {
            "uuid": uuid,
            "title": fields.pop("title", uuid),
            "type": 0,
            "status": 0,
            "start": 0,
            "notes": "",
            "startDate": None,
            "startBucket": 0,
            "deadline": None,
            "creationDate": NOW - SECONDS_PER_DAY,
            "userModificationDate": NOW - SECONDS_PER_DAY,
            "stopDate": None,
            "project": None,
            "area": None,
            "heading": None,
            "reminderTime": None,
            "todayIndex": 0,
            "index": 0,
            "trashed": 0,
        }
        if self.recurrence:
            row.update(
                {
                    "rt1_recurrenceRule": None,
                    "rt1_nextInstanceStartDate": None,
                    "rt1_instanceCreationPaused": 0,
                }
            )
        unknown = set(fields) - set(row)
        if unknown:
            raise KeyError(f"unknown TMTask fields: {sorted(unknown)}")
        row.update(fields)

        cols = ", ".join(f'"{c}"' for c in row)
        ph = ", ".join("?" for _ in row)
        self._conn.execute(f"INSERT INTO TMTask ({cols}) VALUES ({ph})", list(row.values()))
        return uuid

    def add_project(self, uuid: str | None = None, **fields: Any) -> str:
        fields.setdefault("type", 1)
        fields.setdefault("start", 1)
        return self.add_task(uuid or self._next_id("project"), **fields)

    def add_template(self, uuid: str | None = None, *, next_day: date, fu: int = 4, **fields: Any) -> str:
        """A recurring template: rule + next instance, no startDate of its own."""
        fields.setdefault("start", 1)
        return self.add_task(
            uuid or self._next_id("template"),
            rt1_recurrenceRule=rule_xml(fu),
            rt1_nextInstanceStartDate=raw_date(next_day),
            **fields,
        )

    def add_area(self, title: str, uuid: str | None = None) -> str:
        uuid = uuid or self._next_id("area")
        self._conn.execute("INSERT INTO TMArea (uuid, title) VALUES (?, ?)", (uuid, title))
        return uuid

    def add_tag(self, title: str, uuid: str | None = None, shortcut: str | None = None) -> str:
        uuid = uuid or self._next_id("tag")
        self._conn.execute(
            "INSERT INTO TMTag (uuid, title, shortcut) VALUES (?, ?, ?)", (uuid, title, shortcut)
        )
        return uuid

    def tag_task(self, task_id: str, tag_id: str) -> None:
        self._conn.execute("INSERT INTO TMTaskTag (tasks, tags) VALUES (?, ?)", (task_id, tag_id))

    def add_checklist_item(self, task_id: str, title: str, *, index: int, status: int = 0) -> str:
        uuid = self._next_id("check")
        self._conn.execute(
            'INSERT INTO TMChecklistItem (uuid, title, status, task, "index") VALUES (?, ?, ?, ?, ?)',
            (uuid, title, status, task_id, index),
        )
        return uuid
