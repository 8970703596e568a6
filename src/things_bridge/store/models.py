# src/things_bridge/store/models.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import StrEnum
from typing import Any


def int_code(raw: Any) -> int | None:
    """Integer column value, or None for NULL, booleans and non-numeric junk."""
    if raw is None or isinstance(raw, bool):
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


class TaskKind(StrEnum):
    TODO = "to-do"
    PROJECT = "project"
    HEADING = "heading"

    @classmethod
    def from_db(cls, raw: Any) -> TaskKind:
        """TMTask.type: 0 to-do, 1 project, 2 heading. Unknown codes are to-dos."""
        code = int_code(raw)
        if code == 1:
            return cls.PROJECT
        if code == 2:
            return cls.HEADING
        return cls.TODO


class TaskStatus(StrEnum):
    INCOMPLETE = "incomplete"
    CANCELED = "canceled"
    COMPLETED = "completed"

    @classmethod
    def from_db(cls, raw: Any) -> TaskStatus:
        """TMTask.status / TMChecklistItem.status: 0 open, 2 canceled, 3 completed."""
        code = int_code(raw)
        if code == 3:
            return cls.COMPLETED
        if code == 2:
            return cls.CANCELED
        return cls.INCOMPLETE


class SchedulingBucket(StrEnum):
    INBOX = "Inbox"
    ANYTIME = "Anytime"
    SOMEDAY = "Someday"


class TaskList(StrEnum):
    """Built-in views served by the list query engine."""

    INBOX = "inbox"
    TODAY = "today"
    UPCOMING = "upcoming"
    ANYTIME = "anytime"
    SOMEDAY = "someday"
    LOGBOOK = "logbook"

    @classmethod
    def parse(cls, raw: str | None) -> TaskList | None:
        if not raw:
            return None
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return None


def _iso_date(d: date | None) -> str | None:
    return d.isoformat() if d is not None else None


def _iso_ts(ts: datetime | None) -> str | None:
    if ts is None:
        return None
    return ts.isoformat().replace("+00:00", "Z")


@dataclass(frozen=True, slots=True)
class ChecklistItem:
    id: str
    title: str
    status: TaskStatus

    def to_dict(self) -> dict[str, Any]:
        return {"uuid": self.id, "title": self.title, "status": self.status.value}


@dataclass(frozen=True, slots=True)
class Area:
    id: str
    title: str

    def to_dict(self) -> dict[str, Any]:
        return {"uuid": self.id, "title": self.title}


@dataclass(frozen=True, slots=True)
class Tag:
    id: str
    title: str
    shortcut: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"uuid": self.id, "title": self.title, "shortcut": self.shortcut}


@dataclass(frozen=True, slots=True)
class Task:
    id: str
    title: str
    kind: TaskKind
    status: TaskStatus
    notes: str
    scheduling_bucket: SchedulingBucket | None

    start_date: date | None
    deadline: date | None

    created_at: datetime | None
    modified_at: datetime | None
    completed_at: datetime | None = None
    reminder_time: datetime | None = None

    project: str | None = None
    project_title: str | None = None
    area: str | None = None
    area_title: str | None = None
    heading: str | None = None

    tags: frozenset[str] = field(default_factory=frozenset)
    checklist: tuple[ChecklistItem, ...] = ()

    is_recurring: bool = False
    recurrence_frequency: str | None = None
    next_occurrence_date: date | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "uuid": self.id,
            "title": self.title,
            "type": self.kind.value,
            "status": self.status.value,
            "notes": self.notes,
            "start": self.scheduling_bucket.value if self.scheduling_bucket else None,
            "startDate": _iso_date(self.start_date),
            "deadline": _iso_date(self.deadline),
            "createdAt": _iso_ts(self.created_at) or "",
            "modifiedAt": _iso_ts(self.modified_at) or "",
            "completedAt": _iso_ts(self.completed_at),
            "project": self.project,
            "projectTitle": self.project_title,
            "area": self.area,
            "areaTitle": self.area_title,
            "tags": sorted(self.tags),
            "checklist": [item.to_dict() for item in self.checklist],
            "reminderTime": _iso_ts(self.reminder_time),
            "repeating": self.is_recurring,
            "recurrenceRule": self.recurrence_frequency,
            "nextInstanceDate": _iso_date(self.next_occurrence_date),
        }


@dataclass(frozen=True, slots=True)
class Project(Task):
    """A Task of kind=project plus its child count (and its to-dos when fetched alone)."""

    child_count: int = 0
    todos: tuple[Task, ...] | None = None

    def to_dict(self) -> dict[str, Any]:
        data = Task.to_dict(self)
        for key in ("type", "project", "projectTitle", "checklist"):
            data.pop(key, None)
        data["todoCount"] = self.child_count
        if self.todos is not None:
            data["todos"] = [t.to_dict() for t in self.todos]
        return data
