# src/things_bridge/store/decode.py

"""
Row decoding: one raw TMTask row -> one Task / Project.

Every field has a defined fallback. An odd value degrades that field only,
the row (and the query it belongs to) still comes back.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from .epoch import EpochCalibrator, unix_to_datetime
from .models import (
    ChecklistItem,
    Project,
    SchedulingBucket,
    Task,
    TaskKind,
    TaskStatus,
    int_code,
)
from .recurrence import DEFAULT_PARSER, RecurrenceRuleParser

logger = logging.getLogger(__name__)

# TMTask.start
START_INBOX = 0
START_ACTIVE = 1
START_SOMEDAY = 2

# TMTask.startBucket
BUCKET_ANYTIME = 0
BUCKET_SOMEDAY = 1


def _get(row: Any, key: str) -> Any:
    try:
        return row[key]
    except (KeyError, IndexError):
        return None


def _text(raw: Any) -> str:
    if raw is None:
        return ""
    return raw if isinstance(raw, str) else str(raw)


def _opt_text(raw: Any) -> str | None:
    if raw is None:
        return None
    text = _text(raw)
    return text or None


def scheduling_bucket(start: Any, start_bucket: Any, start_date: Any) -> SchedulingBucket:
    """
    Reconcile start / startBucket / startDate into one bucket.

    The three columns overlap; first match wins:
      start=2                         -> Someday
      start=1 and a start date        -> Anytime
      startBucket=1                   -> Someday
      start=0 and no start date       -> Inbox
      otherwise                       -> Anytime
    """
    s = int_code(start)
    b = int_code(start_bucket)
    if s == START_SOMEDAY:
        return SchedulingBucket.SOMEDAY
    if s == START_ACTIVE and start_date is not None:
        return SchedulingBucket.ANYTIME
    if b == BUCKET_SOMEDAY:
        return SchedulingBucket.SOMEDAY
    if s == START_INBOX and start_date is None:
        return SchedulingBucket.INBOX
    return SchedulingBucket.ANYTIME


def resolve_area(own_area: Any, project_area: Any) -> str | None:
    """Own area wins; otherwise inherit the parent project's area."""
    return _opt_text(own_area) or _opt_text(project_area)


def decode_task(
    row: Any,
    dates: EpochCalibrator,
    *,
    tags: Iterable[str] = (),
    checklist: Iterable[ChecklistItem] = (),
    recurrence: RecurrenceRuleParser = DEFAULT_PARSER,
) -> Task:
    rule = _get(row, "rt1_recurrenceRule")
    is_recurring = rule is not None
    frequency = recurrence.frequency(rule) if is_recurring else None

    next_occurrence = dates.decode_date(_get(row, "rt1_nextInstanceStartDate")) if is_recurring else None

    start_code = _get(row, "start")
    if start_code is not None and int_code(start_code) is None:
        logger.debug("Row %s: non-integer start code %r", _get(row, "uuid"), start_code)

    raw_start = _get(row, "startDate")
    start_date = dates.decode_date(raw_start)
    if start_date is None and is_recurring:
        # Templates carry no startDate of their own until an instance is spawned.
        start_date = next_occurrence

    return Task(
        id=_text(_get(row, "uuid")),
        title=_text(_get(row, "title")),
        kind=TaskKind.from_db(_get(row, "type")),
        status=TaskStatus.from_db(_get(row, "status")),
        notes=_text(_get(row, "notes")),
        scheduling_bucket=scheduling_bucket(start_code, _get(row, "startBucket"), raw_start),
        start_date=start_date,
        deadline=dates.decode_date(_get(row, "deadline")),
        created_at=unix_to_datetime(_get(row, "creationDate")),
        modified_at=unix_to_datetime(_get(row, "userModificationDate")),
        completed_at=unix_to_datetime(_get(row, "stopDate")),
        reminder_time=unix_to_datetime(_get(row, "reminderTime")),
        project=_opt_text(_get(row, "project")),
        project_title=_opt_text(_get(row, "projectTitle")),
        area=resolve_area(_get(row, "ownArea"), _get(row, "projectArea")),
        area_title=_opt_text(_get(row, "areaTitle")),
        heading=_opt_text(_get(row, "heading")),
        tags=frozenset(tags),
        checklist=tuple(checklist),
        is_recurring=is_recurring,
        recurrence_frequency=frequency,
        next_occurrence_date=next_occurrence,
    )


def decode_project(
    row: Any,
    dates: EpochCalibrator,
    *,
    tags: Iterable[str] = (),
    todos: Iterable[Task] | None = None,
    recurrence: RecurrenceRuleParser = DEFAULT_PARSER,
) -> Project:
    task = decode_task(row, dates, tags=tags, recurrence=recurrence)
    count = int_code(_get(row, "todoCount")) or 0
    return Project(
        id=task.id,
        title=task.title,
        kind=TaskKind.PROJECT,
        status=task.status,
        notes=task.notes,
        scheduling_bucket=task.scheduling_bucket,
        start_date=task.start_date,
        deadline=task.deadline,
        created_at=task.created_at,
        modified_at=task.modified_at,
        completed_at=task.completed_at,
        reminder_time=task.reminder_time,
        area=task.area,
        area_title=task.area_title,
        tags=task.tags,
        is_recurring=task.is_recurring,
        recurrence_frequency=task.recurrence_frequency,
        next_occurrence_date=task.next_occurrence_date,
        child_count=count,
        todos=tuple(todos) if todos is not None else None,
    )
