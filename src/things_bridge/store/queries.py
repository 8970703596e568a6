# src/things_bridge/store/queries.py

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from .connection import ThingsDatabase
from .decode import decode_project, decode_task
from .epoch import SECONDS_PER_DAY, EpochCalibrator, as_number
from .models import Area, Project, Tag, Task, TaskList
from .recurrence import DEFAULT_PARSER, RecurrenceRuleParser
from .relations import checklist_for, tags_for

logger = logging.getLogger(__name__)

# TMTask.type
TYPE_TODO = 0
TYPE_PROJECT = 1

# TMTask.status
STATUS_INCOMPLETE = 0
STATUS_CANCELED = 2
STATUS_COMPLETED = 3

DEFAULT_RESULT_CAP = 50

# Slack around "today" when matching recurrence templates, absorbs the gap
# between UTC day boundaries and the user's local day.
TODAY_TOLERANCE_SECONDS = SECONDS_PER_DAY


class Origin(StrEnum):
    CONCRETE = "concrete"
    TEMPLATE = "template"


@dataclass(frozen=True, slots=True)
class Candidate:
    """A raw row on its way into a merged view, tagged with where it came from."""

    row: sqlite3.Row
    origin: Origin

    @property
    def id(self) -> str:
        return str(self.row["uuid"])

    @property
    def effective_raw(self) -> float | None:
        """Raw sort date: next occurrence for recurring rows, startDate otherwise."""
        if self.row["rt1_recurrenceRule"] is not None:
            return as_number(self.row["rt1_nextInstanceStartDate"])
        return as_number(self.row["startDate"])


def merge_candidates(
    concrete: Iterable[sqlite3.Row],
    templates: Iterable[sqlite3.Row],
) -> list[Candidate]:
    """
    Union of concrete rows and template rows, deduplicated by uuid.

    Concrete rows come first and win: a template whose uuid already appeared
    is dropped.
    """
    seen: set[str] = set()
    out: list[Candidate] = []
    for origin, rows in ((Origin.CONCRETE, concrete), (Origin.TEMPLATE, templates)):
        for row in rows:
            cand = Candidate(row=row, origin=origin)
            if cand.id in seen:
                continue
            seen.add(cand.id)
            out.append(cand)
    return out


def sort_by_effective_date(candidates: list[Candidate]) -> list[Candidate]:
    """Stable ascending sort on effective date; rows without one go last."""

    def key(c: Candidate) -> tuple[bool, float]:
        v = c.effective_raw
        return (v is None, v if v is not None else 0.0)

    return sorted(candidates, key=key)


class ListQueryEngine:
    """
    The canonical Things views plus search / tag / project lookups.

    Every query excludes trashed rows. Rows are hydrated with tags and
    checklist (one sub-query each per row) and decoded through the shared
    EpochCalibrator.
    """

    def __init__(
        self,
        db: ThingsDatabase,
        dates: EpochCalibrator,
        *,
        result_cap: int = DEFAULT_RESULT_CAP,
        recurrence: RecurrenceRuleParser = DEFAULT_PARSER,
    ) -> None:
        self._db = db
        self._dates = dates
        self._cap = max(1, int(result_cap))
        self._recurrence = recurrence

    @property
    def result_cap(self) -> int:
        return self._cap

    # ---- SQL building ----

    def _col(self, name: str) -> str:
        return self._db.schema().col("t", name)

    def _base_select(self, extra: Sequence[str] = ()) -> str:
        schema = self._db.schema()
        cols = [
            "t.uuid",
            "t.title",
            "t.type",
            "t.status",
            "t.start",
            "t.notes",
            "t.startDate",
            f"{schema.col('t', 'startBucket')} AS startBucket",
            "t.deadline",
            "t.creationDate",
            "t.userModificationDate",
            "t.stopDate",
            "t.project",
            "p.title AS projectTitle",
            "t.area AS ownArea",
            "p.area AS projectArea",
            "a.title AS areaTitle",
            f"{schema.col('t', 'heading')} AS heading",
            f"{schema.col('t', 'reminderTime')} AS reminderTime",
            f"{schema.col('t', 'rt1_recurrenceRule')} AS rt1_recurrenceRule",
            f"{schema.col('t', 'rt1_nextInstanceStartDate')} AS rt1_nextInstanceStartDate",
            f"{schema.col('t', 'rt1_instanceCreationPaused')} AS rt1_instanceCreationPaused",
            *extra,
        ]
        return (
            "SELECT " + ", ".join(cols) + "\n"
            "FROM TMTask t\n"
            "LEFT JOIN TMTask p ON t.project = p.uuid\n"
            "LEFT JOIN TMArea a ON a.uuid = COALESCE(t.area, p.area)\n"
        )

    def _select(self, where: str, params: Sequence[Any] = (), *, extra: Sequence[str] = ()) -> list[sqlite3.Row]:
        return self._db.fetch_all(self._base_select(extra) + where, params)

    def _hydrate(self, rows: Iterable[sqlite3.Row]) -> list[Task]:
        out: list[Task] = []
        for row in rows:
            task_id = str(row["uuid"])
            out.append(
                decode_task(
                    row,
                    self._dates,
                    tags=tags_for(self._db, task_id),
                    checklist=checklist_for(self._db, task_id),
                    recurrence=self._recurrence,
                )
            )
        return out

    def _templates_between(self, *, after: float, before: float | None) -> list[sqlite3.Row]:
        """Active recurrence templates whose next instance falls in the window."""
        if not self._db.schema().has_recurrence:
            return []
        where = f"""
            WHERE t.type = {TYPE_TODO}
              AND t.status = {STATUS_INCOMPLETE}
              AND t.trashed = 0
              AND t.rt1_recurrenceRule IS NOT NULL
              AND COALESCE(t.rt1_instanceCreationPaused, 0) = 0
              AND t.rt1_nextInstanceStartDate IS NOT NULL
        """
        params: list[Any] = []
        if before is None:
            where += " AND t.rt1_nextInstanceStartDate > ?"
            params.append(after)
        else:
            where += " AND t.rt1_nextInstanceStartDate >= ? AND t.rt1_nextInstanceStartDate < ?"
            params.extend([after, before])
        where += " ORDER BY t.rt1_nextInstanceStartDate ASC"
        return self._select(where, params)

    # ---- built-in views ----

    def todos(self, list_name: str | TaskList) -> list[Task]:
        view = list_name if isinstance(list_name, TaskList) else TaskList.parse(list_name)
        if view is None:
            logger.debug("Unknown list %r; returning no rows", list_name)
            return []
        handler = {
            TaskList.INBOX: self.inbox,
            TaskList.TODAY: self.today,
            TaskList.UPCOMING: self.upcoming,
            TaskList.ANYTIME: self.anytime,
            TaskList.SOMEDAY: self.someday,
            TaskList.LOGBOOK: self.logbook,
        }[view]
        return handler()

    def inbox(self) -> list[Task]:
        rows = self._select(
            f"""
            WHERE t.type = {TYPE_TODO}
              AND t.status = {STATUS_INCOMPLETE}
              AND t.trashed = 0
              AND t.start = 0
              AND t.startDate IS NULL
              AND COALESCE({self._col("startBucket")}, 0) = 0
              AND t.project IS NULL
              AND {self._col("heading")} IS NULL
            ORDER BY t.uuid ASC
            """
        )
        return self._hydrate(rows)

    def today(self) -> list[Task]:
        today = self._dates.today_raw()
        concrete = self._select(
            f"""
            WHERE t.type = {TYPE_TODO}
              AND t.status = {STATUS_INCOMPLETE}
              AND t.trashed = 0
              AND t.start = 1
              AND t.startDate IS NOT NULL
            ORDER BY {self._col("todayIndex")} ASC
            """
        )
        templates = self._templates_between(
            after=today - TODAY_TOLERANCE_SECONDS,
            before=today + TODAY_TOLERANCE_SECONDS,
        )
        merged = merge_candidates(concrete, templates)
        return self._hydrate(c.row for c in merged)

    def upcoming(self) -> list[Task]:
        today = self._dates.today_raw()
        concrete = self._select(
            f"""
            WHERE t.type = {TYPE_TODO}
              AND t.status = {STATUS_INCOMPLETE}
              AND t.trashed = 0
              AND t.start = 1
              AND t.startDate IS NOT NULL
              AND COALESCE({self._col("startBucket")}, 0) = 0
            ORDER BY t.startDate ASC
            """
        )
        templates = self._templates_between(after=today, before=None)
        merged = sort_by_effective_date(merge_candidates(concrete, templates))
        return self._hydrate(c.row for c in merged)

    def anytime(self) -> list[Task]:
        rows = self._select(
            f"""
            WHERE t.type = {TYPE_TODO}
              AND t.status = {STATUS_INCOMPLETE}
              AND t.trashed = 0
              AND t.start = 1
              AND COALESCE({self._col("startBucket")}, 0) = 0
            ORDER BY {self._col("todayIndex")} ASC
            """
        )
        return self._hydrate(rows)

    def someday(self) -> list[Task]:
        rows = self._select(
            f"""
            WHERE t.type = {TYPE_TODO}
              AND t.status = {STATUS_INCOMPLETE}
              AND t.trashed = 0
              AND t.start = 2
            ORDER BY t.creationDate DESC
            """
        )
        return self._hydrate(rows)

    def logbook(self) -> list[Task]:
        rows = self._select(
            f"""
            WHERE t.type = {TYPE_TODO}
              AND t.status IN ({STATUS_COMPLETED}, {STATUS_CANCELED})
              AND t.trashed = 0
            ORDER BY t.stopDate DESC
            LIMIT ?
            """,
            (self._cap,),
        )
        return self._hydrate(rows)

    # ---- lookups ----

    def search(self, query: str) -> list[Task]:
        """Case-insensitive substring match on title or notes, newest edits first."""
        rows = self._select(
            f"""
            WHERE t.type = {TYPE_TODO}
              AND t.trashed = 0
              AND (bridge_contains(t.title, ?) OR bridge_contains(t.notes, ?))
            ORDER BY t.userModificationDate DESC
            LIMIT ?
            """,
            (query, query, self._cap),
        )
        return self._hydrate(rows)

    def by_tag(self, tag_name: str) -> list[Task]:
        rows = self._select(
            f"""
            WHERE t.type = {TYPE_TODO}
              AND t.trashed = 0
              AND t.status = {STATUS_INCOMPLETE}
              AND t.uuid IN (
                SELECT tt.tasks
                FROM TMTaskTag tt
                JOIN TMTag tag ON tt.tags = tag.uuid
                WHERE tag.title = ?
              )
            ORDER BY t.userModificationDate DESC
            """,
            (tag_name,),
        )
        return self._hydrate(rows)

    def by_project(self, project_id: str) -> list[Task]:
        rows = self._select(
            f"""
            WHERE t.project = ?
              AND t.type = {TYPE_TODO}
              AND t.trashed = 0
            ORDER BY t."index" ASC
            """,
            (project_id,),
        )
        return self._hydrate(rows)

    def todo(self, task_id: str) -> Task | None:
        rows = self._select(
            f"""
            WHERE t.uuid = ?
              AND t.type = {TYPE_TODO}
              AND t.trashed = 0
            """,
            (task_id,),
        )
        tasks = self._hydrate(rows[:1])
        return tasks[0] if tasks else None

    # ---- projects / areas / tags ----

    _CHILD_COUNT = (
        f"(SELECT COUNT(*) FROM TMTask sub "
        f"WHERE sub.project = t.uuid AND sub.type = {TYPE_TODO} AND sub.trashed = 0) AS todoCount"
    )

    def projects(self) -> list[Project]:
        rows = self._select(
            f"""
            WHERE t.type = {TYPE_PROJECT}
              AND t.trashed = 0
              AND t.status = {STATUS_INCOMPLETE}
            ORDER BY t.title ASC
            """,
            extra=(self._CHILD_COUNT,),
        )
        return [
            decode_project(
                row,
                self._dates,
                tags=tags_for(self._db, str(row["uuid"])),
                recurrence=self._recurrence,
            )
            for row in rows
        ]

    def project(self, project_id: str) -> Project | None:
        rows = self._select(
            f"""
            WHERE t.uuid = ?
              AND t.type = {TYPE_PROJECT}
              AND t.trashed = 0
            """,
            (project_id,),
            extra=(self._CHILD_COUNT,),
        )
        if not rows:
            return None
        row = rows[0]
        return decode_project(
            row,
            self._dates,
            tags=tags_for(self._db, project_id),
            todos=self.by_project(project_id),
            recurrence=self._recurrence,
        )

    def areas(self) -> list[Area]:
        rows = self._db.fetch_all("SELECT uuid, title FROM TMArea ORDER BY title ASC")
        return [Area(id=str(r["uuid"]), title=str(r["title"] or "")) for r in rows]

    def tags(self) -> list[Tag]:
        rows = self._db.fetch_all("SELECT uuid, title, shortcut FROM TMTag ORDER BY title ASC")
        return [
            Tag(id=str(r["uuid"]), title=str(r["title"] or ""), shortcut=r["shortcut"] or None)
            for r in rows
        ]
