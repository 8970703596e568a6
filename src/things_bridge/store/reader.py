# src/things_bridge/store/reader.py

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any

from .connection import ThingsDatabase
from .epoch import Clock, EpochCalibrator
from .models import Area, Project, Tag, Task, TaskList
from .queries import DEFAULT_RESULT_CAP, ListQueryEngine
from .recurrence import DEFAULT_PARSER, RecurrenceRuleParser

logger = logging.getLogger(__name__)


class ThingsReader:
    """
    Public read surface over the Things database.

    Owns the shared read-only connection and the epoch calibrator, and hands
    both to the query engine. Every method returns domain objects, a list of
    them, or None when an id is unknown or trashed.
    """

    def __init__(
        self,
        db_path: str | Path,
        *,
        clock: Clock = time.time,
        epoch_offset: int | None = None,
        result_cap: int = DEFAULT_RESULT_CAP,
        recurrence: RecurrenceRuleParser = DEFAULT_PARSER,
    ) -> None:
        self._db = ThingsDatabase(db_path)
        self._dates = EpochCalibrator(self._db, clock=clock, offset_seconds=epoch_offset)
        self._engine = ListQueryEngine(
            self._db,
            self._dates,
            result_cap=result_cap,
            recurrence=recurrence,
        )

    @classmethod
    def from_settings(cls, settings: Any, *, clock: Clock = time.time) -> ThingsReader:
        return cls(
            settings.db_path,
            clock=clock,
            epoch_offset=getattr(settings, "epoch_offset", None),
            result_cap=int(getattr(settings, "result_cap", DEFAULT_RESULT_CAP)),
        )

    @property
    def db_path(self) -> Path:
        return self._db.path

    @property
    def calibrator(self) -> EpochCalibrator:
        return self._dates

    def close(self) -> None:
        self._db.close()

    def recalibrate(self) -> int:
        """Drop the memoized epoch offset and compute it again."""
        self._dates.reset()
        offset = self._dates.offset()
        logger.info("Recalibrated epoch offset=%s", offset)
        return offset

    # ---- to-dos ----

    def todos(self, list_name: str | TaskList) -> list[Task]:
        return self._engine.todos(list_name)

    def todo(self, task_id: str) -> Task | None:
        if not task_id:
            return None
        return self._engine.todo(task_id)

    def search(self, query: str) -> list[Task]:
        return self._engine.search(query)

    def todos_by_tag(self, tag_name: str) -> list[Task]:
        if not tag_name:
            return []
        return self._engine.by_tag(tag_name)

    def todos_in_project(self, project_id: str) -> list[Task]:
        if not project_id:
            return []
        return self._engine.by_project(project_id)

    # ---- projects / areas / tags ----

    def projects(self) -> list[Project]:
        return self._engine.projects()

    def project(self, project_id: str) -> Project | None:
        if not project_id:
            return None
        return self._engine.project(project_id)

    def areas(self) -> list[Area]:
        return self._engine.areas()

    def tags(self) -> list[Tag]:
        return self._engine.tags()

    # ---- diagnostics ----

    def health(self) -> dict[str, Any]:
        exists = self._db.path.exists()
        return {
            "ok": True,
            "database": "connected" if exists else "not found",
            "path": str(self._db.path),
        }
