# src/things_bridge/store/relations.py

from __future__ import annotations

from .connection import ThingsDatabase
from .models import ChecklistItem, TaskStatus


def tags_for(db: ThingsDatabase, task_id: str) -> frozenset[str]:
    """Tag titles attached to a task (no ordering)."""
    rows = db.fetch_all(
        """
        SELECT tag.title
        FROM TMTag tag
        JOIN TMTaskTag tt ON tt.tags = tag.uuid
        WHERE tt.tasks = ?
        """,
        (task_id,),
    )
    return frozenset(str(r["title"]) for r in rows if r["title"] is not None)


def checklist_for(db: ThingsDatabase, task_id: str) -> tuple[ChecklistItem, ...]:
    """Checklist items of a task in their stored order."""
    rows = db.fetch_all(
        """
        SELECT uuid, title, status
        FROM TMChecklistItem
        WHERE task = ?
        ORDER BY "index" ASC
        """,
        (task_id,),
    )
    return tuple(
        ChecklistItem(
            id=str(r["uuid"]),
            title=str(r["title"] or ""),
            status=TaskStatus.from_db(r["status"]),
        )
        for r in rows
    )
