"""
Things database read model.

Components:
- connection.py: shared read-only SQLite connection + TMTask schema probe
- epoch.py: schedule-date epoch calibration and timestamp conversion
- recurrence.py: frequency extraction from rt1_recurrenceRule blobs
- decode.py: raw TMTask row -> Task / Project
- relations.py: tag and checklist sub-queries
- queries.py: built-in views, search, tag and project listings
- reader.py: ThingsReader, the facade used by front-ends
"""

from .connection import StoreError, StoreUnavailableError
from .models import (
    Area,
    ChecklistItem,
    Project,
    SchedulingBucket,
    Tag,
    Task,
    TaskKind,
    TaskList,
    TaskStatus,
)
from .reader import ThingsReader

__all__ = [
    "Area",
    "ChecklistItem",
    "Project",
    "SchedulingBucket",
    "StoreError",
    "StoreUnavailableError",
    "Tag",
    "Task",
    "TaskKind",
    "TaskList",
    "TaskStatus",
    "ThingsReader",
]
