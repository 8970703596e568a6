# src/things_bridge/store/epoch.py

"""
Runtime calibration of the Things schedule-date epoch.

TMTask.startDate, TMTask.deadline and TMTask.rt1_nextInstanceStartDate use an
origin that is neither Unix nor Cocoa and is not documented anywhere. We infer
it once per calibrator: the most recently scheduled open task is assumed to sit
on today's date, and the difference between the two day boundaries is the
offset. Everything that decodes that date family goes through this module.

creationDate, userModificationDate, stopDate and reminderTime are plain Unix
seconds and are handled by `unix_to_datetime`.
"""

from __future__ import annotations

import calendar
import logging
import math
import time
from collections.abc import Callable
from datetime import date, datetime, timezone
from typing import Any

from .connection import StoreError, ThingsDatabase

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400

# Observed on a real database (2021-11-24T00:00:00Z).
FALLBACK_EPOCH_OFFSET = 1637712000

Clock = Callable[[], float]


def _day_floor(seconds: float) -> int:
    return int(math.floor(seconds / SECONDS_PER_DAY)) * SECONDS_PER_DAY


def as_number(raw: Any) -> float | None:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return value


def unix_to_datetime(raw: Any) -> datetime | None:
    """Unix seconds -> aware UTC datetime truncated to the second."""
    value = as_number(raw)
    if value is None:
        return None
    try:
        return datetime.fromtimestamp(int(value), tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        logger.debug("Unix timestamp out of range: %r", raw)
        return None


class EpochCalibrator:
    """
    Owns the schedule-date offset.

    The offset is computed lazily on first use and memoized until `reset()`.
    Two callers racing to compute it get the same answer, so no lock is taken.
    A preset `offset_seconds` skips the heuristic entirely.
    """

    def __init__(
        self,
        db: ThingsDatabase,
        *,
        clock: Clock = time.time,
        offset_seconds: int | None = None,
        fallback_offset: int = FALLBACK_EPOCH_OFFSET,
    ) -> None:
        self._db = db
        self._clock = clock
        self._preset = offset_seconds
        self._fallback = int(fallback_offset)
        self._offset: int | None = offset_seconds

    def now(self) -> float:
        return float(self._clock())

    def reset(self) -> None:
        """Forget the memoized offset; the next decode recalibrates."""
        self._offset = self._preset

    def offset(self) -> int:
        if self._offset is None:
            self._offset = self._calibrate()
        return self._offset

    def _calibrate(self) -> int:
        try:
            row = self._db.fetch_one(
                """
                SELECT startDate
                FROM TMTask
                WHERE start = 1
                  AND startDate IS NOT NULL
                  AND status = 0
                  AND trashed = 0
                ORDER BY startDate DESC
                LIMIT 1
                """
            )
        except StoreError:
            logger.warning(
                "Epoch calibration query failed; using fallback offset %s",
                self._fallback,
                exc_info=True,
            )
            return self._fallback

        raw = as_number(row["startDate"]) if row is not None else None
        if raw is None:
            logger.warning(
                "No scheduled open task to calibrate against; using fallback offset %s",
                self._fallback,
            )
            return self._fallback

        offset = _day_floor(self.now()) - _day_floor(raw)
        logger.info("Calibrated schedule-date epoch offset=%s (reference raw=%s)", offset, raw)
        return offset

    # ---- conversions ----

    def decode_date(self, raw: Any) -> date | None:
        """Raw startDate/deadline/nextInstance value -> calendar date (UTC day)."""
        value = as_number(raw)
        if value is None:
            return None
        try:
            return datetime.fromtimestamp(value + self.offset(), tz=timezone.utc).date()
        except (OverflowError, OSError, ValueError):
            logger.debug("Schedule date out of range: %r", raw)
            return None

    def encode_date(self, day: date) -> int:
        """Inverse of `decode_date`: midnight of `day` in the raw encoding."""
        return calendar.timegm(day.timetuple()) - self.offset()

    def today_raw(self) -> int:
        """Today's UTC midnight expressed in the raw encoding."""
        return _day_floor(self.now()) - self.offset()
