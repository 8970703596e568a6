# src/things_bridge/store/recurrence.py

from __future__ import annotations

import logging
import plistlib
import re
from typing import Any, Protocol

logger = logging.getLogger(__name__)

# "fu" (frequency unit) inside TMTask.rt1_recurrenceRule. The values are
# NSCalendarUnit bits.
FREQUENCY_UNITS = {
    4: "daily",
    256: "weekly",
    16: "monthly",
    2048: "yearly",
}

_FU_PATTERN = re.compile(r"<key>fu</key>\s*<integer>(-?\d+)</integer>")
_BPLIST_MAGIC = b"bplist00"


def frequency_label(code: int) -> str:
    return FREQUENCY_UNITS.get(code, f"every-{code}")


class RecurrenceRuleParser(Protocol):
    """Turns a recurrence blob into a frequency label (or None if it can't tell)."""

    def frequency(self, blob: Any) -> str | None: ...


def _blob_bytes(blob: Any) -> bytes | None:
    if isinstance(blob, (bytes, bytearray, memoryview)):
        return bytes(blob)
    if isinstance(blob, str):
        return blob.encode("utf-8")
    return None


class PatternRecurrenceParser:
    """
    Extracts only the frequency unit, without modelling the whole rule.

    XML plists are matched structurally on `<key>fu</key><integer>N</integer>`.
    Binary plists carry no readable markup, so those are loaded with plistlib
    and the top-level "fu" entry is read.
    """

    def frequency(self, blob: Any) -> str | None:
        data = _blob_bytes(blob)
        if not data:
            return None

        if data.startswith(_BPLIST_MAGIC):
            return self._binary_frequency(data)

        text = data.decode("utf-8", errors="replace")
        m = _FU_PATTERN.search(text)
        if not m:
            logger.debug("Recurrence rule without frequency unit (%d bytes)", len(data))
            return None
        return frequency_label(int(m.group(1)))

    @staticmethod
    def _binary_frequency(data: bytes) -> str | None:
        try:
            doc = plistlib.loads(data, fmt=plistlib.FMT_BINARY)
        except Exception:
            logger.debug("Unreadable binary recurrence rule (%d bytes)", len(data), exc_info=True)
            return None
        if not isinstance(doc, dict):
            return None
        fu = doc.get("fu")
        if isinstance(fu, bool) or not isinstance(fu, int):
            return None
        return frequency_label(fu)


DEFAULT_PARSER: RecurrenceRuleParser = PatternRecurrenceParser()
