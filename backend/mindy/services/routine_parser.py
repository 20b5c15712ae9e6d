"""Parse assistant-generated routine text into day-indexed task drafts.

Grammar, applied line by line after trimming and dropping empty lines::

    header  := [heading-marks] [emphasis] "Day" N [emphasis] ":" rest
    bullet  := ("*" | "-" | "•") text

``heading-marks`` is one to six ``#`` followed by whitespace and ``emphasis``
is a run of one to three ``*`` or ``_`` touching the word "Day" (so
``* Day 2: call mom`` is a bullet, ``**Day 2:**`` is a header). Matching is
case-insensitive. A header sets the current day to N; ``Day 0`` resets it to
"no day yet". A bullet seen while a day is current becomes a task for that
day if its text is non-empty. Every other line is ignored.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, List

DAY_HEADER_PATTERN = re.compile(
    r"^(?:#{1,6}\s+)?(?:\*{1,3}|_{1,3})?day\s*(\d+)\s*(?:\*{1,3}|_{1,3})?\s*:",
    re.IGNORECASE,
)
BULLET_MARKERS = ("*", "-", "•")
_BULLET_PREFIX = re.compile(r"^[*\-•]\s*")


@dataclass(frozen=True)
class TaskDraft:
    """A parsed task without its storage key."""

    day_index: int
    description: str
    completed: bool = False

    def to_document(self, key: str) -> Dict[str, Any]:
        return {
            "key": key,
            "day_index": self.day_index,
            "description": self.description,
            "completed": self.completed,
        }


def parse_routine_tasks(text: str | None) -> List[TaskDraft]:
    """Return task drafts in input order; never raises."""
    if not text or not isinstance(text, str):
        return []

    drafts: List[TaskDraft] = []
    current_day = 0
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        header = DAY_HEADER_PATTERN.match(line)
        if header:
            current_day = int(header.group(1))
            continue

        if current_day > 0 and line.startswith(BULLET_MARKERS):
            description = _BULLET_PREFIX.sub("", line, count=1).strip()
            if description:
                drafts.append(TaskDraft(day_index=current_day, description=description))

    return drafts
