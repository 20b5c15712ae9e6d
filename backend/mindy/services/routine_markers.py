"""Machine-readable markers embedded in assistant replies.

The companion wraps a proposed routine in ``[ROUTINE_START]`` …
``[ROUTINE_END]`` and, once the user has agreed on a length, appends a hidden
``[DURATION: N DAYS]`` marker. These helpers find, read and strip them; they
are pure string functions and never raise.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

ROUTINE_START_TAG = "[ROUTINE_START]"
ROUTINE_END_TAG = "[ROUTINE_END]"

# Accepts any count text; validity is checked after matching.
_DURATION_MARKER = re.compile(r"\[DURATION:\s*([^\]]*?)\s*DAYS\]", re.IGNORECASE)
_STRICT_INTEGER = re.compile(r"^[+-]?\d+$")
_BLANK_LINE_RUN = re.compile(r"\n{3,}")
_SPACE_RUN = re.compile(r"[ \t]{2,}")


@dataclass(frozen=True)
class DurationMarker:
    raw: str
    days: Optional[int]

    @property
    def is_valid(self) -> bool:
        return self.days is not None and self.days > 0


def extract_routine_draft(content: str) -> Optional[str]:
    """Trimmed text between the first start tag and the end tag after it.

    None when the tags are missing; an empty string for an empty block.
    """
    if not content:
        return None
    start = content.find(ROUTINE_START_TAG)
    if start == -1:
        return None
    body_start = start + len(ROUTINE_START_TAG)
    end = content.find(ROUTINE_END_TAG, body_start)
    if end == -1:
        return None
    return content[body_start:end].strip()


def find_duration_marker(content: str) -> Optional[DurationMarker]:
    """First duration marker in ``content``; ``days`` is None when unreadable."""
    if not content:
        return None
    match = _DURATION_MARKER.search(content)
    if not match:
        return None
    raw = match.group(1).strip()
    days = int(raw) if _STRICT_INTEGER.match(raw) else None
    return DurationMarker(raw=raw, days=days)


def strip_duration_markers(content: str) -> str:
    if not content:
        return content
    return _DURATION_MARKER.sub("", content).strip()


def clean_assistant_text(content: str) -> str:
    """Remove every marker and tidy whitespace for display."""
    if not content:
        return ""
    cleaned = content.replace(ROUTINE_START_TAG, "").replace(ROUTINE_END_TAG, "")
    cleaned = strip_duration_markers(cleaned)
    cleaned = _SPACE_RUN.sub(" ", cleaned)
    cleaned = _BLANK_LINE_RUN.sub("\n\n", cleaned)
    return cleaned.strip()
