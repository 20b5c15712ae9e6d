"""Parse the fixed-format sentiment analysis returned by the AI provider."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List

DEFAULT_EMOTIONAL_STATE = "Could not determine"

_EMOTIONAL_STATE = re.compile(r"Emotional State:\s*\n?\s*[*\-•]\s*(.*)", re.IGNORECASE)
_KEY_TOPICS = re.compile(r"Key Topics:\s*\n(.*?)\n*Notable Patterns:", re.IGNORECASE | re.DOTALL)
_NOTABLE_PATTERNS = re.compile(r"Notable Patterns:\s*\n(.*)$", re.IGNORECASE | re.DOTALL)
_BULLET = re.compile(r"^\s*[*\-•]\s*")


@dataclass
class AnalysisData:
    emotional_state: str = DEFAULT_EMOTIONAL_STATE
    key_topics: List[str] = field(default_factory=list)
    notable_patterns: List[str] = field(default_factory=list)


def _bullets(block: str) -> List[str]:
    items: List[str] = []
    for line in block.splitlines():
        if not _BULLET.match(line):
            continue
        item = _BULLET.sub("", line, count=1).strip()
        if item:
            items.append(item)
    return items


def parse_analysis_text(analysis: str | None) -> AnalysisData:
    if not analysis:
        return AnalysisData()

    result = AnalysisData()
    state = _EMOTIONAL_STATE.search(analysis)
    if state and state.group(1).strip():
        result.emotional_state = state.group(1).strip()

    topics = _KEY_TOPICS.search(analysis)
    if topics:
        result.key_topics = _bullets(topics.group(1))

    patterns = _NOTABLE_PATTERNS.search(analysis)
    if patterns:
        result.notable_patterns = _bullets(patterns.group(1))

    return result
