from __future__ import annotations

from mindy.services.analysis_parser import DEFAULT_EMOTIONAL_STATE, parse_analysis_text

SAMPLE = """Analysis:
Emotional State:
* Anxious

Key Topics:
* Exams next week
- Sleep schedule

Notable Patterns:
* Asks for reassurance repeatedly
• Mentions being tired in the evening
"""


def test_parse_full_analysis() -> None:
    result = parse_analysis_text(SAMPLE)

    assert result.emotional_state == "Anxious"
    assert result.key_topics == ["Exams next week", "Sleep schedule"]
    assert result.notable_patterns == ["Asks for reassurance repeatedly", "Mentions being tired in the evening"]


def test_parse_inline_emotional_state() -> None:
    result = parse_analysis_text("Emotional State: * Content\nKey Topics:\n* Gratitude\nNotable Patterns:\n")

    assert result.emotional_state == "Content"
    assert result.key_topics == ["Gratitude"]
    assert result.notable_patterns == []


def test_parse_defaults_for_empty_or_unstructured_text() -> None:
    for text in (None, "", "The user seemed fine."):
        result = parse_analysis_text(text)
        assert result.emotional_state == DEFAULT_EMOTIONAL_STATE
        assert result.key_topics == []
        assert result.notable_patterns == []


def test_key_topics_require_notable_patterns_section() -> None:
    result = parse_analysis_text("Emotional State:\n* Sad\n\nKey Topics:\n* Loneliness\n")

    assert result.emotional_state == "Sad"
    assert result.key_topics == []
