"""Schemas for chat analysis and mood endpoints."""
from __future__ import annotations

from datetime import date
from typing import Dict, List, Literal
from uuid import UUID

from pydantic import Field

from mindy.api.schemas.base import CamelModel


class ChatMessage(CamelModel):
    role: str = Field(..., min_length=1)
    content: str


class ChatAnalysisRequest(CamelModel):
    messages: List[ChatMessage] = Field(..., min_length=1)


class AnalysisExtract(CamelModel):
    emotional_state: str | None = Field(default=None, alias="emotionalState")
    key_topics: List[str] = Field(default_factory=list, alias="keyTopics")
    notable_patterns: List[str] = Field(default_factory=list, alias="notablePatterns")


class ChatAnalysisResponse(CamelModel):
    id: UUID
    analysis_date: date = Field(..., alias="analysisDate")
    analysis: str
    extracted: AnalysisExtract
    analysis_done: bool = Field(..., alias="analysisDone")
    created: bool


class AnalysisStatusResponse(CamelModel):
    analysis_done: bool = Field(..., alias="analysisDone")


class MoodCalendarResponse(CamelModel):
    days: int
    default_mood: Literal["neutral"] = Field(default="neutral", alias="defaultMood")
    moods: Dict[date, str]
