"""Schemas for routine endpoints.

Field names follow the camelCase wire format consumed by the web client.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import Field, StrictBool, field_validator

from mindy.api.schemas.base import CamelModel


class SaveRoutineRequest(CamelModel):
    routine_content: str = Field(..., alias="routineContent")
    duration: Optional[int] = None

    @field_validator("routine_content")
    @classmethod
    def require_content(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("Missing routineContent")
        return value

    @field_validator("duration", mode="before")
    @classmethod
    def lenient_duration(cls, value):
        # Unparseable durations fall back to the default rather than failing.
        if value is None or isinstance(value, bool):
            return None
        try:
            return int(value)
        except (TypeError, ValueError, OverflowError):
            return None


class SaveRoutineResponse(CamelModel):
    message: str
    routine_exists: bool = Field(..., alias="routineExists")
    routine_id: UUID = Field(..., alias="routineId")


class UpdateTaskStatusRequest(CamelModel):
    routine_id: UUID = Field(..., alias="routineId")
    task_key: str = Field(..., alias="taskKey", min_length=1)
    completed: StrictBool


class TaskItemPayload(CamelModel):
    key: str
    day_index: int = Field(..., alias="dayIndex")
    description: str
    completed: bool


class RoutinePayload(CamelModel):
    id: UUID
    owner_id: UUID = Field(..., alias="ownerId")
    start_date: date = Field(..., alias="startDate")
    duration: int
    tasks: List[TaskItemPayload]
    insight: Optional[str] = None
    generated_at: Optional[datetime] = Field(default=None, alias="generatedAt")


class DaySectionPayload(CamelModel):
    day_index: int = Field(..., alias="dayIndex")
    day: date = Field(..., alias="date")
    status: Literal["past", "today", "future"]
    tasks: List[TaskItemPayload]


class ActiveRoutinePayload(CamelModel):
    routine: RoutinePayload
    days_passed: int = Field(..., alias="daysPassed")
    days: List[DaySectionPayload]


class TodayRoutineResponse(CamelModel):
    message: str
    routine_exists: bool = Field(..., alias="routineExists")
    routine: Optional[RoutinePayload] = None


class CompletionPointPayload(CamelModel):
    day: date = Field(..., alias="date")
    rate: int
    has_routine: bool = Field(..., alias="hasRoutine")


class CompletionSeriesResponse(CamelModel):
    range_name: Literal["week", "two_weeks", "month"] = Field(..., alias="range")
    points: List[CompletionPointPayload]
