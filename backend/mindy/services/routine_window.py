"""Active-window filtering and per-day bucketing for routines.

Everything here is pure and synchronous. Routines are duck-typed: anything
with ``start_date``, ``duration_days`` and ``tasks`` (a list of task dicts)
works, which covers both the ORM model and client-side snapshots. Malformed
routines are excluded rather than raising.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Literal, Mapping, Optional

from mindy.core.config import settings

logger = logging.getLogger(__name__)

DayStatus = Literal["past", "today", "future"]


@dataclass
class DaySection:
    day_index: int
    display_date: date
    status: DayStatus
    tasks: List[Mapping[str, Any]] = field(default_factory=list)

    @property
    def is_future(self) -> bool:
        return self.status == "future"


@dataclass
class ActiveRoutineView:
    routine: Any
    days_passed: int
    days: List[DaySection]


def coerce_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            return None
    return None


def routine_duration(routine: Any) -> int:
    """Duration in days; missing or non-positive values count as one day."""
    raw = getattr(routine, "duration_days", None)
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return 1
    return value if value > 0 else 1


def days_passed(today: date, start_date: date) -> int:
    return (today - start_date).days


def is_routine_active(routine: Any, today: date) -> bool:
    start = coerce_date(getattr(routine, "start_date", None))
    if start is None:
        logger.debug("Skipping routine %s with unreadable start date", getattr(routine, "id", None))
        return False
    if routine_duration(routine) > settings.max_routine_duration:
        logger.debug(
            "Skipping routine %s longer than %s days",
            getattr(routine, "id", None),
            settings.max_routine_duration,
        )
        return False
    return 0 <= days_passed(today, start) < routine_duration(routine)


def task_day_index(task: Mapping[str, Any]) -> int:
    raw = task.get("day_index") if isinstance(task, Mapping) else None
    if isinstance(raw, bool):
        return 1
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return 1
    return value if value > 0 else 1


def group_tasks_by_day(tasks: Iterable[Mapping[str, Any]] | None) -> Dict[int, List[Mapping[str, Any]]]:
    """Bucket tasks by day index, preserving order within each day."""
    grouped: Dict[int, List[Mapping[str, Any]]] = {}
    for task in tasks or []:
        if not isinstance(task, Mapping):
            continue
        grouped.setdefault(task_day_index(task), []).append(task)
    return grouped


def day_status(display_date: date, today: date) -> DayStatus:
    if display_date > today:
        return "future"
    if display_date == today:
        return "today"
    return "past"


def display_date_for(start_date: date, day_index: int) -> Optional[date]:
    """Calendar date of a day index; None when it falls outside the representable range."""
    try:
        return start_date + timedelta(days=day_index - 1)
    except OverflowError:
        return None


def build_day_sections(routine: Any, today: date) -> List[DaySection]:
    """One section per day of the routine, days without tasks included."""
    start = coerce_date(getattr(routine, "start_date", None))
    if start is None:
        return []
    if routine_duration(routine) > settings.max_routine_duration:
        return []
    grouped = group_tasks_by_day(getattr(routine, "tasks", None))
    sections: List[DaySection] = []
    for day_index in range(1, routine_duration(routine) + 1):
        shown = display_date_for(start, day_index)
        if shown is None:
            break
        sections.append(
            DaySection(
                day_index=day_index,
                display_date=shown,
                status=day_status(shown, today),
                tasks=grouped.get(day_index, []),
            )
        )
    return sections


def task_day_status(routine: Any, task: Mapping[str, Any], today: date) -> Optional[DayStatus]:
    """Status of the day a task belongs to, or None if the routine has no usable start.

    A day past the last representable date is reported as future.
    """
    start = coerce_date(getattr(routine, "start_date", None))
    if start is None:
        return None
    shown = display_date_for(start, task_day_index(task))
    if shown is None:
        return "future"
    return day_status(shown, today)


def filter_active_routines(routines: Iterable[Any] | None, today: date) -> List[ActiveRoutineView]:
    views: List[ActiveRoutineView] = []
    for routine in routines or []:
        if not is_routine_active(routine, today):
            continue
        start = coerce_date(routine.start_date)
        views.append(
            ActiveRoutineView(
                routine=routine,
                days_passed=days_passed(today, start),
                days=build_day_sections(routine, today),
            )
        )
    return views
