"""Aggregation helpers for routine completion charts."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, List
from uuid import UUID

from sqlalchemy.orm import Session

from mindy.services.routine_store import list_routines_since

RANGE_DAYS = {"week": 7, "two_weeks": 14, "month": 30}


@dataclass
class CompletionPoint:
    day: date
    rate: int
    has_routine: bool


def completion_rate(tasks) -> int:
    """Rounded percentage of completed tasks; 0 for an empty routine."""
    items = [task for task in tasks or [] if isinstance(task, dict)]
    if not items:
        return 0
    done = sum(1 for task in items if task.get("completed"))
    return round(done / len(items) * 100)


def completion_series(db: Session, user_id: UUID, range_name: str, today: date) -> List[CompletionPoint]:
    """Completion rate per day for the trailing window, oldest day first.

    A routine's rate is attributed to its start date; days with no routine
    report 0.
    """
    days = RANGE_DAYS[range_name]
    window_start = today - timedelta(days=days - 1)
    rates: Dict[date, int] = {}
    for routine in list_routines_since(db, user_id, window_start, until=today):
        rates.setdefault(routine.start_date, completion_rate(routine.tasks))

    points: List[CompletionPoint] = []
    for offset in range(days):
        day = window_start + timedelta(days=offset)
        points.append(CompletionPoint(day=day, rate=rates.get(day, 0), has_routine=day in rates))
    return points
