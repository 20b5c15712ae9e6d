"""Routine persistence primitives: lookups, listing and the task patch."""
from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from sqlalchemy import desc
from sqlalchemy.orm import Session

from mindy.db.models.routine import Routine


def new_task_key() -> str:
    return uuid4().hex[:12]


def find_routine_for_day(db: Session, user_id: UUID, start_date: date) -> Optional[Routine]:
    return (
        db.query(Routine)
        .filter(Routine.user_id == user_id, Routine.start_date == start_date)
        .first()
    )


def list_routines_since(
    db: Session,
    user_id: UUID,
    since: date,
    until: date | None = None,
) -> List[Routine]:
    """Routines starting in ``[since, until]``, newest first."""
    query = db.query(Routine).filter(Routine.user_id == user_id, Routine.start_date >= since)
    if until is not None:
        query = query.filter(Routine.start_date <= until)
    return query.order_by(desc(Routine.start_date)).all()


def find_task(routine: Routine, task_key: str) -> Optional[Dict[str, Any]]:
    for task in routine.tasks or []:
        if isinstance(task, dict) and task.get("key") == task_key:
            return task
    return None


def set_task_completed(routine: Routine, task_key: str, completed: bool) -> bool:
    """Patch one task's ``completed`` flag in place of the stored array.

    Sibling tasks and every other field are copied unchanged. Returns whether
    the stored value changed.
    """
    changed = False
    patched: List[Any] = []
    for task in routine.tasks or []:
        if isinstance(task, dict) and task.get("key") == task_key:
            if bool(task.get("completed")) != completed:
                changed = True
            patched.append({**task, "completed": completed})
        else:
            patched.append(task)
    if changed:
        routine.tasks = patched
    return changed
