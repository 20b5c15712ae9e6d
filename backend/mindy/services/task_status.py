"""Server-side task completion updates."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mindy.core.errors import AuthorizationError, NotFoundError, UpstreamError, ValidationError
from mindy.db.models.routine import Routine
from mindy.services.activity_log import record_activity
from mindy.services.routine_store import find_task, set_task_completed
from mindy.services.routine_window import task_day_status
from mindy.services.user_service import find_user

logger = logging.getLogger(__name__)

FUTURE_TASK_MESSAGE = "Tasks on upcoming days cannot be updated yet"


@dataclass
class TaskStatusResult:
    routine: Routine
    task: Dict[str, Any]
    changed: bool


def update_task_status(
    db: Session,
    caller_id: str,
    routine_id: UUID,
    task_key: str,
    completed: bool,
    *,
    today: date | None = None,
    request_id: str | None = None,
) -> TaskStatusResult:
    """Set one task's completion flag after checking ownership and the task's day.

    Ownership is re-verified from the stored routine; nothing the client
    sends about the routine is trusted.
    """
    routine = db.get(Routine, routine_id)
    if routine is None:
        raise NotFoundError("Routine not found")

    caller = find_user(db, caller_id)
    if caller is None or routine.user_id != caller.id:
        logger.warning("Caller %s attempted to update routine %s they do not own", caller_id, routine_id)
        raise AuthorizationError("Routine does not belong to user")

    task = find_task(routine, task_key)
    if task is None:
        raise NotFoundError("Task not found")

    if task_day_status(routine, task, today or date.today()) == "future":
        raise ValidationError(FUTURE_TASK_MESSAGE)

    changed = set_task_completed(routine, task_key, completed)
    if changed:
        record_activity(
            db,
            user_id=routine.user_id,
            action_type="task_completed" if completed else "task_uncompleted",
            payload={
                "routine_id": str(routine.id),
                "task_key": task_key,
                "completed": completed,
                "request_id": request_id,
            },
            reason="Task completion toggled",
        )
        try:
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            raise UpstreamError("Failed to update task status") from exc
        db.refresh(routine)
        logger.info("Routine %s task %s completed=%s", routine.id, task_key, completed)

    return TaskStatusResult(routine=routine, task=find_task(routine, task_key) or task, changed=changed)
