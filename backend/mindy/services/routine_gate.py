"""Persist confirmed routines, at most one per user per calendar day."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from mindy.core.config import settings
from mindy.core.errors import UpstreamError, ValidationError
from mindy.db.models.routine import Routine
from mindy.services.activity_log import record_activity
from mindy.services.routine_parser import parse_routine_tasks
from mindy.services.routine_store import find_routine_for_day, new_task_key
from mindy.services.user_service import resolve_user

logger = logging.getLogger(__name__)

NO_TASKS_MESSAGE = "No valid tasks could be parsed from the routine content"


class SaveOutcome(str, Enum):
    CREATED = "created"
    ALREADY_EXISTS = "already_exists"


@dataclass
class SaveResult:
    outcome: SaveOutcome
    routine: Routine

    @property
    def created(self) -> bool:
        return self.outcome is SaveOutcome.CREATED


def normalize_duration(value: Any) -> int:
    """Coerce a requested duration to a positive day count.

    Unreadable or non-positive values fall back to the default; values above
    ``max_routine_duration`` are rejected.
    """
    if isinstance(value, bool):
        return settings.default_routine_duration
    try:
        days = int(value)
    except (TypeError, ValueError, OverflowError):
        return settings.default_routine_duration
    if days > settings.max_routine_duration:
        raise ValidationError(f"Routine duration cannot exceed {settings.max_routine_duration} days")
    return days if days >= 1 else settings.default_routine_duration


def save_confirmed_routine(
    db: Session,
    owner_id: str,
    routine_text: str,
    duration_days: Any = None,
    start_date: date | None = None,
    *,
    request_id: str | None = None,
) -> SaveResult:
    """Create the owner's routine for ``start_date`` unless one exists.

    The existence check and the insert are separate statements; the unique
    ``(user_id, start_date)`` constraint turns a lost race into
    ``ALREADY_EXISTS`` instead of a second row.
    """
    user = resolve_user(db, owner_id)
    start = start_date or date.today()
    duration = normalize_duration(duration_days)

    existing = find_routine_for_day(db, user.id, start)
    if existing:
        logger.info("Routine already exists for user %s on %s", user.id, start)
        return SaveResult(outcome=SaveOutcome.ALREADY_EXISTS, routine=existing)

    drafts = parse_routine_tasks(routine_text)
    if not drafts:
        logger.warning("No tasks parsed from routine content for user %s", user.id)
        raise ValidationError(NO_TASKS_MESSAGE)

    routine = Routine(
        id=uuid4(),
        user_id=user.id,
        start_date=start,
        duration_days=duration,
        tasks=[draft.to_document(new_task_key()) for draft in drafts],
        generated_at=datetime.now(timezone.utc),
    )
    db.add(routine)
    record_activity(
        db,
        user_id=user.id,
        action_type="routine_saved",
        payload={
            "routine_id": str(routine.id),
            "start_date": start.isoformat(),
            "duration_days": duration,
            "task_count": len(drafts),
            "request_id": request_id,
        },
        reason="Confirmed routine saved",
    )

    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        winner = find_routine_for_day(db, user.id, start)
        if winner:
            logger.info("Concurrent routine save for user %s on %s lost the race", user.id, start)
            return SaveResult(outcome=SaveOutcome.ALREADY_EXISTS, routine=winner)
        raise UpstreamError("Failed to save routine") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise UpstreamError("Failed to save routine") from exc

    db.refresh(routine)
    logger.info(
        "Saved routine %s for user %s starting %s for %s day(s) with %s task(s)",
        routine.id,
        user.id,
        start,
        duration,
        len(drafts),
    )
    return SaveResult(outcome=SaveOutcome.CREATED, routine=routine)
