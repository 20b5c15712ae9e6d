"""Activity log helpers."""
from __future__ import annotations

from typing import Any, Dict
from uuid import UUID

from sqlalchemy.orm import Session

from mindy.db.models.activity_log import ActivityLog


def record_activity(
    db: Session,
    *,
    user_id: UUID,
    action_type: str,
    payload: Dict[str, Any],
    reason: str,
) -> ActivityLog:
    """Stage an activity entry on the session; the caller commits."""
    entry = ActivityLog(user_id=user_id, action_type=action_type, action_payload=payload, reason=reason)
    db.add(entry)
    return entry
