"""Routine API routes: save, complete tasks, list and chart."""
from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Mapping, Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.orm import Session

from mindy.api.deps import get_caller_id
from mindy.api.schemas.routine import (
    ActiveRoutinePayload,
    CompletionPointPayload,
    CompletionSeriesResponse,
    DaySectionPayload,
    RoutinePayload,
    SaveRoutineRequest,
    SaveRoutineResponse,
    TaskItemPayload,
    TodayRoutineResponse,
    UpdateTaskStatusRequest,
)
from mindy.core.config import settings
from mindy.core.errors import AuthorizationError, MindyError
from mindy.db.deps import get_db
from mindy.db.models.routine import Routine
from mindy.observability.metrics import log_metric, timed
from mindy.observability.tracing import trace
from mindy.services.routine_gate import save_confirmed_routine
from mindy.services.routine_stats import completion_series
from mindy.services.routine_store import find_routine_for_day, list_routines_since
from mindy.services.routine_window import filter_active_routines, task_day_index
from mindy.services.task_status import update_task_status
from mindy.services.user_service import find_user, resolve_user

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post(
    "/save-routine",
    response_model=SaveRoutineResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["routines"],
)
def save_routine(
    payload: SaveRoutineRequest,
    http_request: Request,
    response: Response,
    caller_id: str = Depends(get_caller_id),
    db: Session = Depends(get_db),
) -> SaveRoutineResponse:
    """Persist a routine the user confirmed in chat, at most once per day."""
    request_id = getattr(http_request.state, "request_id", None)
    metadata: Dict[str, Any] = {
        "route": "/save-routine",
        "duration": payload.duration,
        "content_length": len(payload.routine_content),
        "request_id": request_id,
    }

    try:
        with timed("routine.save", metadata={"route": "/save-routine"}) as metric_meta:
            with trace("routine.save", metadata=metadata, user_id=caller_id, request_id=request_id):
                result = save_confirmed_routine(
                    db,
                    caller_id,
                    payload.routine_content,
                    payload.duration,
                    request_id=request_id,
                )
            metric_meta["outcome"] = result.outcome.value
    except MindyError:
        db.rollback()
        raise

    if result.created:
        log_metric("routine.task_count", len(result.routine.tasks or []), metadata={"route": "/save-routine"})
        return SaveRoutineResponse(
            message="Routine saved successfully",
            routine_exists=False,
            routine_id=result.routine.id,
        )

    response.status_code = status.HTTP_200_OK
    return SaveRoutineResponse(
        message="A routine for today already exists",
        routine_exists=True,
        routine_id=result.routine.id,
    )


@router.post("/update-task-status", tags=["routines"])
def update_task_status_route(
    payload: UpdateTaskStatusRequest,
    http_request: Request,
    caller_id: str = Depends(get_caller_id),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    """Mark one task of the caller's routine complete or incomplete."""
    request_id = getattr(http_request.state, "request_id", None)
    metadata: Dict[str, Any] = {
        "route": "/update-task-status",
        "routine_id": str(payload.routine_id),
        "task_key": payload.task_key,
        "completed": payload.completed,
        "request_id": request_id,
    }

    try:
        with timed("task.status_update", metadata={"route": "/update-task-status"}) as metric_meta:
            with trace("task.status_update", metadata=metadata, user_id=caller_id, request_id=request_id):
                result = update_task_status(
                    db,
                    caller_id,
                    payload.routine_id,
                    payload.task_key,
                    payload.completed,
                    request_id=request_id,
                )
            metric_meta["changed"] = result.changed
    except MindyError:
        db.rollback()
        raise

    return {}


@router.get("/routines", response_model=List[RoutinePayload], tags=["routines"])
def list_routines(
    http_request: Request,
    owner_id: Optional[str] = Query(default=None, alias="ownerId"),
    since: Optional[date] = Query(default=None),
    caller_id: str = Depends(get_caller_id),
    db: Session = Depends(get_db),
) -> List[RoutinePayload]:
    """List an owner's routines, newest first. Reading another owner's routines requires admin."""
    request_id = getattr(http_request.state, "request_id", None)
    target_id = owner_id or caller_id
    if target_id != caller_id:
        caller = find_user(db, caller_id)
        if caller is None or not caller.is_admin:
            logger.warning("Caller %s denied access to routines of %s", caller_id, target_id)
            raise AuthorizationError("Not allowed to read another user's routines")

    owner = resolve_user(db, target_id)
    window_start = since or date.today() - timedelta(days=settings.routine_window_days)

    with trace(
        "routine.list",
        metadata={"route": "/routines", "since": window_start.isoformat(), "request_id": request_id},
        user_id=target_id,
        request_id=request_id,
    ):
        routines = list_routines_since(db, owner.id, window_start)

    log_metric("routine.list.count", len(routines), metadata={"route": "/routines"})
    return [_serialize_routine(routine) for routine in routines]


@router.get("/routines/active", response_model=List[ActiveRoutinePayload], tags=["routines"])
def list_active_routines(
    http_request: Request,
    today: Optional[date] = Query(default=None),
    caller_id: str = Depends(get_caller_id),
    db: Session = Depends(get_db),
) -> List[ActiveRoutinePayload]:
    """Routines whose window covers ``today``, each split into per-day sections."""
    request_id = getattr(http_request.state, "request_id", None)
    current = today or date.today()
    owner = resolve_user(db, caller_id)

    with trace(
        "routine.active",
        metadata={"route": "/routines/active", "today": current.isoformat(), "request_id": request_id},
        user_id=caller_id,
        request_id=request_id,
    ):
        candidates = list_routines_since(
            db,
            owner.id,
            current - timedelta(days=settings.routine_window_days),
            until=current,
        )
        views = filter_active_routines(candidates, current)

    log_metric("routine.active.count", len(views), metadata={"route": "/routines/active"})
    return [
        ActiveRoutinePayload(
            routine=_serialize_routine(view.routine),
            days_passed=view.days_passed,
            days=[
                DaySectionPayload(
                    day_index=section.day_index,
                    day=section.display_date,
                    status=section.status,
                    tasks=[_serialize_task(task) for task in section.tasks],
                )
                for section in view.days
            ],
        )
        for view in views
    ]


@router.get("/routines/today", response_model=TodayRoutineResponse, tags=["routines"])
def get_today_routine(
    http_request: Request,
    caller_id: str = Depends(get_caller_id),
    db: Session = Depends(get_db),
) -> TodayRoutineResponse:
    """Return the routine starting today, if the caller has saved one."""
    request_id = getattr(http_request.state, "request_id", None)
    owner = resolve_user(db, caller_id)
    with trace("routine.today", metadata={"route": "/routines/today"}, user_id=caller_id, request_id=request_id):
        routine = find_routine_for_day(db, owner.id, date.today())

    if routine is None:
        return TodayRoutineResponse(message="No routine saved for today", routine_exists=False)
    return TodayRoutineResponse(
        message="Routine exists for today",
        routine_exists=True,
        routine=_serialize_routine(routine),
    )


@router.get("/routines/completion", response_model=CompletionSeriesResponse, tags=["routines"])
def get_completion_series(
    http_request: Request,
    range_name: str = Query("week", alias="range", pattern="^(week|two_weeks|month)$"),
    caller_id: str = Depends(get_caller_id),
    db: Session = Depends(get_db),
) -> CompletionSeriesResponse:
    """Daily completion percentage for the trailing week, two weeks or month."""
    request_id = getattr(http_request.state, "request_id", None)
    owner = resolve_user(db, caller_id)
    with trace(
        "routine.completion",
        metadata={"route": "/routines/completion", "range": range_name},
        user_id=caller_id,
        request_id=request_id,
    ):
        points = completion_series(db, owner.id, range_name, date.today())

    return CompletionSeriesResponse(
        range_name=range_name,
        points=[
            CompletionPointPayload(day=point.day, rate=point.rate, has_routine=point.has_routine)
            for point in points
        ],
    )


def _serialize_task(task: Mapping[str, Any]) -> TaskItemPayload:
    return TaskItemPayload(
        key=str(task.get("key") or ""),
        day_index=task_day_index(task),
        description=str(task.get("description") or ""),
        completed=bool(task.get("completed")),
    )


def _serialize_routine(routine: Routine) -> RoutinePayload:
    return RoutinePayload(
        id=routine.id,
        owner_id=routine.user_id,
        start_date=routine.start_date,
        duration=routine.duration_days,
        tasks=[_serialize_task(task) for task in routine.tasks or [] if isinstance(task, dict)],
        insight=routine.insight,
        generated_at=routine.generated_at,
    )
