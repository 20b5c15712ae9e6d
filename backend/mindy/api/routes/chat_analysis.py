"""Chat sentiment analysis and mood calendar routes."""
from __future__ import annotations

from datetime import date
from typing import Any, Dict

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.orm import Session

from mindy.api.deps import get_caller_id
from mindy.api.schemas.chat_analysis import (
    AnalysisExtract,
    AnalysisStatusResponse,
    ChatAnalysisRequest,
    ChatAnalysisResponse,
    MoodCalendarResponse,
)
from mindy.core.config import settings
from mindy.core.errors import MindyError
from mindy.db.deps import get_db
from mindy.observability.metrics import log_metric, timed
from mindy.observability.tracing import trace
from mindy.services.chat_analysis import analysis_done_today, analyze_chat, mood_calendar

router = APIRouter()


@router.post(
    "/chat-analysis",
    response_model=ChatAnalysisResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["chat-analysis"],
)
def create_chat_analysis(
    payload: ChatAnalysisRequest,
    http_request: Request,
    response: Response,
    caller_id: str = Depends(get_caller_id),
    db: Session = Depends(get_db),
) -> ChatAnalysisResponse:
    """Analyse today's conversation once; later calls return the stored analysis."""
    request_id = getattr(http_request.state, "request_id", None)
    messages = [message.model_dump() for message in payload.messages]
    metadata: Dict[str, Any] = {
        "route": "/chat-analysis",
        "message_count": len(messages),
        "request_id": request_id,
    }

    try:
        with timed("chat_analysis.create", metadata={"route": "/chat-analysis"}) as metric_meta:
            with trace("chat_analysis.create", metadata=metadata, user_id=caller_id, request_id=request_id):
                outcome = analyze_chat(db, caller_id, messages, request_id=request_id)
            metric_meta["created"] = outcome.created
    except MindyError:
        db.rollback()
        raise

    row = outcome.analysis
    if not outcome.created:
        response.status_code = status.HTTP_200_OK
    else:
        log_metric("chat_analysis.key_topics", len(row.key_topics or []), metadata={"route": "/chat-analysis"})

    return ChatAnalysisResponse(
        id=row.id,
        analysis_date=row.analysis_date,
        analysis=row.analysis,
        extracted=AnalysisExtract(
            emotional_state=row.emotional_state,
            key_topics=list(row.key_topics or []),
            notable_patterns=list(row.notable_patterns or []),
        ),
        analysis_done=True,
        created=outcome.created,
    )


@router.get("/chat-analysis/today", response_model=AnalysisStatusResponse, tags=["chat-analysis"])
def get_analysis_status(
    http_request: Request,
    caller_id: str = Depends(get_caller_id),
    db: Session = Depends(get_db),
) -> AnalysisStatusResponse:
    """Whether the caller's conversation has already been analysed today."""
    request_id = getattr(http_request.state, "request_id", None)
    with trace("chat_analysis.status", metadata={"route": "/chat-analysis/today"}, user_id=caller_id, request_id=request_id):
        done = analysis_done_today(db, caller_id, date.today())
    return AnalysisStatusResponse(analysis_done=done)


@router.get("/moods", response_model=MoodCalendarResponse, tags=["chat-analysis"])
def get_moods(
    http_request: Request,
    days: int | None = Query(default=None, ge=1, le=366),
    caller_id: str = Depends(get_caller_id),
    db: Session = Depends(get_db),
) -> MoodCalendarResponse:
    """Mood label per day over the trailing window; days without analysis are neutral."""
    request_id = getattr(http_request.state, "request_id", None)
    window = days or settings.mood_window_days
    with trace("mood.calendar", metadata={"route": "/moods", "days": window}, user_id=caller_id, request_id=request_id):
        moods = mood_calendar(db, caller_id, date.today(), window)
    return MoodCalendarResponse(days=window, moods=moods)
