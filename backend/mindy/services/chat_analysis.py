"""Daily sentiment analysis of a user's chat with the companion."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, List, Optional
from uuid import UUID

import openai
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from mindy.core.config import settings
from mindy.core.errors import UpstreamError
from mindy.db.models.chat_analysis import ChatAnalysis
from mindy.observability.tracing import trace
from mindy.services.activity_log import record_activity
from mindy.services.analysis_parser import parse_analysis_text
from mindy.services.user_service import resolve_user

logger = logging.getLogger(__name__)

DEFAULT_MOOD = "neutral"

EMOTION_KEYWORDS = {
    "Anxious": ["anxious", "worried", "nervous", "panic"],
    "Overwhelmed": ["overwhelmed", "too much", "swamped"],
    "Sad": ["sad", "down", "lonely", "cry"],
    "Stressed": ["stressed", "pressure", "deadline"],
    "Tired": ["tired", "exhausted", "burned out", "sleep"],
    "Angry": ["angry", "frustrated", "annoyed"],
    "Content": ["happy", "grateful", "good", "calm"],
}

SYSTEM_PROMPT = (
    "You analyse conversations between a user and a mental-wellness companion. "
    "Answer only in the requested format."
)

ANALYSIS_TEMPLATE = """Analyze the following conversation strictly adhering to the output format specified below. Determine the user's emotional state, key topics discussed, and any notable patterns.

Conversation:
{conversation}

Analysis:
Emotional State:
* [One word for the user's dominant emotional state, e.g. Frustrated, Anxious, Content, Curious]

Key Topics:
* [Main subject or theme discussed]
* [Continue listing distinct topics as bullet points]

Notable Patterns:
* [Recurring behaviors, questions, or linguistic patterns]
* [Continue listing distinct patterns as bullet points]
"""


@dataclass
class AnalysisOutcome:
    analysis: ChatAnalysis
    created: bool


def find_analysis_for_day(db: Session, user_id: UUID, day: date) -> Optional[ChatAnalysis]:
    return (
        db.query(ChatAnalysis)
        .filter(ChatAnalysis.user_id == user_id, ChatAnalysis.analysis_date == day)
        .order_by(ChatAnalysis.created_at.desc())
        .first()
    )


def analysis_done_today(db: Session, owner_id: str, today: date) -> bool:
    user = resolve_user(db, owner_id)
    return find_analysis_for_day(db, user.id, today) is not None


def analyze_chat(
    db: Session,
    owner_id: str,
    messages: List[Dict[str, str]],
    *,
    today: date | None = None,
    request_id: str | None = None,
) -> AnalysisOutcome:
    """Analyse the conversation unless the user already has today's analysis.

    A concurrent request that stores the day's analysis first wins; the loser
    returns that row through the unique ``(user_id, analysis_date)`` constraint.
    """
    user = resolve_user(db, owner_id)
    day = today or date.today()

    existing = find_analysis_for_day(db, user.id, day)
    if existing:
        return AnalysisOutcome(analysis=existing, created=False)

    analysis_text = _request_analysis(messages, request_id=request_id)
    extracted = parse_analysis_text(analysis_text)
    row = ChatAnalysis(
        user_id=user.id,
        analysis_date=day,
        messages=[{"role": m["role"], "content": m["content"]} for m in messages],
        analysis=analysis_text or "Analysis generation failed or returned empty.",
        emotional_state=extracted.emotional_state,
        key_topics=extracted.key_topics,
        notable_patterns=extracted.notable_patterns,
    )
    db.add(row)
    record_activity(
        db,
        user_id=user.id,
        action_type="chat_analyzed",
        payload={
            "analysis_date": day.isoformat(),
            "emotional_state": extracted.emotional_state,
            "message_count": len(messages),
            "request_id": request_id,
        },
        reason="Daily chat analysis stored",
    )
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        winner = find_analysis_for_day(db, user.id, day)
        if winner:
            logger.info("Concurrent chat analysis for user %s on %s lost the race", user.id, day)
            return AnalysisOutcome(analysis=winner, created=False)
        raise UpstreamError("Failed to save analysis result.") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise UpstreamError("Failed to save analysis result.") from exc
    db.refresh(row)
    return AnalysisOutcome(analysis=row, created=True)


def mood_calendar(db: Session, owner_id: str, today: date, days: int) -> Dict[date, str]:
    """Lower-cased emotional state per day for the trailing window, oldest first."""
    user = resolve_user(db, owner_id)
    window_start = today - timedelta(days=days - 1)
    moods: Dict[date, str] = {window_start + timedelta(days=i): DEFAULT_MOOD for i in range(days)}
    rows = (
        db.query(ChatAnalysis)
        .filter(
            ChatAnalysis.user_id == user.id,
            ChatAnalysis.analysis_date >= window_start,
            ChatAnalysis.analysis_date <= today,
        )
        .order_by(ChatAnalysis.analysis_date.asc(), ChatAnalysis.created_at.asc())
        .all()
    )
    for row in rows:
        if row.emotional_state:
            moods[row.analysis_date] = row.emotional_state.lower()
    return moods


def _format_conversation(messages: List[Dict[str, str]]) -> str:
    return "\n".join(f"{m['role']}: {m['content']}" for m in messages)


def _request_analysis(messages: List[Dict[str, str]], *, request_id: str | None) -> str:
    api_key = settings.openai_api_key
    if not api_key:
        logger.info("OPENAI_API_KEY missing; using keyword analysis.")
        return _fallback_analysis(messages)

    client = openai.OpenAI(api_key=api_key)
    prompt = ANALYSIS_TEMPLATE.format(conversation=_format_conversation(messages))
    try:
        with trace(
            "chat_analysis.generate",
            metadata={"model": settings.openai_model, "message_count": len(messages)},
            request_id=request_id,
        ):
            completion = client.chat.completions.create(
                model=settings.openai_model,
                temperature=0.3,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
            )
    except openai.OpenAIError as exc:
        logger.error("AI provider failed to analyse chat: %s", exc)
        raise UpstreamError("Failed to get analysis from AI service.", status_code=502) from exc
    return completion.choices[0].message.content or ""


def _fallback_analysis(messages: List[Dict[str, str]]) -> str:
    user_lines = [m["content"].strip() for m in messages if m.get("role") == "user" and m.get("content", "").strip()]
    lowered = " ".join(user_lines).lower()

    state = "Neutral"
    for label, keywords in EMOTION_KEYWORDS.items():
        if any(keyword in lowered for keyword in keywords):
            state = label
            break

    topics = [" ".join(line.split())[:80] for line in user_lines[:3]] or ["General check-in"]
    questions = sum(line.count("?") for line in user_lines)
    patterns = [f"Shared {len(user_lines)} message(s) in this conversation"]
    if questions:
        patterns.append(f"Asked {questions} question(s)")

    topic_block = "\n".join(f"* {topic}" for topic in topics)
    pattern_block = "\n".join(f"* {pattern}" for pattern in patterns)
    return (
        f"Emotional State:\n* {state}\n\n"
        f"Key Topics:\n{topic_block}\n\n"
        f"Notable Patterns:\n{pattern_block}\n"
    )
