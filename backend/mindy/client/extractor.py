"""Session-scoped capture of routine drafts and duration confirmations.

A :class:`RoutineChatSession` is created per signed-in chat session. It reads
each completed assistant message in arrival order, remembers the latest
routine draft, and saves it through the routine API once a duration marker
confirms it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Callable, Optional

from mindy.client.api import RoutineApiClient
from mindy.core.errors import MindyError
from mindy.services.routine_markers import (
    clean_assistant_text,
    extract_routine_draft,
    find_duration_marker,
    strip_duration_markers,
)

logger = logging.getLogger(__name__)

ASSISTANT_ROLE = "assistant"
INVALID_DURATION_MESSAGE = "Couldn't understand the duration, please try confirming again."


class ExtractionOutcome(str, Enum):
    IGNORED = "ignored"
    NO_MARKER = "no_marker"
    SAVED = "saved"
    ALREADY_EXISTS = "already_exists"
    SAVE_FAILED = "save_failed"
    INVALID_DURATION = "invalid_duration"
    NO_DRAFT = "no_draft"
    SAVE_IN_PROGRESS = "save_in_progress"


@dataclass
class ExtractionResult:
    outcome: ExtractionOutcome
    content: str
    draft_captured: bool = False
    routine_id: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def display_content(self) -> str:
        return clean_assistant_text(self.content)


class RoutineChatSession:
    def __init__(self, api: RoutineApiClient, *, today: Callable[[], date] = date.today) -> None:
        self.api = api
        self._today = today
        self.day: date = today()
        self.latest_routine_draft: Optional[str] = None
        self.save_pending = False
        self.last_error: Optional[str] = None

    def reset(self) -> None:
        """Forget the draft and last error, e.g. on logout.

        ``save_pending`` belongs to an in-flight save and is cleared when it
        finishes.
        """
        self.latest_routine_draft = None
        self.last_error = None

    def roll_over(self, today: date) -> bool:
        """Reset when the calendar day has changed; returns whether it did."""
        if today == self.day:
            return False
        logger.info("Chat session rolled over from %s to %s", self.day, today)
        self.reset()
        self.day = today
        return True

    async def handle_message(self, role: str, content: str) -> ExtractionResult:
        if role != ASSISTANT_ROLE:
            return ExtractionResult(outcome=ExtractionOutcome.IGNORED, content=content)
        return await self.handle_assistant_message(content)

    async def handle_assistant_message(self, content: str) -> ExtractionResult:
        """Apply draft capture then duration confirmation to one assistant message."""
        content = content or ""
        self.roll_over(self._today())

        draft = extract_routine_draft(content)
        if draft is not None:
            if self.latest_routine_draft and self.latest_routine_draft != draft:
                logger.info("New routine draft replaces an unsaved one")
            # An empty block still discards the previous draft.
            self.latest_routine_draft = draft or None

        marker = find_duration_marker(content)
        visible = strip_duration_markers(content) if marker else content
        captured = bool(draft)

        if marker is None:
            return ExtractionResult(outcome=ExtractionOutcome.NO_MARKER, content=visible, draft_captured=captured)

        if not marker.is_valid:
            logger.warning("Unreadable duration marker %r", marker.raw)
            self.last_error = INVALID_DURATION_MESSAGE
            return ExtractionResult(
                outcome=ExtractionOutcome.INVALID_DURATION,
                content=visible,
                draft_captured=captured,
                error_message=INVALID_DURATION_MESSAGE,
            )

        if not self.latest_routine_draft:
            logger.info("Duration confirmed with no routine draft; nothing to save")
            return ExtractionResult(outcome=ExtractionOutcome.NO_DRAFT, content=visible, draft_captured=captured)

        if self.save_pending:
            logger.info("Routine save already in progress; ignoring duration marker")
            return ExtractionResult(
                outcome=ExtractionOutcome.SAVE_IN_PROGRESS,
                content=visible,
                draft_captured=captured,
            )

        saving = self.latest_routine_draft
        self.save_pending = True
        try:
            response = await self.api.save_routine(saving, marker.days)
        except MindyError as exc:
            message = f"Failed to save routine: {exc.message}"
            logger.warning("Routine save failed with status %s: %s", exc.status_code, exc.message)
            self.last_error = message
            return ExtractionResult(
                outcome=ExtractionOutcome.SAVE_FAILED,
                content=visible,
                draft_captured=captured,
                error_message=message,
            )
        finally:
            self.save_pending = False

        # A newer draft captured while the save was in flight is kept.
        if self.latest_routine_draft == saving:
            self.latest_routine_draft = None
        self.last_error = None
        outcome = ExtractionOutcome.ALREADY_EXISTS if response.get("routineExists") else ExtractionOutcome.SAVED
        routine_id = response.get("routineId")
        return ExtractionResult(
            outcome=outcome,
            content=visible,
            draft_captured=captured,
            routine_id=str(routine_id) if routine_id else None,
        )
