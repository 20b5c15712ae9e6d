"""Tests for routine draft capture and duration confirmation."""
from __future__ import annotations

import asyncio
from datetime import date, timedelta

import pytest

from mindy.client.extractor import INVALID_DURATION_MESSAGE, ExtractionOutcome, RoutineChatSession
from mindy.core.errors import UpstreamError

DRAFT_MESSAGE = (
    "Here's a plan:\n[ROUTINE_START]\n**Day 1:**\n* Drink water\n**Day 2:**\n* Walk 10 min\n[ROUTINE_END]\n"
    "How many days would you like to follow it?"
)
DRAFT = "**Day 1:**\n* Drink water\n**Day 2:**\n* Walk 10 min"


class _FakeApi:
    def __init__(self, response=None, error=None):
        self.response = response if response is not None else {"routineId": "r-1", "routineExists": False}
        self.error = error
        self.calls = []

    async def save_routine(self, routine_content, duration):
        self.calls.append((routine_content, duration))
        if self.error:
            raise self.error
        return self.response


@pytest.mark.asyncio
async def test_draft_then_duration_saves_and_clears_draft():
    api = _FakeApi()
    session = RoutineChatSession(api)

    first = await session.handle_assistant_message(DRAFT_MESSAGE)
    second = await session.handle_assistant_message("Great, 2 days it is! [DURATION: 2 DAYS]")

    assert first.outcome is ExtractionOutcome.NO_MARKER
    assert first.draft_captured is True
    assert second.outcome is ExtractionOutcome.SAVED
    assert second.routine_id == "r-1"
    assert second.content == "Great, 2 days it is!"
    assert api.calls == [(DRAFT, 2)]
    assert session.latest_routine_draft is None
    assert session.save_pending is False


@pytest.mark.asyncio
async def test_already_existing_routine_also_clears_draft():
    api = _FakeApi(response={"routineId": "r-0", "routineExists": True})
    session = RoutineChatSession(api)

    await session.handle_assistant_message(DRAFT_MESSAGE)
    result = await session.handle_assistant_message("[DURATION: 3 DAYS]")

    assert result.outcome is ExtractionOutcome.ALREADY_EXISTS
    assert session.latest_routine_draft is None


@pytest.mark.asyncio
async def test_failed_save_keeps_draft_for_retry():
    api = _FakeApi(error=UpstreamError("Could not reach the routine service"))
    session = RoutineChatSession(api)

    await session.handle_assistant_message(DRAFT_MESSAGE)
    result = await session.handle_assistant_message("Saving now [DURATION: 2 DAYS]")

    assert result.outcome is ExtractionOutcome.SAVE_FAILED
    assert result.error_message == "Failed to save routine: Could not reach the routine service"
    assert session.latest_routine_draft == DRAFT
    assert session.save_pending is False


@pytest.mark.asyncio
@pytest.mark.parametrize("marker", ["[DURATION: 0 DAYS]", "[DURATION: -1 DAYS]", "[DURATION: a week DAYS]"])
async def test_invalid_duration_asks_to_reconfirm(marker):
    api = _FakeApi()
    session = RoutineChatSession(api)

    await session.handle_assistant_message(DRAFT_MESSAGE)
    result = await session.handle_assistant_message(f"Okay {marker}")

    assert result.outcome is ExtractionOutcome.INVALID_DURATION
    assert result.error_message == INVALID_DURATION_MESSAGE
    assert result.content == "Okay"
    assert api.calls == []
    assert session.latest_routine_draft == DRAFT


@pytest.mark.asyncio
async def test_duration_without_draft_is_ignored():
    api = _FakeApi()
    session = RoutineChatSession(api)

    result = await session.handle_assistant_message("Sure! [DURATION: 5 DAYS]")

    assert result.outcome is ExtractionOutcome.NO_DRAFT
    assert result.content == "Sure!"
    assert api.calls == []


@pytest.mark.asyncio
async def test_new_draft_overwrites_unsaved_one():
    api = _FakeApi()
    session = RoutineChatSession(api)

    await session.handle_assistant_message(DRAFT_MESSAGE)
    await session.handle_assistant_message("[ROUTINE_START]\nDay 1:\n* Rest[ROUTINE_END]")
    await session.handle_assistant_message("[DURATION: 1 DAYS]")

    assert api.calls == [("Day 1:\n* Rest", 1)]


@pytest.mark.asyncio
async def test_empty_routine_block_discards_previous_draft():
    api = _FakeApi()
    session = RoutineChatSession(api)

    await session.handle_assistant_message(DRAFT_MESSAGE)
    emptied = await session.handle_assistant_message("[ROUTINE_START]   [ROUTINE_END]")
    result = await session.handle_assistant_message("[DURATION: 2 DAYS]")

    assert emptied.draft_captured is False
    assert session.latest_routine_draft is None
    assert result.outcome is ExtractionOutcome.NO_DRAFT
    assert api.calls == []


@pytest.mark.asyncio
async def test_draft_and_duration_in_one_message():
    api = _FakeApi()
    session = RoutineChatSession(api)

    result = await session.handle_assistant_message(DRAFT_MESSAGE + " [DURATION: 2 DAYS]")

    assert result.outcome is ExtractionOutcome.SAVED
    assert result.draft_captured is True
    assert "[DURATION" not in result.content
    assert "[ROUTINE_START]" in result.content
    assert "[ROUTINE_START]" not in result.display_content


@pytest.mark.asyncio
async def test_second_confirmation_while_saving_is_rejected():
    release = asyncio.Event()

    class _SlowApi(_FakeApi):
        async def save_routine(self, routine_content, duration):
            self.calls.append((routine_content, duration))
            await release.wait()
            return self.response

    api = _SlowApi()
    session = RoutineChatSession(api)
    await session.handle_assistant_message(DRAFT_MESSAGE)

    first = asyncio.create_task(session.handle_assistant_message("[DURATION: 2 DAYS]"))
    await asyncio.sleep(0)
    assert session.save_pending is True
    second = await session.handle_assistant_message("[DURATION: 2 DAYS]")
    release.set()

    assert second.outcome is ExtractionOutcome.SAVE_IN_PROGRESS
    assert (await first).outcome is ExtractionOutcome.SAVED
    assert len(api.calls) == 1
    assert session.save_pending is False


@pytest.mark.asyncio
async def test_non_assistant_messages_pass_through():
    api = _FakeApi()
    session = RoutineChatSession(api)

    result = await session.handle_message("user", "[ROUTINE_START]x[ROUTINE_END] [DURATION: 2 DAYS]")

    assert result.outcome is ExtractionOutcome.IGNORED
    assert result.content == "[ROUTINE_START]x[ROUTINE_END] [DURATION: 2 DAYS]"
    assert session.latest_routine_draft is None
    assert api.calls == []


@pytest.mark.asyncio
async def test_new_day_discards_draft():
    current = {"day": date(2024, 6, 1)}
    api = _FakeApi()
    session = RoutineChatSession(api, today=lambda: current["day"])

    await session.handle_assistant_message(DRAFT_MESSAGE)
    current["day"] += timedelta(days=1)
    result = await session.handle_assistant_message("[DURATION: 2 DAYS]")

    assert result.outcome is ExtractionOutcome.NO_DRAFT
    assert session.day == date(2024, 6, 2)


def test_reset_clears_draft_and_error():
    session = RoutineChatSession(_FakeApi())
    session.latest_routine_draft = DRAFT
    session.last_error = "boom"

    session.reset()

    assert session.latest_routine_draft is None
    assert session.last_error is None
    assert session.roll_over(session.day) is False
