"""Tests for optimistic task toggles on the client snapshot."""
from __future__ import annotations

import asyncio
from datetime import date, timedelta

import pytest

from mindy.client.reconciler import RoutineSnapshot, TaskBusyError, TaskCompletionReconciler, ToggleResult
from mindy.core.errors import AuthorizationError, UpstreamError, ValidationError

TODAY = date(2024, 6, 2)


def _snapshot() -> RoutineSnapshot:
    return RoutineSnapshot(
        id="r1",
        start_date=TODAY - timedelta(days=1),
        duration_days=3,
        tasks=[
            {"key": "k1", "day_index": 1, "description": "Drink water", "completed": False},
            {"key": "k2", "day_index": 2, "description": "Walk", "completed": False},
            {"key": "k3", "day_index": 3, "description": "Journal", "completed": False},
        ],
    )


class _Recorder:
    def __init__(self, error: Exception | None = None):
        self.calls = []
        self.error = error

    async def __call__(self, routine_id, task_key, completed):
        self.calls.append((routine_id, task_key, completed))
        if self.error:
            raise self.error
        return {}


def _completed(reconciler: TaskCompletionReconciler, key: str) -> bool:
    return reconciler.find_task("r1", key)["completed"]


@pytest.mark.asyncio
async def test_toggle_confirms_and_keeps_optimistic_state():
    persist = _Recorder()
    reconciler = TaskCompletionReconciler(persist, [_snapshot()], today=lambda: TODAY)

    result = await reconciler.toggle("r1", "k2", True)

    assert result is ToggleResult.CONFIRMED
    assert persist.calls == [("r1", "k2", True)]
    assert _completed(reconciler, "k2") is True
    assert _completed(reconciler, "k1") is False
    assert not reconciler.is_busy("k2")


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [UpstreamError("network down"), AuthorizationError(), ConnectionError("reset")])
async def test_failed_persist_reverts_and_surfaces_error(error):
    reconciler = TaskCompletionReconciler(_Recorder(error), [_snapshot()], today=lambda: TODAY)

    with pytest.raises(type(error)):
        await reconciler.toggle("r1", "k1", True)

    assert _completed(reconciler, "k1") is False
    assert not reconciler.is_busy("k1")


@pytest.mark.asyncio
async def test_future_day_task_is_rejected_without_calling_server():
    persist = _Recorder()
    reconciler = TaskCompletionReconciler(persist, [_snapshot()], today=lambda: TODAY)

    with pytest.raises(ValidationError):
        await reconciler.toggle("r1", "k3", True)

    assert persist.calls == []
    assert _completed(reconciler, "k3") is False


@pytest.mark.asyncio
async def test_unknown_routine_or_task_is_a_noop():
    persist = _Recorder()
    reconciler = TaskCompletionReconciler(persist, [_snapshot()], today=lambda: TODAY)

    assert await reconciler.toggle("missing", "k1", True) is ToggleResult.NOOP
    assert await reconciler.toggle("r1", "missing", True) is ToggleResult.NOOP
    assert persist.calls == []


@pytest.mark.asyncio
async def test_busy_guard_is_per_task_key():
    release = asyncio.Event()
    calls = []

    async def slow_persist(routine_id, task_key, completed):
        calls.append(task_key)
        if task_key == "k1":
            await release.wait()

    reconciler = TaskCompletionReconciler(slow_persist, [_snapshot()], today=lambda: TODAY)
    pending = asyncio.create_task(reconciler.toggle("r1", "k1", True))
    await asyncio.sleep(0)

    assert reconciler.is_busy("k1")
    with pytest.raises(TaskBusyError):
        await reconciler.toggle("r1", "k1", False)
    assert await reconciler.toggle("r1", "k2", True) is ToggleResult.CONFIRMED

    release.set()
    assert await pending is ToggleResult.CONFIRMED
    assert _completed(reconciler, "k1") is True
    assert calls == ["k1", "k2"]


@pytest.mark.asyncio
async def test_closed_reconciler_discards_late_results():
    release = asyncio.Event()

    async def failing_later(routine_id, task_key, completed):
        await release.wait()
        raise UpstreamError("late failure")

    reconciler = TaskCompletionReconciler(failing_later, [_snapshot()], today=lambda: TODAY)
    pending = asyncio.create_task(reconciler.toggle("r1", "k1", True))
    await asyncio.sleep(0)
    reconciler.close()
    release.set()

    with pytest.raises(UpstreamError):
        await pending
    assert _completed(reconciler, "k1") is True
    assert await reconciler.toggle("r1", "k2", True) is ToggleResult.NOOP


def test_snapshot_from_api_payload():
    payload = {
        "routine": {
            "id": "abc",
            "ownerId": "owner",
            "startDate": "2024-06-01",
            "duration": 2,
            "tasks": [{"key": "k", "dayIndex": 2, "description": "Walk", "completed": True}],
        },
        "daysPassed": 1,
        "days": [],
    }

    snapshot = RoutineSnapshot.from_payload(payload)

    assert snapshot.id == "abc"
    assert snapshot.start_date == date(2024, 6, 1)
    assert snapshot.duration_days == 2
    assert snapshot.tasks == [{"key": "k", "day_index": 2, "description": "Walk", "completed": True}]


def test_active_views_follow_injected_today():
    reconciler = TaskCompletionReconciler(_Recorder(), [_snapshot()], today=lambda: TODAY)

    views = reconciler.active_views()

    assert [section.status for section in views[0].days] == ["past", "today", "future"]
