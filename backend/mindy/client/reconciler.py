"""Optimistic task-completion toggles over a client-side routine snapshot."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Set

from mindy.core.errors import MindyError, ValidationError
from mindy.services.routine_window import (
    ActiveRoutineView,
    coerce_date,
    filter_active_routines,
    task_day_status,
)
from mindy.services.task_status import FUTURE_TASK_MESSAGE

logger = logging.getLogger(__name__)

PersistFn = Callable[[str, str, bool], Awaitable[Any]]


class ToggleResult(str, Enum):
    NOOP = "noop"
    CONFIRMED = "confirmed"


class TaskBusyError(MindyError):
    """A toggle for the same task is still waiting on the server."""

    status_code = 409
    default_message = "This task is already being updated"


@dataclass
class RoutineSnapshot:
    """Client-side copy of a stored routine, shaped for the window helpers."""

    id: str
    start_date: Optional[date]
    duration_days: int
    tasks: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "RoutineSnapshot":
        """Build a snapshot from a ``/routines`` or ``/routines/active`` item."""
        body = payload.get("routine", payload)
        tasks = [
            {
                "key": task.get("key"),
                "day_index": task.get("dayIndex", task.get("day_index")),
                "description": task.get("description", ""),
                "completed": bool(task.get("completed")),
            }
            for task in body.get("tasks") or []
            if isinstance(task, Mapping)
        ]
        return cls(
            id=str(body.get("id")),
            start_date=coerce_date(body.get("startDate", body.get("start_date"))),
            duration_days=body.get("duration", body.get("duration_days", 1)),
            tasks=tasks,
        )


class TaskCompletionReconciler:
    """Applies completion toggles optimistically and reverts them on failure.

    Each toggle captures the task's prior value, replaces that single task in
    the snapshot, then awaits ``persist``. A failed persist restores the prior
    value and re-raises. Toggles on different tasks may run concurrently; a
    second toggle on a task that is still in flight raises ``TaskBusyError``.
    After :meth:`close`, late results no longer touch the snapshot.
    """

    def __init__(
        self,
        persist: PersistFn,
        routines: Iterable[RoutineSnapshot] = (),
        *,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._persist = persist
        self._routines: List[RoutineSnapshot] = list(routines)
        self._today = today
        self._busy: Set[str] = set()
        self._closed = False

    @property
    def routines(self) -> List[RoutineSnapshot]:
        return list(self._routines)

    @property
    def closed(self) -> bool:
        return self._closed

    def load(self, routines: Iterable[RoutineSnapshot]) -> None:
        self._routines = list(routines)

    def active_views(self) -> List[ActiveRoutineView]:
        return filter_active_routines(self._routines, self._today())

    def is_busy(self, task_key: str) -> bool:
        return task_key in self._busy

    def find_task(self, routine_id: str, task_key: str) -> Optional[Dict[str, Any]]:
        routine = self._find_routine(routine_id)
        if routine is None:
            return None
        return next((task for task in routine.tasks if task.get("key") == task_key), None)

    def close(self) -> None:
        self._closed = True

    async def toggle(self, routine_id: str, task_key: str, new_completed: bool) -> ToggleResult:
        routine = self._find_routine(routine_id)
        task = self.find_task(routine_id, task_key) if routine else None
        if self._closed or routine is None or task is None:
            return ToggleResult.NOOP

        if task_day_status(routine, task, self._today()) == "future":
            raise ValidationError(FUTURE_TASK_MESSAGE)
        if task_key in self._busy:
            raise TaskBusyError()

        previous = bool(task.get("completed"))
        self._busy.add(task_key)
        self._replace_completed(routine, task_key, new_completed)
        try:
            await self._persist(routine.id, task_key, new_completed)
        except BaseException:
            # Cancellation reverts as well.
            if not self._closed:
                self._replace_completed(routine, task_key, previous)
                logger.info("Reverted task %s of routine %s to completed=%s", task_key, routine.id, previous)
            raise
        finally:
            self._busy.discard(task_key)

        return ToggleResult.CONFIRMED

    def _find_routine(self, routine_id: str) -> Optional[RoutineSnapshot]:
        return next((routine for routine in self._routines if routine.id == str(routine_id)), None)

    @staticmethod
    def _replace_completed(routine: RoutineSnapshot, task_key: str, completed: bool) -> None:
        routine.tasks = [
            {**task, "completed": completed} if task.get("key") == task_key else task
            for task in routine.tasks
        ]
