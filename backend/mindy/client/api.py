"""Async HTTP client for the routine endpoints."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

import httpx

from mindy.core.config import settings
from mindy.core.errors import UpstreamError, error_for_status

logger = logging.getLogger(__name__)


class RoutineApiClient:
    """Thin wrapper around :class:`httpx.AsyncClient` that speaks the routine API.

    Every non-2xx response is raised as the matching ``MindyError`` subclass,
    and transport failures as ``UpstreamError``.
    """

    def __init__(
        self,
        caller_id: str,
        *,
        base_url: str = "http://localhost:8000",
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ) -> None:
        self.caller_id = caller_id
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def __aenter__(self) -> "RoutineApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def save_routine(self, routine_content: str, duration: int) -> Dict[str, Any]:
        return await self._request(
            "POST",
            "/save-routine",
            json={"routineContent": routine_content, "duration": duration},
        )

    async def update_task_status(self, routine_id: UUID | str, task_key: str, completed: bool) -> Dict[str, Any]:
        return await self._request(
            "POST",
            "/update-task-status",
            json={"routineId": str(routine_id), "taskKey": task_key, "completed": completed},
        )

    async def list_routines(self, *, owner_id: str | None = None, since: str | None = None) -> List[Dict[str, Any]]:
        params = {key: value for key, value in (("ownerId", owner_id), ("since", since)) if value}
        return await self._request("GET", "/routines", params=params)

    async def active_routines(self, *, today: str | None = None) -> List[Dict[str, Any]]:
        params = {"today": today} if today else None
        return await self._request("GET", "/routines/active", params=params)

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        headers = {settings.caller_id_header: self.caller_id}
        try:
            response = await self._client.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed before a response arrived: %s", method, path, exc)
            raise UpstreamError("Could not reach the routine service") from exc

        if response.is_success:
            return response.json() if response.content else {}

        raise error_for_status(response.status_code, _error_message(response))


def _error_message(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return response.text or None
    if isinstance(body, dict):
        return body.get("error") or body.get("detail")
    return None
