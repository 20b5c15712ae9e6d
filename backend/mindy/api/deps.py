"""Request-scoped dependencies shared by the API routes."""
from __future__ import annotations

from fastapi import Request

from mindy.core.config import settings
from mindy.core.context import caller_id_ctx_var
from mindy.core.errors import AuthenticationError


async def get_caller_id(request: Request) -> str:
    """Identity-provider id of the caller, taken from the verified identity header.

    Declared async so the context variable is set on the request's own context
    and is visible to loggers inside sync handlers.
    """
    caller_id = (request.headers.get(settings.caller_id_header) or "").strip()
    if not caller_id:
        raise AuthenticationError("Authentication required")
    caller_id_ctx_var.set(caller_id)
    request.state.caller_id = caller_id
    return caller_id
