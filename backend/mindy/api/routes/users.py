"""User provisioning route."""
from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mindy.api.deps import get_caller_id
from mindy.api.schemas.user import ProvisionUserRequest, UserResponse
from mindy.core.errors import UpstreamError
from mindy.db.deps import get_db
from mindy.observability.metrics import log_metric
from mindy.observability.tracing import trace
from mindy.services.user_service import provision_user

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post(
    "/users",
    response_model=UserResponse,
    response_model_by_alias=True,
    status_code=status.HTTP_201_CREATED,
    tags=["users"],
)
def add_user(
    http_request: Request,
    response: Response,
    payload: ProvisionUserRequest | None = None,
    caller_id: str = Depends(get_caller_id),
    db: Session = Depends(get_db),
) -> UserResponse:
    """Create the caller's user record on first sign-in; repeat calls return it unchanged."""
    request_id = getattr(http_request.state, "request_id", None)
    payload = payload or ProvisionUserRequest()
    metadata: Dict[str, Any] = {"route": "/users", "request_id": request_id}

    try:
        with trace("user.provision", metadata=metadata, user_id=caller_id, request_id=request_id):
            user, created = provision_user(db, caller_id, email=payload.email, username=payload.username)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to provision user %s: %s", caller_id, exc)
        raise UpstreamError("Failed to create user") from exc

    if not created:
        response.status_code = status.HTTP_200_OK
    log_metric("user.provision.success", 1, metadata={"created": created})

    return UserResponse(
        id=user.id,
        external_id=user.external_id,
        email=user.email,
        username=user.username,
        role=user.role,
        created=created,
    )
