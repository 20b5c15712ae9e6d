"""Schemas for user provisioning."""
from __future__ import annotations

from typing import Literal, Optional
from uuid import UUID

from pydantic import Field

from mindy.api.schemas.base import CamelModel


class ProvisionUserRequest(CamelModel):
    email: Optional[str] = Field(default=None, max_length=320)
    username: Optional[str] = Field(default=None, max_length=100)


class UserResponse(CamelModel):
    id: UUID
    external_id: str = Field(..., alias="externalId")
    email: Optional[str]
    username: Optional[str]
    role: Literal["user", "admin"]
    created: bool
