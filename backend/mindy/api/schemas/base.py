"""Shared base for schemas exchanged in camelCase."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class CamelModel(BaseModel):
    """Fields are declared in snake_case with camelCase aliases; either name is accepted."""

    model_config = ConfigDict(populate_by_name=True)
