"""Declarative base and column type helpers."""
from __future__ import annotations

from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import JSON, TypeDecorator


class Base(DeclarativeBase):
    pass


class JSONBCompat(TypeDecorator):
    """JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests).

    Values are replaced wholesale on update; callers must assign a new
    list/dict rather than mutating the loaded one in place.
    """

    impl = JSONB
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(JSON())
