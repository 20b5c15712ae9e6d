"""Routine ORM model.

A routine is stored document-style: its task items live in a single JSON
array on the row, each item shaped ``{key, day_index, description, completed}``.
"""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import UUID

from mindy.db.base import Base, JSONBCompat


class Routine(Base):
    __tablename__ = "routines"
    __table_args__ = (
        Index("ix_routines_user_id", "user_id"),
        UniqueConstraint("user_id", "start_date", name="uq_routines_user_id_start_date"),
        CheckConstraint("duration_days >= 1", name="ck_routines_duration_positive"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    start_date = Column(Date, nullable=False)
    duration_days = Column(Integer, nullable=False, default=1)
    tasks = Column(JSONBCompat, nullable=False, default=list)
    insight = Column(Text, nullable=True)
    generated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
