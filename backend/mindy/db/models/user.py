"""User ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, DateTime, String, Text, func, text as sa_text
from sqlalchemy.dialects.postgresql import UUID

from mindy.db.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    # Stable id issued by the identity provider; the only identity the API sees.
    external_id = Column(String(length=255), nullable=False, unique=True)
    email = Column(Text, nullable=True)
    username = Column(Text, nullable=True)
    role = Column(String(length=20), nullable=False, default="user", server_default=sa_text("'user'"))
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
