"""Chat sentiment analysis ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, Date, DateTime, ForeignKey, Text, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID

from mindy.db.base import Base, JSONBCompat


class ChatAnalysis(Base):
    __tablename__ = "chat_analyses"
    __table_args__ = (UniqueConstraint("user_id", "analysis_date", name="uq_chat_analyses_user_id_analysis_date"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    # Server calendar day the analysis belongs to; gates one analysis per day.
    analysis_date = Column(Date, nullable=False)
    messages = Column(JSONBCompat, nullable=False, default=list)
    analysis = Column(Text, nullable=False)
    emotional_state = Column(Text, nullable=True)
    key_topics = Column(JSONBCompat, nullable=False, default=list)
    notable_patterns = Column(JSONBCompat, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
