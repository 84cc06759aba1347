"""Accepted habit/task plan ORM model."""
from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Text, func

from stoa.db.base import Base
from stoa.db.types import JSONDocument


class PlanRecord(Base):
    __tablename__ = "plans"
    __table_args__ = (Index("ix_plans_user_id_conversation_id", "user_id", "conversation_id"),)

    user_id = Column(String(128), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    # Deterministic "<conversation_id>:<turn>" so a retried turn upserts the same row.
    id = Column(String(300), primary_key=True)
    conversation_id = Column(String(128), nullable=False)
    kind = Column(String(16), nullable=False)
    name = Column(Text, nullable=False)
    payload = Column(JSONDocument, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
