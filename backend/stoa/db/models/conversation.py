"""Conversation session document ORM model."""
from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, func

from stoa.db.base import Base
from stoa.db.types import JSONDocument


class Conversation(Base):
    __tablename__ = "conversations"
    __table_args__ = (Index("ix_conversations_user_id", "user_id"),)

    user_id = Column(String(128), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    conversation_id = Column(String(128), primary_key=True)
    document = Column(JSONDocument, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
