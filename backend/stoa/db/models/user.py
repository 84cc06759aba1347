"""User ORM model."""
from __future__ import annotations

from sqlalchemy import Column, DateTime, String, func

from stoa.db.base import Base


class User(Base):
    __tablename__ = "users"

    # Identity-provider uid; opaque to this service.
    id = Column(String(128), primary_key=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
