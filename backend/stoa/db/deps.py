"""FastAPI dependencies for database access."""
from __future__ import annotations

from sqlalchemy.orm import sessionmaker

from stoa.db.session import SessionLocal


def get_session_factory() -> sessionmaker:
    """Session factory used by the conversation stores; overridden in tests."""
    return SessionLocal
