"""Persistence for conversation sessions and accepted plans."""

from stoa.db.base import Base
from stoa.db import models  # noqa: F401  registers users, conversations and plans

__all__ = ["Base"]
