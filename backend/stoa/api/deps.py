"""FastAPI dependencies for the conversation API."""
from __future__ import annotations

from fastapi import Depends, Request
from sqlalchemy.orm import sessionmaker

from stoa.conversation.orchestrator import ConversationOrchestrator
from stoa.core.config import settings
from stoa.core.errors import require_user_id
from stoa.db.deps import get_session_factory
from stoa.llm.base import ChatModel
from stoa.llm.openai_model import OpenAIChatModel
from stoa.services.session_store import SqlSessionStore


def get_current_user_id(request: Request) -> str:
    """User id resolved by ``RequestIDMiddleware``; 401 when absent."""
    return require_user_id(getattr(request.state, "user_id", None))


def get_chat_model() -> ChatModel:
    return OpenAIChatModel.from_settings(settings)


def get_session_store(session_factory: sessionmaker = Depends(get_session_factory)) -> SqlSessionStore:
    return SqlSessionStore(session_factory)


def get_orchestrator(
    model: ChatModel = Depends(get_chat_model),
    store: SqlSessionStore = Depends(get_session_store),
) -> ConversationOrchestrator:
    return ConversationOrchestrator(model, store, title_max_length=settings.title_max_length)
