"""Conversation API routes."""
from __future__ import annotations

import json
import logging
from typing import Annotated, AsyncIterator

from fastapi import APIRouter, Depends, HTTPException, Path, Request, status
from fastapi.responses import StreamingResponse

from stoa.api.deps import get_current_user_id, get_orchestrator, get_session_store
from stoa.api.schemas.conversation import ConversationListResponse, ConversationView, MessageRequest, TurnResponse
from stoa.conversation.orchestrator import ConversationOrchestrator
from stoa.conversation.streaming import StreamEvent
from stoa.core.errors import StoaError
from stoa.observability.tracing import trace
from stoa.services.session_store import SqlSessionStore

router = APIRouter()
logger = logging.getLogger(__name__)

ConversationId = Annotated[str, Path(min_length=1, max_length=128)]


@router.post("/conversations/{conversation_id}/messages", response_model=TurnResponse, tags=["conversations"])
async def send_message(
    conversation_id: ConversationId,
    request: MessageRequest,
    user_id: str = Depends(get_current_user_id),
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
) -> TurnResponse:
    """Run one conversation turn and return the assistant reply."""
    text = _require_text(request.message)
    result = await orchestrator.run_turn(user_id, conversation_id, text, request.chat_mode)
    return TurnResponse.from_result(result)


@router.post("/conversations/{conversation_id}/messages/stream", tags=["conversations"])
async def stream_message(
    conversation_id: ConversationId,
    request: MessageRequest,
    user_id: str = Depends(get_current_user_id),
    orchestrator: ConversationOrchestrator = Depends(get_orchestrator),
) -> StreamingResponse:
    """Run one turn, streaming the reply as Server-Sent Events."""
    text = _require_text(request.message)
    events = orchestrator.stream_turn(user_id, conversation_id, text, request.chat_mode)
    # Session load happens before the first event; its errors still map to an HTTP status.
    first = await events.__anext__()
    return StreamingResponse(
        _sse(first, events),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


@router.get("/conversations", response_model=ConversationListResponse, tags=["conversations"])
async def list_conversations(
    http_request: Request,
    user_id: str = Depends(get_current_user_id),
    store: SqlSessionStore = Depends(get_session_store),
) -> ConversationListResponse:
    """List the caller's conversations, most recently updated first."""
    request_id = getattr(http_request.state, "request_id", None)
    with trace("conversation.list", metadata={"route": "/conversations"}, user_id=user_id, request_id=request_id):
        sessions = await store.list_sessions(user_id)
    return ConversationListResponse.from_sessions(sessions)


@router.get("/conversations/{conversation_id}", response_model=ConversationView, tags=["conversations"])
async def get_conversation(
    conversation_id: ConversationId,
    http_request: Request,
    user_id: str = Depends(get_current_user_id),
    store: SqlSessionStore = Depends(get_session_store),
) -> ConversationView:
    request_id = getattr(http_request.state, "request_id", None)
    metadata = {"route": "/conversations/{conversation_id}", "conversation_id": conversation_id}
    with trace("conversation.get", metadata=metadata, user_id=user_id, request_id=request_id):
        state = await store.get(user_id, conversation_id)
    if state is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Conversation not found")
    return ConversationView.from_state(state)


def _require_text(message: str) -> str:
    text = message.strip()
    if not text:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="message must not be empty")
    return text


def _format_event(event_type: str, data: dict) -> str:
    return f"data: {json.dumps({'type': event_type, **data}, ensure_ascii=False)}\n\n"


async def _sse(first: StreamEvent, events: AsyncIterator[StreamEvent]) -> AsyncIterator[str]:
    yield _format_event(first.type, first.data)
    try:
        async for event in events:
            yield _format_event(event.type, event.data)
    except StoaError as exc:
        logger.warning("Streaming turn failed after start: %s", exc)
        yield _format_event("error", {"message": "Failed to process message"})
