"""Pydantic schemas for the conversation API."""
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from stoa.conversation.orchestrator import TurnResult
from stoa.conversation.session import SessionState
from stoa.plans.validator import plan_to_wire


class MessageRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=4000)
    chat_mode: Optional[Literal["task", "habit"]] = None


class TurnResponse(BaseModel):
    conversation_id: str
    message: str
    title: Optional[str] = None
    phase: str
    action: str
    plan_id: Optional[str] = None
    plan: Optional[Dict[str, Any]] = None

    @classmethod
    def from_result(cls, result: TurnResult) -> "TurnResponse":
        return cls(
            conversation_id=result.state.conversation_id,
            message=result.text,
            title=result.state.title,
            phase=result.phase.value,
            action=result.action.value,
            plan_id=result.plan_id,
            plan=plan_to_wire(result.plan) if result.plan is not None else None,
        )


class ChatMessageView(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: str
    timestamp: str


class ConversationView(BaseModel):
    conversation_id: str
    chat_mode: str
    phase: str
    title: Optional[str] = None
    intent: Optional[str] = None
    confidence: Optional[float] = None
    missing_fields: Optional[List[str]] = None
    messages: List[ChatMessageView] = Field(default_factory=list)
    last_updated: Optional[str] = None

    @classmethod
    def from_state(cls, state: SessionState) -> "ConversationView":
        return cls(
            conversation_id=state.conversation_id,
            chat_mode=state.chat_mode,
            phase=state.phase.value,
            title=state.title,
            intent=state.intent,
            confidence=state.confidence,
            missing_fields=state.missing_fields,
            messages=[ChatMessageView(**message.to_dict()) for message in state.messages],
            last_updated=state.last_updated,
        )


class ConversationSummary(BaseModel):
    conversation_id: str
    title: Optional[str] = None
    chat_mode: str
    phase: str
    message_count: int
    last_updated: Optional[str] = None


class ConversationListResponse(BaseModel):
    conversations: List[ConversationSummary] = Field(default_factory=list)

    @classmethod
    def from_sessions(cls, sessions: List[SessionState]) -> "ConversationListResponse":
        return cls(
            conversations=[
                ConversationSummary(
                    conversation_id=state.conversation_id,
                    title=state.title,
                    chat_mode=state.chat_mode,
                    phase=state.phase.value,
                    message_count=len(state.messages),
                    last_updated=state.last_updated,
                )
                for state in sessions
            ]
        )
