"""Per-conversation session state and the merge-write update type.

A stored session document uses these keys::

    messages, missingFields, confidence, intent, extractedData,
    chatMode, lastUpdated, title

Updates are merge-writes. Each field of a ``SessionUpdate`` carries one op:

* ``KEEP``: leave the stored value alone (the default, and what an omitted
  field means),
* ``Set(value)``: overwrite, including with ``None``,
* ``DELETE``: remove the key from the document.

Writing ``None`` and deleting are different: a deleted key is absent on the
next read.
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Generic, List, Literal, Optional, Tuple, TypeVar, Union

from stoa.conversation.classifier import Intent

T = TypeVar("T")

Role = Literal["user", "assistant", "system"]
ChatMode = Literal["task", "habit"]

DEFAULT_CHAT_MODE: ChatMode = "task"


class ConversationPhase(str, Enum):
    CLARIFYING = "clarifying"
    PLAN_PROPOSED = "plan_proposed"
    ACCEPTED = "accepted"


class _Keep:
    def __repr__(self) -> str:
        return "KEEP"


class _Delete:
    def __repr__(self) -> str:
        return "DELETE"


KEEP = _Keep()
DELETE = _Delete()


@dataclass(frozen=True)
class Set(Generic[T]):
    value: T


FieldOp = Union[_Keep, Set[T], _Delete]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ChatMessage:
    role: Role
    content: str
    timestamp: str = field(default_factory=lambda: utcnow().isoformat())

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content, "timestamp": self.timestamp}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChatMessage":
        role = data.get("role")
        if role not in ("user", "assistant", "system"):
            role = "user"
        timestamp = data.get("timestamp")
        return cls(
            role=role,
            content=str(data.get("content") or ""),
            timestamp=str(timestamp) if timestamp is not None else utcnow().isoformat(),
        )


# SessionUpdate attribute -> stored document key
DOCUMENT_KEYS: Dict[str, str] = {
    "messages": "messages",
    "chat_mode": "chatMode",
    "title": "title",
    "intent": "intent",
    "confidence": "confidence",
    "missing_fields": "missingFields",
    "extracted_data": "extractedData",
}

# Cleared once a plan is accepted; messages, chatMode and title survive.
PLAN_FIELDS = ("missing_fields", "confidence", "intent", "extracted_data")


@dataclass(frozen=True)
class SessionUpdate:
    messages: FieldOp[List[ChatMessage]] = KEEP
    chat_mode: FieldOp[ChatMode] = KEEP
    title: FieldOp[Optional[str]] = KEEP
    intent: FieldOp[Optional[Intent]] = KEEP
    confidence: FieldOp[Optional[float]] = KEEP
    missing_fields: FieldOp[Optional[List[str]]] = KEEP
    extracted_data: FieldOp[Optional[Dict[str, Any]]] = KEEP

    def to_patch(self, now: Optional[datetime] = None) -> Tuple[Dict[str, Any], List[str]]:
        """Split the update into document keys to write and keys to delete.

        ``lastUpdated`` is always written.
        """
        sets: Dict[str, Any] = {}
        deletes: List[str] = []
        for attr, key in DOCUMENT_KEYS.items():
            op = getattr(self, attr)
            if op is KEEP:
                continue
            if op is DELETE:
                deletes.append(key)
                continue
            sets[key] = _to_document_value(attr, op.value)
        sets["lastUpdated"] = (now or utcnow()).isoformat()
        return sets, deletes

    @property
    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is KEEP for f in fields(self))


@dataclass(frozen=True)
class SessionState:
    conversation_id: str
    messages: List[ChatMessage] = field(default_factory=list)
    chat_mode: ChatMode = DEFAULT_CHAT_MODE
    intent: Optional[Intent] = None
    confidence: Optional[float] = None
    missing_fields: Optional[List[str]] = None
    extracted_data: Optional[Dict[str, Any]] = None
    title: Optional[str] = None
    last_updated: Optional[str] = None

    @property
    def phase(self) -> ConversationPhase:
        """Phase implied by the stored fields.

        Plan fields are deleted on acceptance, so a conversation with history
        but no intent has just accepted a plan.
        """
        if self.intent is None and self.messages:
            return ConversationPhase.ACCEPTED
        if self.intent in (None, "unknown", "clarifying"):
            return ConversationPhase.CLARIFYING
        return ConversationPhase.PLAN_PROPOSED

    def apply(self, update: SessionUpdate, now: Optional[datetime] = None) -> "SessionState":
        """Return the state a store holds after merge-writing ``update``."""
        changes: Dict[str, Any] = {}
        for attr in DOCUMENT_KEYS:
            op = getattr(update, attr)
            if op is KEEP:
                continue
            changes[attr] = None if op is DELETE else op.value
        if changes.get("messages") is None and "messages" in changes:
            changes["messages"] = []
        if changes.get("chat_mode") is None and "chat_mode" in changes:
            changes["chat_mode"] = DEFAULT_CHAT_MODE
        changes["last_updated"] = (now or utcnow()).isoformat()
        return replace(self, **changes)

    def to_document(self) -> Dict[str, Any]:
        """Document form; absent optional fields are omitted, not nulled."""
        document: Dict[str, Any] = {
            "messages": [message.to_dict() for message in self.messages],
            "chatMode": self.chat_mode,
        }
        for attr in ("title", "intent", "confidence", "missing_fields", "extracted_data"):
            value = getattr(self, attr)
            if value is not None:
                document[DOCUMENT_KEYS[attr]] = value
        if self.last_updated is not None:
            document["lastUpdated"] = self.last_updated
        return document

    @classmethod
    def from_document(cls, conversation_id: str, document: Dict[str, Any]) -> "SessionState":
        chat_mode = document.get("chatMode")
        return cls(
            conversation_id=conversation_id,
            messages=[ChatMessage.from_dict(item) for item in document.get("messages") or [] if isinstance(item, dict)],
            chat_mode=chat_mode if chat_mode in ("task", "habit") else DEFAULT_CHAT_MODE,
            intent=document.get("intent"),
            confidence=document.get("confidence"),
            missing_fields=document.get("missingFields"),
            extracted_data=document.get("extractedData"),
            title=document.get("title"),
            last_updated=document.get("lastUpdated"),
        )


def new_session(conversation_id: str, chat_mode: ChatMode = DEFAULT_CHAT_MODE) -> SessionState:
    """First-turn state for a conversation the store has never seen."""
    return SessionState(
        conversation_id=conversation_id,
        chat_mode=chat_mode,
        intent="unknown",
        confidence=0.0,
    )


def _to_document_value(attr: str, value: Any) -> Any:
    if attr == "messages" and value is not None:
        return [message.to_dict() for message in value]
    if attr == "missing_fields" and value is not None:
        return list(value)
    return value
