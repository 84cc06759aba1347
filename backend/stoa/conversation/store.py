"""Storage interfaces the orchestrator depends on, plus in-memory versions.

Implementations must apply one ``SessionUpdate`` all-or-nothing: the sets
and the deletes of a single write either both land or neither does.
``TurnStore.commit_turn`` extends that to a whole turn, so an accepted plan
is never stored without the session write that records it.
"""
from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from stoa.conversation.session import DOCUMENT_KEYS, DELETE, SessionState, SessionUpdate
from stoa.core.errors import require_user_id
from stoa.plans.models import Plan, PlanKind
from stoa.plans.validator import plan_to_wire


class SessionStore(ABC):
    """Key-value document store keyed by ``(user_id, conversation_id)``."""

    @abstractmethod
    async def get(self, user_id: str, conversation_id: str) -> Optional[SessionState]:
        """Return the stored session, or None if the conversation does not exist."""

    @abstractmethod
    async def write(self, user_id: str, conversation_id: str, update: SessionUpdate) -> None:
        """Merge-write ``update``, creating the document if needed."""

    @abstractmethod
    async def list_sessions(self, user_id: str) -> List[SessionState]:
        """Return the user's conversations, most recently updated first."""

    async def delete_fields(self, user_id: str, conversation_id: str, names: Iterable[str]) -> None:
        """Remove fields (by ``SessionUpdate`` attribute name) from the stored document."""
        ops = {name: DELETE for name in names if name in DOCUMENT_KEYS}
        await self.write(user_id, conversation_id, SessionUpdate(**ops))


@dataclass(frozen=True)
class StoredPlan:
    plan_id: str
    user_id: str
    conversation_id: str
    kind: str
    name: str
    payload: Dict[str, Any]


@dataclass(frozen=True)
class AcceptedPlan:
    plan_id: str
    plan: Plan


class PlanStore(ABC):
    """Destination for accepted plans; scheduling consumers read them back with ``list_plans``.

    Plans are keyed by ``(user_id, plan_id)``.
    """

    @abstractmethod
    async def save(self, user_id: str, conversation_id: str, plan_id: str, plan: Plan) -> StoredPlan:
        """Insert or replace the user's plan stored under ``plan_id``."""

    @abstractmethod
    async def list_plans(self, user_id: str, kind: Optional[PlanKind] = None) -> List[StoredPlan]:
        """Return the user's stored plans in the order they were first saved."""


class TurnStore(SessionStore, PlanStore):
    @abstractmethod
    async def commit_turn(
        self,
        user_id: str,
        conversation_id: str,
        update: SessionUpdate,
        accepted: Optional[AcceptedPlan] = None,
    ) -> Optional[StoredPlan]:
        """Write the session update and the accepted plan, if any, as one unit."""


def merge_document(document: Dict[str, Any], update: SessionUpdate) -> Dict[str, Any]:
    """Apply an update to a raw session document, returning a new document."""
    sets, deletes = update.to_patch()
    merged = {**document, **sets}
    for key in deletes:
        merged.pop(key, None)
    return merged


def stored_plan(user_id: str, conversation_id: str, plan_id: str, plan: Plan) -> StoredPlan:
    return StoredPlan(
        plan_id=plan_id,
        user_id=user_id,
        conversation_id=conversation_id,
        kind=plan.kind.value,
        name=plan.name,
        payload=plan_to_wire(plan),
    )


class InMemorySessionStore(TurnStore):
    """Dict-backed store for tests and single-process embedding."""

    def __init__(self) -> None:
        self.documents: Dict[Tuple[str, str], Dict[str, Any]] = {}
        self.plans: Dict[Tuple[str, str], StoredPlan] = {}
        self.writes: List[Tuple[str, str, SessionUpdate]] = []

    async def get(self, user_id: str, conversation_id: str) -> Optional[SessionState]:
        uid = require_user_id(user_id)
        document = self.documents.get((uid, conversation_id))
        if document is None:
            return None
        return SessionState.from_document(conversation_id, copy.deepcopy(document))

    async def write(self, user_id: str, conversation_id: str, update: SessionUpdate) -> None:
        uid = require_user_id(user_id)
        key = (uid, conversation_id)
        self.documents[key] = merge_document(self.documents.get(key, {}), update)
        self.writes.append((uid, conversation_id, update))

    async def list_sessions(self, user_id: str) -> List[SessionState]:
        uid = require_user_id(user_id)
        sessions = [
            SessionState.from_document(conversation_id, copy.deepcopy(document))
            for (owner, conversation_id), document in self.documents.items()
            if owner == uid
        ]
        return sorted(sessions, key=lambda state: state.last_updated or "", reverse=True)

    async def save(self, user_id: str, conversation_id: str, plan_id: str, plan: Plan) -> StoredPlan:
        uid = require_user_id(user_id)
        stored = stored_plan(uid, conversation_id, plan_id, plan)
        self.plans[(uid, plan_id)] = stored
        return stored

    async def list_plans(self, user_id: str, kind: Optional[PlanKind] = None) -> List[StoredPlan]:
        uid = require_user_id(user_id)
        return [
            plan
            for (owner, _), plan in self.plans.items()
            if owner == uid and (kind is None or plan.kind == kind.value)
        ]

    async def commit_turn(
        self,
        user_id: str,
        conversation_id: str,
        update: SessionUpdate,
        accepted: Optional[AcceptedPlan] = None,
    ) -> Optional[StoredPlan]:
        uid = require_user_id(user_id)
        stored = stored_plan(uid, conversation_id, accepted.plan_id, accepted.plan) if accepted else None
        await self.write(uid, conversation_id, update)
        if stored is not None:
            self.plans[(uid, stored.plan_id)] = stored
        return stored
