"""SQLAlchemy-backed session and plan storage."""
from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from starlette.concurrency import run_in_threadpool

from stoa.conversation.session import SessionState, SessionUpdate
from stoa.conversation.store import AcceptedPlan, StoredPlan, TurnStore, merge_document, stored_plan
from stoa.core.errors import UpstreamFailure, require_user_id
from stoa.db.models.conversation import Conversation
from stoa.db.models.plan import PlanRecord
from stoa.db.models.user import User
from stoa.plans.models import Plan, PlanKind

logger = logging.getLogger(__name__)

R = TypeVar("R")


class SqlSessionStore(TurnStore):
    """Stores session documents and accepted plans in SQL.

    Each public call runs in its own transaction, so a failed write leaves
    the previous document untouched. ``commit_turn`` puts the session write
    and the plan upsert in the same transaction.
    """

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    async def get(self, user_id: str, conversation_id: str) -> Optional[SessionState]:
        uid = require_user_id(user_id)
        return await self._run("session.read", self._get_sync, uid, conversation_id)

    async def write(self, user_id: str, conversation_id: str, update: SessionUpdate) -> None:
        uid = require_user_id(user_id)
        await self._run("session.write", self._commit_sync, uid, conversation_id, update, None)

    async def list_sessions(self, user_id: str) -> List[SessionState]:
        uid = require_user_id(user_id)
        return await self._run("session.list", self._list_sessions_sync, uid)

    async def save(self, user_id: str, conversation_id: str, plan_id: str, plan: Plan) -> StoredPlan:
        uid = require_user_id(user_id)
        return await self._run("plan.save", self._save_sync, uid, conversation_id, plan_id, plan)

    async def list_plans(self, user_id: str, kind: Optional[PlanKind] = None) -> List[StoredPlan]:
        uid = require_user_id(user_id)
        return await self._run("plan.list", self._list_plans_sync, uid, kind)

    async def commit_turn(
        self,
        user_id: str,
        conversation_id: str,
        update: SessionUpdate,
        accepted: Optional[AcceptedPlan] = None,
    ) -> Optional[StoredPlan]:
        uid = require_user_id(user_id)
        return await self._run("turn.commit", self._commit_sync, uid, conversation_id, update, accepted)

    async def _run(self, operation: str, func: Callable[..., R], *args: Any) -> R:
        try:
            return await run_in_threadpool(func, *args)
        except SQLAlchemyError as exc:
            logger.exception("Store operation %s failed", operation)
            raise UpstreamFailure(operation) from exc

    def _get_sync(self, user_id: str, conversation_id: str) -> Optional[SessionState]:
        with self._session_factory() as db:
            row = db.get(Conversation, (user_id, conversation_id))
            if row is None:
                return None
            return SessionState.from_document(conversation_id, dict(row.document or {}))

    def _list_sessions_sync(self, user_id: str) -> List[SessionState]:
        with self._session_factory() as db:
            rows = (
                db.query(Conversation)
                .filter(Conversation.user_id == user_id)
                .order_by(Conversation.updated_at.desc(), Conversation.conversation_id)
                .all()
            )
            return [SessionState.from_document(row.conversation_id, dict(row.document or {})) for row in rows]

    def _commit_sync(
        self,
        user_id: str,
        conversation_id: str,
        update: SessionUpdate,
        accepted: Optional[AcceptedPlan],
    ) -> Optional[StoredPlan]:
        stored = None
        with self._session_factory() as db:
            _ensure_user(db, user_id)
            _merge_session(db, user_id, conversation_id, update)
            if accepted is not None:
                stored = _upsert_plan(db, user_id, conversation_id, accepted.plan_id, accepted.plan)
            db.commit()
        if stored is not None:
            logger.info("Stored %s plan %s for conversation %s", stored.kind, stored.plan_id, conversation_id)
        return stored

    def _save_sync(self, user_id: str, conversation_id: str, plan_id: str, plan: Plan) -> StoredPlan:
        with self._session_factory() as db:
            _ensure_user(db, user_id)
            stored = _upsert_plan(db, user_id, conversation_id, plan_id, plan)
            db.commit()
        logger.info("Stored %s plan %s for conversation %s", stored.kind, plan_id, conversation_id)
        return stored

    def _list_plans_sync(self, user_id: str, kind: Optional[PlanKind]) -> List[StoredPlan]:
        with self._session_factory() as db:
            query = db.query(PlanRecord).filter(PlanRecord.user_id == user_id)
            if kind is not None:
                query = query.filter(PlanRecord.kind == kind.value)
            records = query.order_by(PlanRecord.created_at, PlanRecord.id).all()
            return [
                StoredPlan(
                    plan_id=record.id,
                    user_id=record.user_id,
                    conversation_id=record.conversation_id,
                    kind=record.kind,
                    name=record.name,
                    payload=dict(record.payload),
                )
                for record in records
            ]


def _ensure_user(db: Session, user_id: str) -> User:
    """Fetch or create the owning user row; must run first in the transaction."""
    user = db.get(User, user_id)
    if user is not None:
        return user
    user = User(id=user_id)
    db.add(user)
    try:
        db.flush()
    except IntegrityError:
        # Created concurrently by another turn.
        db.rollback()
        user = db.get(User, user_id)
        if user is None:
            raise
    return user


def _merge_session(db: Session, user_id: str, conversation_id: str, update: SessionUpdate) -> Conversation:
    row = db.get(Conversation, (user_id, conversation_id))
    if row is None:
        row = Conversation(user_id=user_id, conversation_id=conversation_id, document={})
        db.add(row)
    # Assign a fresh dict so the JSON column is flagged dirty.
    row.document = merge_document(dict(row.document or {}), update)
    return row


def _upsert_plan(db: Session, user_id: str, conversation_id: str, plan_id: str, plan: Plan) -> StoredPlan:
    stored = stored_plan(user_id, conversation_id, plan_id, plan)
    record = db.get(PlanRecord, (user_id, plan_id))
    if record is None:
        record = PlanRecord(user_id=user_id, id=plan_id, conversation_id=conversation_id)
        db.add(record)
    record.kind = stored.kind
    record.name = stored.name
    record.payload = stored.payload
    return stored
