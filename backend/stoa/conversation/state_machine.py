"""Turn-by-turn transitions of a planning conversation.

    Clarifying --(candidate plan)--> PlanProposed --(valid)--> Accepted
        ^                                 |
        +------------(invalid)------------+

There is no terminal state; after Accepted the next turn starts clarifying
again. The machine is pure: it returns the ``SessionUpdate`` to merge-write
and the state the store will hold afterwards, and never touches I/O.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from stoa.conversation.clarification import ROOT_FIELD
from stoa.conversation.classifier import Classification
from stoa.conversation.session import (
    DELETE,
    PLAN_FIELDS,
    ChatMessage,
    ConversationPhase,
    SessionState,
    SessionUpdate,
    Set,
)
from stoa.plans.validator import ValidationOutcome

logger = logging.getLogger(__name__)


class TurnAction(str, Enum):
    CONTINUE = "continue"
    ACCEPT_PLAN = "accept_plan"
    REJECT_PLAN = "reject_plan"


@dataclass(frozen=True)
class Transition:
    update: SessionUpdate
    state: SessionState
    phase: ConversationPhase
    action: TurnAction


class SessionStateMachine:
    """Decide the next session state from one completed turn."""

    def advance(
        self,
        state: SessionState,
        user_message: ChatMessage,
        assistant_message: ChatMessage,
        classification: Classification,
        validation: Optional[ValidationOutcome] = None,
        candidate: Any = None,
        title: Optional[str] = None,
    ) -> Transition:
        """Fold a turn into ``state``.

        ``validation`` is None when the assistant produced no structured
        payload. ``candidate`` is the raw payload that was validated and is
        kept as the draft when validation fails.
        """
        messages = [*state.messages, user_message, assistant_message]
        common: Dict[str, Any] = {
            "messages": Set(messages),
            "chat_mode": Set(state.chat_mode),
        }
        if title is not None and title != state.title:
            common["title"] = Set(title)

        if validation is not None and validation.ok:
            update = SessionUpdate(**common, **{name: DELETE for name in PLAN_FIELDS})
            phase = ConversationPhase.ACCEPTED
            action = TurnAction.ACCEPT_PLAN
        elif validation is not None:
            missing = missing_fields_from(validation)
            update = SessionUpdate(
                **common,
                intent=Set("clarifying"),
                confidence=Set(classification.confidence),
                missing_fields=Set(missing),
                extracted_data=Set(dict(candidate)) if isinstance(candidate, dict) else DELETE,
            )
            phase = ConversationPhase.CLARIFYING
            action = TurnAction.REJECT_PLAN
            logger.info(
                "Plan candidate rejected (conversation=%s, kind=%s, missing=%s)",
                state.conversation_id,
                validation.kind.value,
                missing,
            )
        else:
            update = SessionUpdate(
                **common,
                intent=Set(classification.intent),
                confidence=Set(classification.confidence),
            )
            if classification.intent == "clarifying":
                phase = ConversationPhase.CLARIFYING
            else:
                phase = ConversationPhase.PLAN_PROPOSED
            action = TurnAction.CONTINUE

        return Transition(update=update, state=state.apply(update), phase=phase, action=action)


def missing_fields_from(validation: ValidationOutcome) -> List[str]:
    return [path or ROOT_FIELD for path in validation.paths]
