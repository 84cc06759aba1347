"""Drive one conversation turn end to end.

read session -> call model -> classify -> [generate/validate plan] ->
commit session update and accepted plan together. The only suspension points are the
store and model calls, awaited in that order. Nothing is written until the
assistant reply is complete, so a failed or abandoned turn leaves the
stored session exactly as the previous turn committed it.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, replace
from typing import Any, AsyncIterator, Dict, List, Optional

from stoa.conversation.clarification import first_clarifying_question
from stoa.conversation.classifier import classify
from stoa.conversation.session import ChatMessage, ChatMode, ConversationPhase, SessionState, new_session
from stoa.conversation.state_machine import SessionStateMachine, TurnAction
from stoa.conversation.store import AcceptedPlan, TurnStore
from stoa.conversation.streaming import ChunkTee, StreamEvent
from stoa.core.context import get_request_id
from stoa.core.errors import UpstreamFailure, require_user_id
from stoa.llm import prompts
from stoa.llm.base import ChatModel, PromptMessage
from stoa.observability.metrics import log_metric
from stoa.observability.tracing import annotate, trace
from stoa.plans.extraction import extract_payload, has_generation_flag, strip_generation_flags
from stoa.plans.models import Plan, PlanKind
from stoa.plans.normalize import normalize_habit_payload
from stoa.plans.validator import ROOT_PATH, ValidationOutcome, Violation, plan_to_wire, validate_plan

logger = logging.getLogger(__name__)

PLAN_HEADINGS = {
    PlanKind.HABIT: "**Your Personalized Habit Program:**",
    PlanKind.TASK: "**Your Task Breakdown:**",
}
FALLBACK_TITLE_WORDS = 4


@dataclass(frozen=True)
class TurnResult:
    text: str
    state: SessionState
    action: TurnAction
    phase: ConversationPhase
    plan: Optional[Plan] = None
    plan_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "conversationId": self.state.conversation_id,
            "message": self.text,
            "title": self.state.title,
            "action": self.action.value,
            "phase": self.phase.value,
            "planId": self.plan_id,
            "plan": plan_to_wire(self.plan) if self.plan is not None else None,
        }


@dataclass(frozen=True)
class _Candidate:
    payload: Any
    display_text: str


class ConversationOrchestrator:
    def __init__(
        self,
        model: ChatModel,
        store: TurnStore,
        *,
        state_machine: Optional[SessionStateMachine] = None,
        title_max_length: int = 30,
    ) -> None:
        self._model = model
        self._store = store
        self._machine = state_machine or SessionStateMachine()
        self._title_max_length = title_max_length

    async def run_turn(
        self,
        user_id: Optional[str],
        conversation_id: str,
        user_input: str,
        chat_mode: Optional[ChatMode] = None,
    ) -> TurnResult:
        """Process one user message and return the assistant's reply."""
        uid = require_user_id(user_id)
        text = _clean_input(user_input)
        metadata = {"conversation_id": conversation_id, "streaming": False}
        with trace("conversation.turn", metadata=metadata, user_id=uid, request_id=get_request_id()) as span:
            state = await self._load(uid, conversation_id, chat_mode)
            history = self._build_prompt(state, text)
            with trace("model.invoke", metadata={**metadata, "chat_mode": state.chat_mode}):
                reply = await self._model.invoke(history)
            result = await self._complete_turn(uid, state, text, reply)
            annotate(span, {**metadata, **_outcome(result)})
        return result

    async def stream_turn(
        self,
        user_id: Optional[str],
        conversation_id: str,
        user_input: str,
        chat_mode: Optional[ChatMode] = None,
    ) -> AsyncIterator[StreamEvent]:
        """Like ``run_turn`` but yields reply chunks as the model produces them.

        Events: one ``start``, any number of ``chunk``, then one ``end``
        carrying the ``TurnResult``. If the consumer stops early nothing is
        committed.
        """
        uid = require_user_id(user_id)
        text = _clean_input(user_input)
        state = await self._load(uid, conversation_id, chat_mode)
        history = self._build_prompt(state, text)

        yield StreamEvent("start", {"conversationId": conversation_id})
        tee = ChunkTee(self._model.stream(history))
        async for chunk in tee:
            yield StreamEvent("chunk", {"text": chunk})

        metadata = {"conversation_id": conversation_id, "streaming": True}
        with trace("conversation.turn", metadata=metadata, user_id=uid, request_id=get_request_id()) as span:
            result = await self._complete_turn(uid, state, text, tee.text)
            annotate(span, {**metadata, **_outcome(result)})
        yield StreamEvent("end", {"fullText": result.text, **result.to_dict()}, result=result)

    async def _load(self, user_id: str, conversation_id: str, chat_mode: Optional[ChatMode]) -> SessionState:
        state = await self._store.get(user_id, conversation_id)
        if state is None:
            logger.info("Starting new conversation %s", conversation_id)
            return new_session(conversation_id, chat_mode or "task")
        if chat_mode is not None and chat_mode != state.chat_mode:
            state = replace(state, chat_mode=chat_mode)
        return state

    def _build_prompt(self, state: SessionState, user_input: str) -> List[PromptMessage]:
        history = [PromptMessage("system", prompts.chat_system_prompt(state.chat_mode))]
        history.extend(PromptMessage(message.role, message.content) for message in state.messages)
        history.append(PromptMessage("user", user_input))
        return history

    async def _complete_turn(self, user_id: str, state: SessionState, user_input: str, reply: str) -> TurnResult:
        kind = PlanKind(state.chat_mode)
        classification = classify(reply, state.chat_mode)
        log_metric("classifier.confidence", classification.confidence, {"intent": classification.intent})
        user_message = ChatMessage("user", user_input)

        candidate = await self._find_candidate(state, kind, user_message, reply)
        display_text = candidate.display_text if candidate else strip_generation_flags(reply)
        validation: Optional[ValidationOutcome] = None
        if candidate is not None:
            validation = self._validate(kind, candidate.payload, state.conversation_id)
            if validation.ok:
                display_text = _with_plan_block(display_text, kind, validation.plan)
            else:
                display_text = _with_question(display_text, first_clarifying_question(validation.paths, kind))

        title = state.title
        if title is None:
            title = await self._generate_title(state.chat_mode, user_input, display_text)

        transition = self._machine.advance(
            state,
            user_message,
            ChatMessage("assistant", display_text),
            classification,
            validation=validation,
            candidate=candidate.payload if candidate else None,
            title=title,
        )

        plan_id: Optional[str] = None
        accepted: Optional[AcceptedPlan] = None
        plan = validation.plan if validation is not None and validation.ok else None
        if plan is not None:
            plan_id = f"{state.conversation_id}:{len(state.messages)}"
            accepted = AcceptedPlan(plan_id, plan)
        await self._store.commit_turn(user_id, state.conversation_id, transition.update, accepted)

        logger.info(
            "Turn committed (conversation=%s, phase=%s, action=%s)",
            state.conversation_id,
            transition.phase.value,
            transition.action.value,
        )
        return TurnResult(
            text=display_text,
            state=transition.state,
            action=transition.action,
            phase=transition.phase,
            plan=plan,
            plan_id=plan_id,
        )

    async def _find_candidate(
        self,
        state: SessionState,
        kind: PlanKind,
        user_message: ChatMessage,
        reply: str,
    ) -> Optional[_Candidate]:
        """Return the plan payload proposed this turn, if any.

        Either the reply embeds JSON directly, or it carries the generation
        flag and a second model call produces the JSON.
        """
        embedded = extract_payload(reply)
        if embedded is not None:
            return _Candidate(embedded.payload, strip_generation_flags(embedded.text_without_payload))
        if not has_generation_flag(reply, kind):
            return None

        display_text = strip_generation_flags(reply)
        transcript = prompts.conversation_transcript(
            [*state.messages, user_message, ChatMessage("assistant", display_text)]
        )
        generation_prompt = [
            PromptMessage("system", prompts.generation_system_prompt(kind)),
            PromptMessage("user", f"Analyze this conversation and generate the JSON:\n\n{transcript}"),
        ]
        with trace("plan.generate", metadata={"kind": kind.value, "conversation_id": state.conversation_id}):
            generated = await self._model.invoke(generation_prompt)
        extracted = extract_payload(generated)
        if extracted is None:
            logger.warning("Plan generation returned no JSON (conversation=%s)", state.conversation_id)
            return _Candidate(None, display_text)
        return _Candidate(extracted.payload, display_text)

    def _validate(self, kind: PlanKind, payload: Any, conversation_id: str) -> ValidationOutcome:
        metadata = {"kind": kind.value, "conversation_id": conversation_id}
        with trace("plan.validate", metadata=metadata):
            if payload is None:
                outcome = ValidationOutcome(kind=kind, violations=[Violation(ROOT_PATH, "no plan JSON was produced")])
            else:
                candidate = normalize_habit_payload(payload) if kind is PlanKind.HABIT else payload
                outcome = validate_plan(kind, candidate)
        log_metric("plan.validation.passed", 1 if outcome.ok else 0, metadata)
        log_metric("plan.validation.violations", len(outcome.violations), metadata)
        if not outcome.ok:
            logger.debug("Plan violations: %s", [violation.to_dict() for violation in outcome.violations])
        return outcome

    async def _generate_title(self, chat_mode: str, user_input: str, assistant_text: str) -> str:
        prompt = [PromptMessage("user", prompts.title_prompt(chat_mode, user_input, assistant_text))]
        try:
            raw = await self._model.invoke(prompt)
        except UpstreamFailure:
            logger.warning("Title generation failed; using fallback title", exc_info=True)
            return fallback_title(user_input)
        title = raw.replace('"', "").replace("'", "").strip()
        if not title:
            return fallback_title(user_input)
        if len(title) > self._title_max_length:
            title = title[: self._title_max_length - 3] + "..."
        return title


def fallback_title(user_input: str) -> str:
    words = user_input.split()
    title = " ".join(words[:FALLBACK_TITLE_WORDS])
    return title + "..." if len(words) > FALLBACK_TITLE_WORDS else title


def _outcome(result: TurnResult) -> Dict[str, Any]:
    return {"phase": result.phase.value, "action": result.action.value, "plan_id": result.plan_id}


def _clean_input(user_input: str) -> str:
    text = (user_input or "").strip()
    if not text:
        raise ValueError("user_input must not be empty")
    return text


def _with_plan_block(text: str, kind: PlanKind, plan: Optional[Plan]) -> str:
    if plan is None:
        return text
    block = json.dumps(plan_to_wire(plan), indent=2, ensure_ascii=False)
    return f"{text}\n\n{PLAN_HEADINGS[kind]}\n```json\n{block}\n```".strip()


def _with_question(text: str, question: Optional[str]) -> str:
    if not question or question in text:
        return text
    return f"{text}\n\n{question}".strip()
