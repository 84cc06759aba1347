"""Coarse intent/confidence heuristic for assistant replies.

This only feeds the session transition guard. It is substring matching, not
language understanding: "show" contains "how" and counts as a question.
Do not tighten the rules without migrating stored confidence values.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

Intent = Literal["unknown", "task", "habit", "clarifying"]

DEFAULT_CONFIDENCE = 0.5
CLARIFYING_CONFIDENCE = 0.3
INTERROGATIVE_KEYWORDS = ("what", "when", "how")


@dataclass(frozen=True)
class Classification:
    intent: Intent
    confidence: float


def classify(assistant_text: str, chat_mode: str) -> Classification:
    if _looks_like_question(assistant_text):
        return Classification(intent="clarifying", confidence=CLARIFYING_CONFIDENCE)
    intent: Intent = "habit" if chat_mode == "habit" else "task"
    return Classification(intent=intent, confidence=DEFAULT_CONFIDENCE)


def _looks_like_question(text: str) -> bool:
    if "?" in text:
        return True
    lowered = text.lower()
    return any(keyword in lowered for keyword in INTERROGATIVE_KEYWORDS)
