from __future__ import annotations

import pytest

from stoa.conversation.classifier import (
    CLARIFYING_CONFIDENCE,
    DEFAULT_CONFIDENCE,
    Classification,
    classify,
)


def test_question_in_habit_mode_is_clarifying() -> None:
    result = classify("What time works best for you?", "habit")

    assert result == Classification(intent="clarifying", confidence=0.3)


@pytest.mark.parametrize(
    "text",
    [
        "Tell me when you usually wake up.",
        "Let me know how long you want to keep going.",
        "Share what motivates you.",
    ],
)
def test_interrogative_keywords_without_question_mark(text) -> None:
    assert classify(text, "task").intent == "clarifying"


def test_show_counts_as_a_question() -> None:
    # "show" contains "how"; substring matching is the documented behaviour.
    result = classify("I will show you the plan now.", "task")

    assert result.intent == "clarifying"
    assert result.confidence == CLARIFYING_CONFIDENCE


@pytest.mark.parametrize(("chat_mode", "intent"), [("habit", "habit"), ("task", "task"), ("other", "task")])
def test_statements_follow_chat_mode(chat_mode, intent) -> None:
    result = classify("Great, I'm creating your plan.", chat_mode)

    assert result.intent == intent
    assert result.confidence == DEFAULT_CONFIDENCE


def test_keyword_match_is_case_insensitive() -> None:
    assert classify("WHEN suits you", "habit").intent == "clarifying"
