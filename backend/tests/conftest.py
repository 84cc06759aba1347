"""Shared fixtures: sample plans, a scripted chat model and an in-memory database."""
from __future__ import annotations

import copy
from typing import Any, AsyncIterator, Dict, List, Sequence, Union

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from stoa.db.base import Base
from stoa.db.models import Conversation, PlanRecord, User  # noqa: F401 - registers tables
from stoa.llm.base import ChatModel, PromptMessage

HABIT_PLAN: Dict[str, Any] = {
    "name": "Morning Meditation",
    "goal": "Meditate every morning before work",
    "category": "mindfulness",
    "description": "Ten minutes of guided meditation right after waking up",
    "difficulty": "beginner",
    "high_level_schedule": {
        "milestones": [
            {
                "index": 0,
                "description": "Meditate seven days in a row",
                "completion_criteria": "streak_of_days",
                "completion_criteria_point": 7,
                "reward_message": "One full week, well done!",
            },
            {
                "index": 1,
                "description": "Keep the streak for two weeks",
                "completion_criteria": "streak_of_weeks",
                "completion_criteria_point": 2,
                "reward_message": "Two weeks strong!",
            },
            {
                "index": 2,
                "description": "Complete most sessions in the program",
                "completion_criteria": "percentage",
                "completion_criteria_point": 80.5,
                "reward_message": "The habit is part of your mornings now.",
            },
        ]
    },
    "low_level_schedule": {
        "span": "week",
        "span_value": 1,
        "habit_schedule": 28,
        "habit_repeat_count": 4,
        "program": [
            {
                "days_indexed": [
                    {
                        "index": 1,
                        "title": "Day 1",
                        "content": [{"step": "Sit quietly for 10 minutes", "clock": "07:00"}],
                        "reminders": [{"time": "06:55", "message": "Time to meditate"}],
                    }
                ],
                "weeks_indexed": [
                    {
                        "index": 1,
                        "title": "Week 1",
                        "description": "Build the routine",
                        "content": [{"step": "Review how the week went", "day": "Sunday"}],
                        "reminders": [],
                    }
                ],
                "months_indexed": [],
            }
        ],
    },
}

TASK_PLAN: Dict[str, Any] = {
    "name": "Kitchen Renovation",
    "goal": "Renovate the kitchen before the holidays",
    "category": "home",
    "description": "Collect quotes, pick materials and book the contractor",
    "task_schedule": {
        "steps": [
            {
                "index": 1,
                "title": "Get contractor quotes",
                "description": "Call three local contractors",
                "date": "2026-11-02",
                "time": "10:00",
                "reminders": [
                    {
                        "offset": {"unit": "days", "value": 1},
                        "time": "09:00",
                        "message": "Call the contractors tomorrow",
                    }
                ],
            },
            {
                "index": 2,
                "title": "Choose materials",
                "description": None,
                "date": None,
                "time": None,
                "reminders": [],
            },
        ]
    },
}


@pytest.fixture()
def habit_plan() -> Dict[str, Any]:
    return copy.deepcopy(HABIT_PLAN)


@pytest.fixture()
def task_plan() -> Dict[str, Any]:
    return copy.deepcopy(TASK_PLAN)


class ScriptedChatModel(ChatModel):
    """Replays canned replies in order; an Exception entry is raised instead."""

    def __init__(self, replies: Sequence[Union[str, Exception]], chunk_size: int = 7) -> None:
        self.replies: List[Union[str, Exception]] = list(replies)
        self.chunk_size = chunk_size
        self.calls: List[List[PromptMessage]] = []

    async def invoke(self, messages: List[PromptMessage]) -> str:
        self.calls.append(list(messages))
        return self._next_reply()

    async def stream(self, messages: List[PromptMessage]) -> AsyncIterator[str]:
        self.calls.append(list(messages))
        text = self._next_reply()
        for start in range(0, len(text), self.chunk_size):
            yield text[start : start + self.chunk_size]

    def _next_reply(self) -> str:
        assert self.replies, "ScriptedChatModel ran out of replies"
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture()
def sqlite_session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):  # pragma: no cover - sqlite setup
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    try:
        yield factory
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()
