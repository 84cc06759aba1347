from __future__ import annotations

import json

from stoa.plans.extraction import (
    extract_payload,
    has_generation_flag,
    strip_generation_flags,
)
from stoa.plans.models import PlanKind
from stoa.plans.normalize import DEFAULT_STEP, normalize_habit_payload


def test_fenced_json_block_is_extracted() -> None:
    text = 'Here is your plan:\n```json\n{"name": "Read daily"}\n```\nEnjoy!'

    extracted = extract_payload(text)

    assert extracted is not None
    assert extracted.payload == {"name": "Read daily"}
    assert extracted.text_without_payload == "Here is your plan:\n\nEnjoy!"


def test_bare_json_object_is_extracted() -> None:
    extracted = extract_payload('Plan: {"name": "Read", "goal": "More books"}')

    assert extracted.payload == {"name": "Read", "goal": "More books"}
    assert extracted.text_without_payload == "Plan:"


def test_fenced_block_wins_over_surrounding_braces() -> None:
    text = 'Use {curly} words.\n```json\n{"name": "Walk"}\n```'

    assert extract_payload(text).payload == {"name": "Walk"}


def test_unparsable_json_is_plain_text() -> None:
    assert extract_payload("Use the {placeholder} syntax") is None
    assert extract_payload("") is None
    assert extract_payload("No JSON here.") is None


def test_generation_flags_are_kind_specific() -> None:
    text = "Creating your habit now! [HABITGEN=True]"

    assert has_generation_flag(text, PlanKind.HABIT)
    assert not has_generation_flag(text, PlanKind.TASK)
    assert has_generation_flag("ok [taskgen = true]", PlanKind.TASK)


def test_strip_generation_flags() -> None:
    assert strip_generation_flags("Creating your task! [TASKGEN=True]") == "Creating your task!"
    assert strip_generation_flags("[HABITGEN=True]") == ""


def test_normalize_repairs_common_shape_mistakes(habit_plan) -> None:
    habit_plan["difficulty"] = "Easy"
    habit_plan["high_level_schedule"] = habit_plan["high_level_schedule"]["milestones"]
    program = habit_plan["low_level_schedule"]["program"][0]
    program["days_indexed"] = [1, {"index": 2, "title": "Day 2", "content": ["Breathe"], "reminders": []}]
    program["weeks_indexed"] = [1]
    program["months_indexed"] = [2]
    habit_plan["low_level_schedule"]["program"] = program
    before = json.dumps(habit_plan, sort_keys=True)

    normalized = normalize_habit_payload(habit_plan)

    assert json.dumps(habit_plan, sort_keys=True) == before
    assert normalized["difficulty"] == "beginner"
    assert len(normalized["high_level_schedule"]["milestones"]) == 3
    entry = normalized["low_level_schedule"]["program"][0]
    assert entry["days_indexed"][0] == {
        "index": 1,
        "title": "Day 1",
        "content": [{"step": DEFAULT_STEP, "clock": None}],
        "reminders": [],
    }
    assert entry["days_indexed"][1]["content"] == [{"step": "Breathe", "clock": None}]
    assert entry["weeks_indexed"][0]["content"] == [{"step": DEFAULT_STEP, "day": "Monday"}]
    assert entry["months_indexed"][0]["title"] == "Month 2"


def test_normalize_leaves_unrepairable_values_alone() -> None:
    assert normalize_habit_payload(["not", "a", "dict"]) == ["not", "a", "dict"]
    assert normalize_habit_payload({"difficulty": "legendary"}) == {"difficulty": "legendary"}
