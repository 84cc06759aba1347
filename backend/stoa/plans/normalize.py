"""Repairs for common shape mistakes in model-generated habit JSON.

Applied to a deep copy before validation; the caller's payload is untouched.
Anything this module cannot confidently repair is left as-is for the
validator to report.
"""
from __future__ import annotations

import copy
from typing import Any, Dict

DIFFICULTY_ALIASES = {
    "easy": "beginner",
    "simple": "beginner",
    "medium": "intermediate",
    "moderate": "intermediate",
    "hard": "advanced",
    "difficult": "advanced",
    "expert": "advanced",
}

DEFAULT_STEP = "Complete habit activity"


def normalize_habit_payload(payload: Any) -> Any:
    if not isinstance(payload, dict):
        return payload
    normalized = copy.deepcopy(payload)

    difficulty = normalized.get("difficulty")
    if isinstance(difficulty, str):
        lowered = difficulty.strip().lower()
        normalized["difficulty"] = DIFFICULTY_ALIASES.get(lowered, lowered)

    high_level = normalized.get("high_level_schedule")
    if isinstance(high_level, list):
        normalized["high_level_schedule"] = {"milestones": high_level}

    low_level = normalized.get("low_level_schedule")
    if isinstance(low_level, dict):
        program = low_level.get("program")
        if isinstance(program, dict):
            program = [program]
        if isinstance(program, list):
            low_level["program"] = [_normalize_program_entry(entry) for entry in program]

    return normalized


def _normalize_program_entry(entry: Any) -> Any:
    if not isinstance(entry, dict):
        return entry
    if isinstance(entry.get("days_indexed"), list):
        entry["days_indexed"] = [_normalize_day(item) for item in entry["days_indexed"]]
    if isinstance(entry.get("weeks_indexed"), list):
        entry["weeks_indexed"] = [_normalize_week(item) for item in entry["weeks_indexed"]]
    if isinstance(entry.get("months_indexed"), list):
        entry["months_indexed"] = [_normalize_month(item) for item in entry["months_indexed"]]
    return entry


def _normalize_day(item: Any) -> Any:
    if _is_bare_index(item):
        return {
            "index": item,
            "title": f"Day {item}",
            "content": [{"step": DEFAULT_STEP, "clock": None}],
            "reminders": [],
        }
    return _normalize_content(item, {"clock": None})


def _normalize_week(item: Any) -> Any:
    if _is_bare_index(item):
        return {
            "index": item,
            "title": f"Week {item}",
            "description": f"Week {item} activities",
            "content": [{"step": DEFAULT_STEP, "day": "Monday"}],
            "reminders": [],
        }
    return _normalize_content(item, {"day": "Monday"})


def _normalize_month(item: Any) -> Any:
    if _is_bare_index(item):
        return {
            "index": item,
            "title": f"Month {item}",
            "description": f"Month {item} activities",
            "content": [{"step": DEFAULT_STEP, "day": "1"}],
            "reminders": [],
        }
    return _normalize_content(item, {"day": "1"})


def _normalize_content(item: Any, step_defaults: Dict[str, Any]) -> Any:
    if isinstance(item, dict) and isinstance(item.get("content"), list):
        item["content"] = [
            {"step": step, **step_defaults} if isinstance(step, str) else step for step in item["content"]
        ]
    return item


def _is_bare_index(item: Any) -> bool:
    return isinstance(item, int) and not isinstance(item, bool)
