"""Turn validation paths into a follow-up question for the user."""
from __future__ import annotations

from typing import Dict, Iterable, Optional

from stoa.plans.models import PlanKind

HABIT_QUESTIONS: Dict[str, str] = {
    "name": "What would you like to name this habit?",
    "goal": "What's your main goal with this habit?",
    "category": "What category does this habit fall into? (e.g., health, productivity, fitness, mindfulness)",
    "description": "Can you describe what this habit involves in more detail?",
    "difficulty": "What's your experience level with this type of habit? (beginner, intermediate, or advanced)",
    "high_level_schedule.milestones": "What milestones would you like to track? (e.g., 7 days, 30 days, 90 days)",
    "low_level_schedule.span": "How often do you want to do this habit? (daily, weekly, monthly, or yearly)",
    "low_level_schedule.span_value": "How many times per period? (e.g., 1 for daily, 2 for every 2 weeks)",
    "low_level_schedule.habit_repeat_count": "How many times should this habit program repeat? (or leave infinite)",
    "low_level_schedule.habit_schedule": "How long should the whole habit program run, in days? (or leave infinite)",
    "low_level_schedule.program": "What specific activities or steps should be included in this habit?",
}

TASK_QUESTIONS: Dict[str, str] = {
    "name": "What would you like to name this task?",
    "goal": "What's your main goal with this task?",
    "category": "What category does this task fall into?",
    "description": "Can you describe what this task involves in more detail?",
    "task_schedule.steps": "What are the steps needed to complete this task?",
}

# A bare low_level_schedule path is the cross-field schedule check.
SCHEDULE_LENGTH_QUESTION = "How long should this habit run overall, or should it continue indefinitely?"
GENERAL_QUESTION = "Could you tell me a bit more about what you'd like to plan?"

# Name under which a whole-plan violation is recorded in missingFields.
ROOT_FIELD = "plan"


def clarifying_question(path: str, kind: PlanKind) -> str:
    if kind is PlanKind.TASK:
        return _task_question(path)
    return _habit_question(path)


def first_clarifying_question(paths: Iterable[str], kind: PlanKind) -> Optional[str]:
    for path in paths:
        return clarifying_question(path, kind)
    return None


def _habit_question(path: str) -> str:
    if path == "low_level_schedule":
        return SCHEDULE_LENGTH_QUESTION
    return _lookup(path, HABIT_QUESTIONS)


def _task_question(path: str) -> str:
    if "steps" in path:
        if path.endswith(".date"):
            return "When should this step be completed? (provide a date in YYYY-MM-DD format, or leave blank if no specific date)"
        if path.endswith(".time"):
            return "What time should this step be completed? (provide time in HH:MM format)"
        if path.endswith(".title"):
            return "What should this step be called?"
        if path.endswith(".reminders"):
            return "Which date should this step happen on, so I can set reminders for it?"
        if path == "task_schedule.steps":
            return TASK_QUESTIONS["task_schedule.steps"]
        return "Can you provide more details about this step?"
    return _lookup(path, TASK_QUESTIONS)


def _lookup(path: str, questions: Dict[str, str]) -> str:
    if path in ("", ROOT_FIELD):
        return GENERAL_QUESTION
    for key, question in questions.items():
        if path == key or path.startswith(f"{key}."):
            return question
    field_name = path.rsplit(".", 1)[-1]
    return f"Could you provide more information about {field_name.replace('_', ' ')}?"
