"""Habit schedule consistency checks.

``habit_schedule`` is the total programme length in days and must agree with
``habit_repeat_count x span_value x days-per-span``. Months count as 30 days
and years as 365; the tolerance absorbs that approximation. Stored plans
were validated with these constants, so they must not be made
calendar-accurate.
"""
from __future__ import annotations

from typing import Optional

DAYS_PER_SPAN = {
    "day": 1,
    "week": 7,
    "month": 30,
    "year": 365,
}

SCHEDULE_TOLERANCE_DAYS = 5


def expected_days(span: str, span_value: int, repeat_count: int) -> int:
    """Total days covered by ``repeat_count`` repetitions of ``span_value`` spans."""
    try:
        days_per_span = DAYS_PER_SPAN[span]
    except KeyError as exc:
        raise ValueError(f"Unknown span {span!r}") from exc
    return repeat_count * span_value * days_per_span


def is_consistent(habit_schedule: int, expected: int) -> bool:
    return abs(habit_schedule - expected) <= SCHEDULE_TOLERANCE_DAYS


def check_schedule(
    span: str,
    span_value: int,
    habit_schedule: Optional[int],
    habit_repeat_count: Optional[int],
) -> Optional[str]:
    """Return a description of the inconsistency, or None when the schedule is valid.

    Both values null means an infinite habit. Exactly one null is rejected.
    """
    if habit_schedule is None and habit_repeat_count is None:
        return None
    if habit_schedule is None:
        return "habit_schedule must be set when habit_repeat_count is set (use null for both to make the habit infinite)"
    if habit_repeat_count is None:
        return "habit_repeat_count must be set when habit_schedule is set (use null for both to make the habit infinite)"

    expected = expected_days(span, span_value, habit_repeat_count)
    if is_consistent(habit_schedule, expected):
        return None
    return (
        "habit_schedule must be calculated from habit_repeat_count × span × span_value (converted to days): "
        f"expected {expected} days (±{SCHEDULE_TOLERANCE_DAYS}), got {habit_schedule}"
    )
