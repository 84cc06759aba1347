from __future__ import annotations

import pytest

from stoa.plans.consistency import (
    DAYS_PER_SPAN,
    SCHEDULE_TOLERANCE_DAYS,
    check_schedule,
    expected_days,
    is_consistent,
)


@pytest.mark.parametrize(
    ("span", "span_value", "repeat_count", "expected"),
    [
        ("day", 1, 30, 30),
        ("week", 2, 3, 42),
        ("month", 1, 3, 90),
        ("year", 1, 1, 365),
    ],
)
def test_expected_days_uses_fixed_span_lengths(span, span_value, repeat_count, expected) -> None:
    assert expected_days(span, span_value, repeat_count) == expected


@pytest.mark.parametrize("span", sorted(DAYS_PER_SPAN))
@pytest.mark.parametrize("span_value", [1, 2, 5])
@pytest.mark.parametrize("repeat_count", [1, 4, 12])
def test_expected_days_is_deterministic_and_reflexive(span, span_value, repeat_count) -> None:
    first = expected_days(span, span_value, repeat_count)
    second = expected_days(span, span_value, repeat_count)

    assert first == second
    assert is_consistent(first, second)


def test_expected_days_rejects_unknown_span() -> None:
    with pytest.raises(ValueError):
        expected_days("fortnight", 1, 1)


def test_four_weekly_repeats_of_28_days_is_consistent() -> None:
    assert check_schedule("week", 1, 28, 4) is None


def test_four_weekly_repeats_of_20_days_is_inconsistent() -> None:
    problem = check_schedule("week", 1, 20, 4)

    assert problem is not None
    assert "expected 28 days" in problem
    assert "got 20" in problem


def test_tolerance_boundary() -> None:
    assert check_schedule("week", 1, 28 + SCHEDULE_TOLERANCE_DAYS, 4) is None
    assert check_schedule("week", 1, 28 - SCHEDULE_TOLERANCE_DAYS, 4) is None
    assert check_schedule("week", 1, 28 + SCHEDULE_TOLERANCE_DAYS + 1, 4) is not None


def test_month_approximation_is_kept() -> None:
    # Three calendar months starting in January are 90 days; the 30-day month matches exactly.
    assert check_schedule("month", 1, 90, 3) is None
    assert check_schedule("month", 1, 92, 3) is None
    assert check_schedule("month", 1, 96, 3) is not None


def test_both_null_is_an_infinite_habit() -> None:
    assert check_schedule("year", 3, None, None) is None


@pytest.mark.parametrize(("habit_schedule", "repeat_count"), [(None, 4), (28, None)])
def test_exactly_one_null_is_rejected(habit_schedule, repeat_count) -> None:
    problem = check_schedule("week", 1, habit_schedule, repeat_count)

    assert problem is not None
    assert "infinite" in problem
