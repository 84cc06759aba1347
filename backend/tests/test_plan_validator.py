from __future__ import annotations

import json

import pytest

from stoa.plans.models import HabitPlan, PlanKind, TaskPlan
from stoa.plans.validator import (
    ViolationKind,
    format_path,
    plan_to_wire,
    validate_habit,
    validate_plan,
    validate_task,
)

REMINDERS_PATH = "task_schedule.steps.0.reminders"


def _consistency_paths(outcome):
    return [v.path for v in outcome.violations if v.kind is ViolationKind.CONSISTENCY]


def test_valid_habit_plan_is_accepted(habit_plan) -> None:
    outcome = validate_habit(habit_plan)

    assert outcome.ok
    assert outcome.violations == []
    assert isinstance(outcome.plan, HabitPlan)
    assert outcome.plan.low_level_schedule.habit_schedule == 28
    assert outcome.plan.kind is PlanKind.HABIT


def test_valid_task_plan_is_accepted(task_plan) -> None:
    outcome = validate_task(task_plan)

    assert outcome.ok
    assert isinstance(outcome.plan, TaskPlan)
    assert outcome.plan.task_schedule.steps[0].reminders[0].offset.unit == "days"


def test_inconsistent_schedule_is_a_consistency_violation(habit_plan) -> None:
    habit_plan["low_level_schedule"]["habit_schedule"] = 20

    outcome = validate_habit(habit_plan)

    assert not outcome.ok
    assert outcome.plan is None
    assert _consistency_paths(outcome) == ["low_level_schedule"]
    assert "expected 28 days" in outcome.violations[0].message


@pytest.mark.parametrize("span", ["day", "week", "month", "year"])
@pytest.mark.parametrize("span_value", [1, 3])
def test_infinite_habit_validates_for_any_span(habit_plan, span, span_value) -> None:
    schedule = habit_plan["low_level_schedule"]
    schedule.update(span=span, span_value=span_value, habit_schedule=None, habit_repeat_count=None)

    outcome = validate_habit(habit_plan)

    assert outcome.ok
    assert outcome.plan.low_level_schedule.is_infinite


@pytest.mark.parametrize("missing", ["habit_schedule", "habit_repeat_count"])
def test_exactly_one_null_schedule_value_fails(habit_plan, missing) -> None:
    habit_plan["low_level_schedule"][missing] = None

    outcome = validate_habit(habit_plan)

    assert not outcome.ok
    assert _consistency_paths(outcome) == ["low_level_schedule"]


def test_reminders_without_date_fail_at_reminders_path(task_plan) -> None:
    step = task_plan["task_schedule"]["steps"][1]
    step["reminders"] = [{"offset": {"unit": "days", "value": 1}, "time": None, "message": None}]

    outcome = validate_task(task_plan)

    assert not outcome.ok
    assert [v.path for v in outcome.violations] == ["task_schedule.steps.1.reminders"]
    assert outcome.violations[0].kind is ViolationKind.CONSISTENCY


def test_bare_offset_reminder_without_date_fails(task_plan) -> None:
    step = task_plan["task_schedule"]["steps"][0]
    step.update(date=None, time=None, reminders=[{"offset": {"unit": "days", "value": 1}}])

    outcome = validate_task(task_plan)

    assert not outcome.ok
    assert all(path.startswith(REMINDERS_PATH) for path in outcome.paths)


def test_time_without_date_fails(task_plan) -> None:
    task_plan["task_schedule"]["steps"][1]["time"] = "18:30"

    outcome = validate_task(task_plan)

    assert [v.path for v in outcome.violations] == ["task_schedule.steps.1.time"]
    assert outcome.violations[0].kind is ViolationKind.CONSISTENCY


def test_time_and_reminders_are_permitted_with_date(task_plan) -> None:
    step = task_plan["task_schedule"]["steps"][1]
    step.update(
        date="2026-12-01",
        time="08:15",
        reminders=[{"offset": {"unit": "weeks", "value": 1}, "time": None, "message": "Next week"}],
    )

    assert validate_task(task_plan).ok


def test_independent_refinements_are_all_reported(task_plan) -> None:
    step = task_plan["task_schedule"]["steps"][1]
    step["time"] = "18:30"
    step["reminders"] = [{"offset": {"unit": "days", "value": 2}, "time": None, "message": None}]

    outcome = validate_task(task_plan)

    assert sorted(_consistency_paths(outcome)) == [
        "task_schedule.steps.1.reminders",
        "task_schedule.steps.1.time",
    ]


def test_malformed_date_suppresses_dependent_refinements(task_plan) -> None:
    step = task_plan["task_schedule"]["steps"][1]
    step.update(date="next tuesday", time="18:30")

    outcome = validate_task(task_plan)

    assert outcome.paths == ["task_schedule.steps.1.date"]
    assert _consistency_paths(outcome) == []


def test_structural_violations_are_collected_with_paths(habit_plan) -> None:
    habit_plan["difficulty"] = "legendary"
    habit_plan["low_level_schedule"]["span_value"] = "1"
    habit_plan["low_level_schedule"]["program"][0]["days_indexed"][0]["content"][0]["clock"] = "7am"

    outcome = validate_habit(habit_plan)

    assert not outcome.ok
    assert set(outcome.paths) == {
        "difficulty",
        "low_level_schedule.span_value",
        "low_level_schedule.program.0.days_indexed.0.content.0.clock",
    }
    assert all(v.kind is ViolationKind.STRUCTURAL for v in outcome.violations)


def test_non_finite_numbers_are_rejected(habit_plan) -> None:
    raw = json.dumps(habit_plan).replace('"completion_criteria_point": 80.5', '"completion_criteria_point": NaN')
    candidate = json.loads(raw)

    outcome = validate_habit(candidate)

    assert not outcome.ok
    assert outcome.paths == ["high_level_schedule.milestones.2.completion_criteria_point"]
    assert outcome.violations[0].kind is ViolationKind.STRUCTURAL

    candidate["high_level_schedule"]["milestones"][2]["completion_criteria_point"] = float("inf")
    assert not validate_habit(candidate).ok


def test_missing_required_fields_are_reported(habit_plan) -> None:
    del habit_plan["goal"]
    habit_plan["high_level_schedule"] = {"milestones": []}

    outcome = validate_habit(habit_plan)

    assert set(outcome.paths) == {"goal", "high_level_schedule.milestones"}


def test_non_object_candidate_reports_root_violation() -> None:
    outcome = validate_plan("task", ["not", "a", "plan"])

    assert not outcome.ok
    assert outcome.paths == [""]
    assert outcome.kind is PlanKind.TASK


def test_unknown_plan_kind_raises() -> None:
    with pytest.raises(ValueError):
        validate_plan("routine", {})


@pytest.mark.parametrize("fixture_name", ["habit_plan", "task_plan"])
def test_wire_encoding_revalidates_identically(request, fixture_name) -> None:
    payload = request.getfixturevalue(fixture_name)
    kind = PlanKind.HABIT if fixture_name == "habit_plan" else PlanKind.TASK

    first = validate_plan(kind, payload)
    wire = plan_to_wire(first.plan)
    second = validate_plan(kind, wire)

    assert second.ok
    assert plan_to_wire(second.plan) == wire


def test_format_path_joins_indices() -> None:
    assert format_path(("task_schedule", "steps", 0, "time")) == "task_schedule.steps.0.time"
    assert format_path(()) == ""
