"""Typed habit and task plan models.

These mirror the wire JSON the assistant emits. Field names are the wire
names (snake_case), nullable fields are still required keys, and primitive
types are strict so that e.g. ``"5"`` is not accepted where an integer is
expected. Cross-field refinements live on the models that own the fields
they compare; see ``stoa.plans.validator`` for how errors are reported.

A refinement is a ``mode="after"`` model validator, so it only runs once
every field of its model parsed. The schedule check on
``LowLevelSchedule`` is therefore not reported while any part of
``program`` is malformed, even though it never reads ``program``; fix the
structural errors and the consistency error surfaces on the next attempt.
NaN and infinite numbers are rejected.
"""
from __future__ import annotations

from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    StrictStr,
    StringConstraints,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic_core import PydanticCustomError

from stoa.plans.consistency import check_schedule

TIME_PATTERN = r"^([0-1][0-9]|2[0-3]):[0-5][0-9]$"
DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"

ClockTime = Annotated[StrictStr, StringConstraints(pattern=TIME_PATTERN)]
CalendarDate = Annotated[StrictStr, StringConstraints(pattern=DATE_PATTERN)]
NonEmptyStr = Annotated[StrictStr, StringConstraints(min_length=1)]
PositiveInt = Annotated[StrictInt, Field(gt=0)]
# Strict floats still accept integers, so whole-number points keep validating.
Number = Annotated[StrictFloat, Field(allow_inf_nan=False)]

Difficulty = Literal["beginner", "intermediate", "advanced"]
CompletionCriteria = Literal["streak_of_days", "streak_of_weeks", "streak_of_months", "percentage"]
Span = Literal["day", "week", "month", "year"]
Weekday = Literal["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
MonthDay = Literal[
    "start_of_month",
    "1", "2", "3", "4", "5", "6", "7", "8", "9", "10",
    "11", "12", "13", "14", "15", "16", "17", "18", "19", "20",
    "21", "22", "23", "24", "25", "26", "27", "28",
    "end_of_month",
]
OffsetUnit = Literal["days", "weeks", "months"]

# Error types raised by refinements; everything else pydantic reports is structural.
SCHEDULE_INCONSISTENT = "schedule_inconsistent"
REMINDERS_REQUIRE_DATE = "reminders_require_date"
TIME_REQUIRES_DATE = "time_requires_date"
REFINEMENT_ERROR_TYPES = frozenset({SCHEDULE_INCONSISTENT, REMINDERS_REQUIRE_DATE, TIME_REQUIRES_DATE})


class PlanKind(str, Enum):
    HABIT = "habit"
    TASK = "task"


class _WireModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


# --- Habit: high-level schedule -------------------------------------------------


class Milestone(_WireModel):
    index: Annotated[StrictInt, Field(ge=0)]
    description: StrictStr
    completion_criteria: CompletionCriteria
    completion_criteria_point: Number
    reward_message: StrictStr


class HighLevelSchedule(_WireModel):
    milestones: Annotated[List[Milestone], Field(min_length=1)]


# --- Habit: low-level schedule --------------------------------------------------


class Reminder(_WireModel):
    time: Optional[ClockTime]
    message: Optional[StrictStr]


class DayStep(_WireModel):
    step: StrictStr
    clock: Optional[ClockTime]


class WeekStep(_WireModel):
    step: StrictStr
    day: Weekday


class MonthStep(_WireModel):
    step: StrictStr
    day: MonthDay


class DayEntry(_WireModel):
    index: Annotated[StrictInt, Field(ge=1)]
    title: StrictStr
    content: Annotated[List[DayStep], Field(min_length=1)]
    reminders: List[Reminder]


class WeekEntry(_WireModel):
    index: Annotated[StrictInt, Field(ge=1)]
    title: StrictStr
    description: StrictStr
    content: Annotated[List[WeekStep], Field(min_length=1)]
    reminders: List[Reminder]


class MonthEntry(_WireModel):
    index: Annotated[StrictInt, Field(ge=1)]
    title: StrictStr
    description: StrictStr
    content: Annotated[List[MonthStep], Field(min_length=1)]
    reminders: List[Reminder]


class ProgramEntry(_WireModel):
    days_indexed: List[DayEntry]
    weeks_indexed: List[WeekEntry]
    months_indexed: List[MonthEntry]


class LowLevelSchedule(_WireModel):
    span: Span
    span_value: PositiveInt
    habit_schedule: Optional[PositiveInt]
    habit_repeat_count: Optional[PositiveInt]
    program: Annotated[List[ProgramEntry], Field(min_length=1)]

    @model_validator(mode="after")
    def _schedule_matches_repeat_count(self) -> "LowLevelSchedule":
        problem = check_schedule(self.span, self.span_value, self.habit_schedule, self.habit_repeat_count)
        if problem:
            raise PydanticCustomError(SCHEDULE_INCONSISTENT, problem)
        return self

    @property
    def is_infinite(self) -> bool:
        return self.habit_schedule is None and self.habit_repeat_count is None


class HabitPlan(_WireModel):
    name: NonEmptyStr
    goal: NonEmptyStr
    category: NonEmptyStr
    description: NonEmptyStr
    difficulty: Difficulty
    high_level_schedule: HighLevelSchedule
    low_level_schedule: LowLevelSchedule

    @property
    def kind(self) -> PlanKind:
        return PlanKind.HABIT


# --- Task -----------------------------------------------------------------------


class ReminderOffset(_WireModel):
    unit: OffsetUnit
    value: PositiveInt


class TaskReminder(_WireModel):
    offset: ReminderOffset
    time: Optional[ClockTime]
    message: Optional[StrictStr]


class TaskStep(_WireModel):
    index: PositiveInt
    title: NonEmptyStr
    description: Optional[StrictStr]
    date: Optional[CalendarDate]
    time: Optional[ClockTime]
    reminders: List[TaskReminder]

    # Field validators see earlier fields in ``info.data`` only when those
    # validated; a malformed ``date`` therefore suppresses both checks.

    @field_validator("time")
    @classmethod
    def _time_requires_date(cls, value: Optional[str], info: ValidationInfo) -> Optional[str]:
        if "date" not in info.data:
            return value
        if value is not None and info.data["date"] is None:
            raise PydanticCustomError(TIME_REQUIRES_DATE, "Time can only be set for steps that have a date")
        return value

    @field_validator("reminders")
    @classmethod
    def _reminders_require_date(cls, value: List[TaskReminder], info: ValidationInfo) -> List[TaskReminder]:
        if "date" not in info.data:
            return value
        if value and info.data["date"] is None:
            raise PydanticCustomError(REMINDERS_REQUIRE_DATE, "Reminders can only be set for steps that have a date")
        return value


class TaskSchedule(_WireModel):
    steps: Annotated[List[TaskStep], Field(min_length=1)]


class TaskPlan(_WireModel):
    name: NonEmptyStr
    goal: NonEmptyStr
    category: NonEmptyStr
    description: NonEmptyStr
    task_schedule: TaskSchedule

    @property
    def kind(self) -> PlanKind:
        return PlanKind.TASK


Plan = Union[HabitPlan, TaskPlan]

PLAN_MODELS = {
    PlanKind.HABIT: HabitPlan,
    PlanKind.TASK: TaskPlan,
}
