"""Plan validation: structural checks plus cross-field refinements.

``validate_plan`` never raises for bad input. Every problem is reported as a
``Violation`` with a dotted field path, and a typed plan is returned only
when there are none.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic import ValidationError

from stoa.plans.models import (
    PLAN_MODELS,
    REFINEMENT_ERROR_TYPES,
    HabitPlan,
    Plan,
    PlanKind,
    TaskPlan,
)

ROOT_PATH = ""


class ViolationKind(str, Enum):
    STRUCTURAL = "structural"
    CONSISTENCY = "consistency"


@dataclass(frozen=True)
class Violation:
    path: str
    message: str
    kind: ViolationKind = ViolationKind.STRUCTURAL

    def to_dict(self) -> Dict[str, str]:
        return {"path": self.path, "message": self.message, "kind": self.kind.value}


@dataclass
class ValidationOutcome:
    kind: PlanKind
    plan: Optional[Plan] = None
    violations: List[Violation] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.plan is not None and not self.violations

    @property
    def paths(self) -> List[str]:
        """Unique violation paths in report order."""
        seen: Dict[str, None] = {}
        for violation in self.violations:
            seen.setdefault(violation.path, None)
        return list(seen)


def format_path(loc: Sequence[Union[str, int]]) -> str:
    return ".".join(str(part) for part in loc)


def validate_plan(kind: Union[PlanKind, str], candidate: Any) -> ValidationOutcome:
    """Validate an untyped candidate against the habit or task schema."""
    plan_kind = PlanKind(kind)
    if not isinstance(candidate, Mapping):
        return ValidationOutcome(
            kind=plan_kind,
            violations=[Violation(ROOT_PATH, f"{plan_kind.value} plan must be a JSON object")],
        )

    model = PLAN_MODELS[plan_kind]
    try:
        plan = model.model_validate(candidate)
    except ValidationError as exc:
        return ValidationOutcome(kind=plan_kind, violations=_violations_from_error(exc))
    return ValidationOutcome(kind=plan_kind, plan=plan)


def validate_habit(candidate: Any) -> ValidationOutcome:
    return validate_plan(PlanKind.HABIT, candidate)


def validate_task(candidate: Any) -> ValidationOutcome:
    return validate_plan(PlanKind.TASK, candidate)


def plan_to_wire(plan: Union[HabitPlan, TaskPlan]) -> Dict[str, Any]:
    """Encode a validated plan as wire JSON (plain dicts and lists)."""
    return plan.model_dump(mode="json")


def _violations_from_error(exc: ValidationError) -> List[Violation]:
    violations: List[Violation] = []
    for error in exc.errors(include_url=False):
        kind = ViolationKind.CONSISTENCY if error["type"] in REFINEMENT_ERROR_TYPES else ViolationKind.STRUCTURAL
        violations.append(Violation(format_path(error["loc"]), error["msg"], kind))
    return violations
