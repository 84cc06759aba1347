"""Pydantic schemas for plan validation."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from stoa.conversation.store import StoredPlan
from stoa.plans.validator import ValidationOutcome, plan_to_wire


class ViolationView(BaseModel):
    path: str
    message: str
    kind: str


class PlanValidationResponse(BaseModel):
    kind: str
    valid: bool
    violations: List[ViolationView] = Field(default_factory=list)
    plan: Optional[Dict[str, Any]] = None

    @classmethod
    def from_outcome(cls, outcome: ValidationOutcome) -> "PlanValidationResponse":
        return cls(
            kind=outcome.kind.value,
            valid=outcome.ok,
            violations=[ViolationView(**violation.to_dict()) for violation in outcome.violations],
            plan=plan_to_wire(outcome.plan) if outcome.plan is not None else None,
        )


class StoredPlanView(BaseModel):
    plan_id: str
    conversation_id: str
    kind: str
    name: str
    plan: Dict[str, Any]


class PlanListResponse(BaseModel):
    plans: List[StoredPlanView] = Field(default_factory=list)

    @classmethod
    def from_stored(cls, plans: List[StoredPlan]) -> "PlanListResponse":
        return cls(
            plans=[
                StoredPlanView(
                    plan_id=plan.plan_id,
                    conversation_id=plan.conversation_id,
                    kind=plan.kind,
                    name=plan.name,
                    plan=plan.payload,
                )
                for plan in plans
            ]
        )
