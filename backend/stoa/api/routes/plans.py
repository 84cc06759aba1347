"""Plan validation and stored plan routes."""
from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Request

from stoa.api.deps import get_current_user_id, get_session_store
from stoa.api.schemas.plans import PlanListResponse, PlanValidationResponse
from stoa.observability.metrics import log_metric
from stoa.observability.tracing import trace
from stoa.plans.models import PlanKind
from stoa.plans.normalize import normalize_habit_payload
from stoa.plans.validator import validate_plan
from stoa.services.session_store import SqlSessionStore

router = APIRouter()


@router.get("/plans", response_model=PlanListResponse, tags=["plans"])
async def list_plans(
    http_request: Request,
    kind: Optional[PlanKind] = None,
    user_id: str = Depends(get_current_user_id),
    store: SqlSessionStore = Depends(get_session_store),
) -> PlanListResponse:
    """Accepted plans for the caller, optionally only habits or only tasks."""
    request_id = getattr(http_request.state, "request_id", None)
    metadata = {"route": "/plans", "kind": kind.value if kind else None}
    with trace("plan.list", metadata=metadata, user_id=user_id, request_id=request_id):
        plans = await store.list_plans(user_id, kind)
    return PlanListResponse.from_stored(plans)


@router.post("/plans/validate/{kind}", response_model=PlanValidationResponse, tags=["plans"])
def validate_plan_payload(
    kind: PlanKind,
    http_request: Request,
    payload: Any = Body(...),
    normalize: bool = False,
) -> PlanValidationResponse:
    """Validate a candidate plan and list every violation found."""
    request_id = getattr(http_request.state, "request_id", None)
    metadata = {"route": "/plans/validate", "kind": kind.value}
    with trace("plan.validate", metadata=metadata, request_id=request_id):
        candidate = normalize_habit_payload(payload) if normalize and kind is PlanKind.HABIT else payload
        outcome = validate_plan(kind, candidate)
    log_metric("plan.validation.violations", len(outcome.violations), metadata)
    return PlanValidationResponse.from_outcome(outcome)
