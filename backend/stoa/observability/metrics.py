"""Planner metrics recorded as short-lived Opik traces."""
from __future__ import annotations

from typing import Any, Dict, Optional, Union

from stoa.observability.tracing import trace


def log_metric(name: str, value: Union[float, int], metadata: Optional[Dict[str, Any]] = None) -> None:
    """Record ``value`` under ``metric:<name>``; a no-op when Opik is off."""
    payload: Dict[str, Any] = {"value": value}
    if metadata:
        payload.update(metadata)
    with trace(f"metric:{name}", metadata=payload):
        pass
