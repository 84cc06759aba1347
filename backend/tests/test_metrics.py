"""Tests for metrics helpers."""
from __future__ import annotations

from typing import Any, Dict

import pytest

from stoa.observability import metrics
from stoa.observability import tracing


class _DummyTrace:
    def __init__(self, metadata: Dict[str, Any]):
        self.metadata = metadata
        self.ended = False

    def end(self) -> None:
        self.ended = True


class _DummyClient:
    def __init__(self):
        self.traces: list[_DummyTrace] = []

    def trace(self, name: str, metadata: Dict[str, Any] | None = None):
        trace = _DummyTrace(metadata or {})
        self.traces.append(trace)
        return trace


def test_log_metric_closes_trace(monkeypatch) -> None:
    dummy_client = _DummyClient()
    monkeypatch.setattr(tracing, "get_opik_client", lambda: dummy_client)

    metrics.log_metric("plan.validation.violations", 42, metadata={"kind": "habit"})

    assert dummy_client.traces, "Metric call should record a trace"
    assert dummy_client.traces[0].metadata["value"] == 42
    assert dummy_client.traces[0].metadata["kind"] == "habit"
    assert dummy_client.traces[0].ended is True


def test_log_metric_is_noop_without_client(monkeypatch) -> None:
    monkeypatch.setattr(tracing, "get_opik_client", lambda: None)

    metrics.log_metric("classifier.confidence", 0.3)


def test_trace_records_error_and_reraises(monkeypatch) -> None:
    class _ErrorTrace(_DummyTrace):
        def update(self, error_info=None, **kwargs) -> None:
            self.metadata["error"] = error_info

    class _ErrorClient(_DummyClient):
        def trace(self, name: str, metadata: Dict[str, Any] | None = None):
            trace = _ErrorTrace(metadata or {})
            self.traces.append(trace)
            return trace

    client = _ErrorClient()
    monkeypatch.setattr(tracing, "get_opik_client", lambda: client)

    with pytest.raises(RuntimeError):
        with tracing.trace("conversation.turn", metadata={"conversation_id": "c1"}, user_id="u1"):
            raise RuntimeError("boom")

    recorded = client.traces[0]
    assert recorded.metadata["user_id"] == "u1"
    assert recorded.metadata["error"] == {"message": "boom", "type": "RuntimeError"}
    assert recorded.ended is True
