from __future__ import annotations

from fastapi.testclient import TestClient

from stoa.main import app
from stoa.observability import client as client_module


class _DummyTrace:
    def __init__(self, name=None, metadata=None, **kwargs):
        self.name = name
        self.metadata = metadata or {}
        self.ended = False

    def update(self, metadata=None, **kwargs):
        if metadata:
            self.metadata = metadata

    def end(self):
        self.ended = True


class _DummyOpik:
    def __init__(self, *args, **kwargs):
        self.kwargs = kwargs
        self.traces = []

    def trace(self, **kwargs):
        trace = _DummyTrace(name=kwargs.get("name"), metadata=kwargs.get("metadata"))
        self.traces.append(trace)
        return trace


class _EnabledSettings:
    opik_enabled = True
    opik_api_key = "test-key"
    opik_project = "stoa-planner-test"


def test_requests_are_traced_when_opik_is_enabled(monkeypatch, habit_plan) -> None:
    monkeypatch.setattr(client_module, "Opik", _DummyOpik)
    monkeypatch.setattr(client_module, "settings", _EnabledSettings())
    client_module.reset_opik()
    try:
        opik = client_module.init_opik()
        assert isinstance(opik, _DummyOpik)
        assert opik.kwargs == {"project_name": "stoa-planner-test", "api_key": "test-key"}

        with TestClient(app) as test_client:
            assert test_client.get("/health", headers={"X-Request-Id": "req-1"}).status_code == 200
            assert test_client.post("/plans/validate/habit", json=habit_plan).json()["valid"] is True

        names = [trace.name for trace in opik.traces]
        assert "http.health_check" in names
        assert "plan.validate" in names
        assert "metric:plan.validation.violations" in names
        health = next(trace for trace in opik.traces if trace.name == "http.health_check")
        assert health.metadata["request_id"] == "req-1"
        assert all(trace.ended for trace in opik.traces)
    finally:
        client_module.reset_opik()
