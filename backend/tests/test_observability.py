"""Tests ensuring observability wiring is safe by default."""
from __future__ import annotations

import importlib

import pytest

from mindy.core.context import caller_id_ctx_var, request_id_ctx_var
from mindy.observability import tracing


def test_app_import_succeeds_when_opik_is_disabled(monkeypatch) -> None:
    monkeypatch.setenv("OPIK_ENABLED", "false")
    monkeypatch.delenv("OPIK_API_KEY", raising=False)

    import mindy.core.config as core_config
    import mindy.observability.client as client_module
    import mindy.main as main_module

    importlib.reload(core_config)
    importlib.reload(client_module)
    reloaded_app = importlib.reload(main_module)

    assert hasattr(reloaded_app, "app")
    assert client_module.init_opik() is None


class _RecordingTrace:
    def __init__(self, metadata):
        self.metadata = metadata
        self.updates = []
        self.ended = False

    def update(self, **kwargs):
        self.updates.append(kwargs)

    def end(self):
        self.ended = True


class _RecordingClient:
    def __init__(self):
        self.traces = []

    def trace(self, name, metadata=None):
        trace = _RecordingTrace(metadata or {})
        self.traces.append(trace)
        return trace


def test_trace_uses_request_context(monkeypatch) -> None:
    client = _RecordingClient()
    monkeypatch.setattr(tracing, "get_opik_client", lambda: client)
    request_token = request_id_ctx_var.set("req-1")
    caller_token = caller_id_ctx_var.set("caller-a")
    try:
        with tracing.trace("routine.save", metadata={"route": "/save-routine"}) as span:
            assert span is client.traces[0]
    finally:
        request_id_ctx_var.reset(request_token)
        caller_id_ctx_var.reset(caller_token)

    metadata = client.traces[0].metadata
    assert metadata["request_id"] == "req-1"
    assert metadata["caller_id"] == "caller-a"
    assert client.traces[0].ended is True


def test_trace_records_errors_and_reraises(monkeypatch) -> None:
    client = _RecordingClient()
    monkeypatch.setattr(tracing, "get_opik_client", lambda: client)

    with pytest.raises(ValueError):
        with tracing.trace("routine.save"):
            raise ValueError("bad input")

    recorded = client.traces[0]
    assert recorded.updates[0]["error_info"]["exception_type"] == "ValueError"
    assert recorded.ended is True


def test_trace_yields_none_when_disabled(monkeypatch) -> None:
    monkeypatch.setattr(tracing, "get_opik_client", lambda: None)

    with tracing.trace("routine.save") as span:
        assert span is None
