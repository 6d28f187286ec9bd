"""Tests for metrics and tracing helpers."""
from __future__ import annotations

from typing import Any, Dict

import pytest

from studyplanner.observability import client as client_module
from studyplanner.observability import metrics
from studyplanner.observability import tracing


class _DummyTrace:
    def __init__(self, name: str, metadata: Dict[str, Any]):
        self.name = name
        self.metadata = metadata
        self.updates: list[Dict[str, Any]] = []
        self.ended = False

    def update(self, **kwargs) -> None:
        self.updates.append(kwargs)

    def end(self) -> None:
        self.ended = True


class _DummyClient:
    def __init__(self):
        self.traces: list[_DummyTrace] = []

    def trace(self, name: str, metadata: Dict[str, Any] | None = None):
        trace = _DummyTrace(name, metadata or {})
        self.traces.append(trace)
        return trace


@pytest.fixture()
def dummy_client(monkeypatch) -> _DummyClient:
    client = _DummyClient()
    monkeypatch.setattr(client_module, "get_opik_client", lambda: client)
    return client


def test_log_metric_closes_trace(dummy_client) -> None:
    metrics.log_metric("demo_metric", 42, metadata={"foo": "bar"})

    assert dummy_client.traces, "Metric call should record a trace"
    assert dummy_client.traces[0].name == "metric:demo_metric"
    assert dummy_client.traces[0].metadata["value"] == 42
    assert dummy_client.traces[0].metadata["foo"] == "bar"
    assert dummy_client.traces[0].ended is True


def test_timed_emits_latency_even_on_error(dummy_client) -> None:
    with pytest.raises(ValueError):
        with metrics.timed("study_plan.generate"):
            raise ValueError("boom")

    (latency,) = dummy_client.traces
    assert latency.name == "metric:study_plan.generate.latency_ms"
    assert latency.metadata["value"] >= 0


def test_trace_records_error_and_drops_empty_metadata(dummy_client) -> None:
    with pytest.raises(RuntimeError):
        with tracing.trace("study_plan.request", metadata={"subject_count": 2, "title": None}, request_id="r-1"):
            raise RuntimeError("llm down")

    (span,) = dummy_client.traces
    assert span.metadata == {"subject_count": 2, "request_id": "r-1"}
    assert span.updates == [{"error_info": {"message": "llm down"}}]
    assert span.ended is True


def test_helpers_are_noops_without_client(monkeypatch) -> None:
    monkeypatch.setattr(client_module, "get_opik_client", lambda: None)

    metrics.log_metric("ignored", 1)
    with tracing.trace("ignored") as span:
        tracing.annotate(span, source="fallback")

    assert span is None
