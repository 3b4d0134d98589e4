"""
API Tests
=========

Tests for the HTTP and WebSocket endpoints, with the pipeline globals
patched in place of the lifespan startup.
"""

import pytest
from fastapi.testclient import TestClient

from clippy_agent import main
from clippy_agent.agents import AgentRegistry, AgentRouter, SuggestionGate
from clippy_agent.capture.batcher import FrameBatcher
from clippy_agent.context.store import InMemoryContextStore
from clippy_agent.delivery import AssistantState, BroadcastSuggestionSink
from clippy_agent.llm import AnalysisClient, ClassificationClient
from clippy_agent.orchestrator import AssistantOrchestrator


@pytest.fixture
def sink():
    return BroadcastSuggestionSink()


@pytest.fixture
def orchestrator(sink, clock, fake_backend_factory, frame_source_factory):
    backend = fake_backend_factory()
    router = AgentRouter(
        ClassificationClient(backend),
        AgentRegistry.default(AnalysisClient(backend)),
    )
    return AssistantOrchestrator(
        source=frame_source_factory(clock),
        batcher=FrameBatcher(capacity=15),
        router=router,
        gate=SuggestionGate(),
        context_store=InMemoryContextStore(now=clock()),
        sink=sink,
        clock=clock,
    )


@pytest.fixture
def client(monkeypatch, sink, orchestrator):
    monkeypatch.setattr(main, "_sink", sink)
    monkeypatch.setattr(main, "_orchestrator", orchestrator)
    monkeypatch.setattr(main, "_monitoring_error", None)
    return TestClient(main.app)


@pytest.fixture
def disabled_client(monkeypatch, sink):
    monkeypatch.setattr(main, "_sink", sink)
    monkeypatch.setattr(main, "_orchestrator", None)
    monkeypatch.setattr(main, "_monitoring_error", "No AI client configured.")
    return TestClient(main.app)


class TestProbes:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_root(self, client):
        body = client.get("/").json()
        assert body["service"] == "Clippy Agent"
        assert body["monitoring_enabled"] is True

    def test_ready_when_loop_not_running(self, client):
        response = client.get("/ready")
        assert response.status_code == 503
        assert response.json()["monitoring_enabled"] is True

    def test_ready_reports_configuration_error(self, disabled_client):
        response = disabled_client.get("/ready")
        assert response.status_code == 503
        assert response.json()["reason"] == "No AI client configured."

    def test_metrics(self, client):
        body = client.get("/metrics").json()
        assert body["monitoring_enabled"] is True
        assert body["batcher"]["capacity"] == 15
        assert "router" in body
        assert "gate" in body
        assert body["classifier"]["calls"] == 0


class TestSuggestionEndpoints:

    def test_current_suggestion(self, client, sink, sample_suggestion):
        sink.current = sample_suggestion
        sink.state = AssistantState.SUGGESTING

        body = client.get("/suggestion").json()

        assert body["state"] == "suggesting"
        assert body["suggestion"]["type"] == "debug"

    def test_dismiss_without_suggestion(self, client):
        response = client.post("/suggestion/dismiss")
        assert response.status_code == 200
        assert response.json() == {"dismissed": False}

    def test_dismiss_admitted_suggestion(self, client, orchestrator, sample_suggestion):
        orchestrator.gate.admit(sample_suggestion, 0.0)

        response = client.post("/suggestion/dismiss")

        assert response.json() == {"dismissed": True}
        assert orchestrator.gate.suppressed_count == 1

    def test_dismiss_when_disabled(self, disabled_client):
        assert disabled_client.post("/suggestion/dismiss").status_code == 503

    def test_activity_resets_idle_and_sets_app(self, client, orchestrator, clock):
        orchestrator.context_store.update_idle_time(90_000)
        clock.advance(5)

        response = client.post("/activity", json={"current_app": "Terminal"})

        assert response.status_code == 200
        context = orchestrator.context_store.get_context()
        assert context.idle_time_ms == 0
        assert context.last_activity_at == clock()
        assert context.current_app == "Terminal"

    def test_activity_without_body(self, client, orchestrator):
        assert client.post("/activity").status_code == 200


class TestWebSocket:

    def test_stream_starts_with_state(self, client):
        with client.websocket_connect("/ws/suggestions") as websocket:
            assert websocket.receive_json() == {"type": "state", "state": "sleeping"}
