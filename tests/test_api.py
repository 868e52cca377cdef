"""Tests for the HTTP and WebSocket API."""

import asyncio
import time

import pytest
from fastapi.testclient import TestClient

from conftest import FakeFetcher, FakeGenerator, FakeProcessor, FakeProviders

from app.config import Settings
from app.main import app
from app.models.schemas import ProviderKey, StepStatus, TranscriptFetchResult
from app.services import session as session_module
from app.services.session import PipelineSession

EPISODE = {"url": "https://www.youtube.com/watch?v=abc123", "title": "Episode 42"}


@pytest.fixture
def session(monkeypatch) -> PipelineSession:
    """Session wired to fake collaborators."""
    settings = Settings(pipeline_auto_close_delay=30, _env_file=None)
    session = PipelineSession(settings)
    deps = session.pipeline.deps
    deps.fetch_transcript = FakeFetcher()
    deps.process_transcript = FakeProcessor()
    deps.provider_config = FakeProviders()
    deps.generate_summary = FakeGenerator()
    monkeypatch.setattr(session_module, "_session", session)
    return session


@pytest.fixture
def client(session):
    with TestClient(app) as client:
        yield client


def wait_for(client: TestClient, predicate, timeout: float = 2.0) -> dict:
    """Poll the pipeline view until predicate(view) holds."""
    deadline = time.monotonic() + timeout
    while True:
        view = client.get("/api/pipeline").json()
        if predicate(view) or time.monotonic() > deadline:
            return view
        time.sleep(0.01)


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_initial_view(client):
    view = client.get("/api/pipeline").json()

    assert view["is_open"] is False
    assert [s["status"] for s in view["steps"]] == ["pending"] * 5
    assert view["is_second_failure"] is False


def test_summarize_runs_pipeline(client, session):
    response = client.post("/api/pipeline/summarize", json=EPISODE)
    assert response.status_code == 202

    view = wait_for(client, lambda v: v["steps"][4]["status"] == StepStatus.COMPLETED.value)

    assert [s["status"] for s in view["steps"]] == ["completed"] * 5
    assert view["summaries"][0]["provider"] == "anthropic"
    assert view["navigation_override"] == "ai-summary"

    shared = client.get("/api/pipeline/shared").json()
    assert shared["current_url"] == EPISODE["url"]
    assert shared["video_metadata"]["id"] == "abc123"


def test_summarize_while_open_conflicts(client):
    client.post("/api/pipeline/summarize", json=EPISODE)
    wait_for(client, lambda v: v["is_open"])

    response = client.post("/api/pipeline/summarize", json=EPISODE)

    assert response.status_code == 409


def test_failure_retry_and_close(client, session):
    session.pipeline.deps.fetch_transcript = FakeFetcher(TranscriptFetchResult(success=False))

    client.post("/api/pipeline/summarize", json=EPISODE)
    view = wait_for(client, lambda v: v["steps"][0]["status"] == "failed")
    assert view["steps"][0]["error"] == "This video doesn't have captions available."

    client.post("/api/pipeline/retry")
    view = wait_for(client, lambda v: v["is_second_failure"] and v["steps"][0]["status"] == "failed")
    assert view["steps"][0]["error"] == "Something went wrong. Please try again later."

    view = client.post("/api/pipeline/close").json()
    assert view["is_open"] is False
    assert session.shared.video_metadata is None


def test_retry_without_failure_is_noop(client):
    response = client.post("/api/pipeline/retry")

    assert response.status_code == 202
    assert response.json()["is_open"] is False


def test_provider_config_exposes_booleans_only(client, monkeypatch):
    monkeypatch.setattr(
        "app.api.summary_routes.get_configured_providers",
        lambda: {p: p == ProviderKey.ANTHROPIC for p in ProviderKey},
    )

    body = client.get("/api/ai-summary/config").json()

    assert body == {
        "success": True,
        "providers": {"anthropic": True, "google-gemini": False, "perplexity": False},
    }


def test_summary_rejects_empty_transcript(client):
    response = client.post(
        "/api/ai-summary", json={"transcript": "  ", "provider": "anthropic"}
    )

    assert response.status_code == 400
    assert "non-empty" in response.json()["detail"]


def test_summary_rejects_unknown_provider(client):
    response = client.post(
        "/api/ai-summary", json={"transcript": "text", "provider": "openai"}
    )

    assert response.status_code == 422


def test_websocket_streams_transitions(client):
    with client.websocket_connect("/ws/pipeline") as ws:
        first = ws.receive_json()
        assert first["type"] == "pipeline"
        assert first["state"]["is_open"] is False

        client.post("/api/pipeline/summarize", json=EPISODE)

        opened = ws.receive_json()
        assert opened["state"]["is_open"] is True
        assert [s["status"] for s in opened["state"]["steps"]] == ["pending"] * 5


def test_close_mid_fetch_frees_pipeline_for_next_summarize(client, session):
    stuck = FakeFetcher()
    stuck.gate = asyncio.Event()
    session.pipeline.deps.fetch_transcript = stuck

    client.post("/api/pipeline/summarize", json=EPISODE)
    wait_for(client, lambda v: v["steps"][0]["status"] == "in_progress")

    view = client.post("/api/pipeline/close").json()
    assert view["is_open"] is False
    assert not session.is_busy

    session.pipeline.deps.fetch_transcript = FakeFetcher()
    response = client.post("/api/pipeline/summarize", json=EPISODE)

    assert response.status_code == 202
    view = wait_for(client, lambda v: v["steps"][4]["status"] == "completed")
    assert [s["status"] for s in view["steps"]] == ["completed"] * 5
