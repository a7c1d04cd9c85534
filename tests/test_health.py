import logging

import pytest
from fastapi.testclient import TestClient

from app.core.config import get_settings
from app.main import app, create_application

client = TestClient(app)


@pytest.fixture(autouse=True)
def reset_settings() -> None:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_health_endpoint_returns_expected_shape() -> None:
    response = client.get("/api/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] in {"ok", "degraded"}
    assert "service" in data
    assert "timestamp" in data
    assert set(data["pipeline"]) == {
        "ffmpeg_available",
        "transcription_configured",
        "summarization_configured",
        "meetings_store",
    }


def test_health_reports_degraded_without_api_keys(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ELEVENLABS_API_KEY", "")
    monkeypatch.setenv("OPENAI_API_KEY", "")
    monkeypatch.setenv("MEETINGS_STORE", "memory")
    get_settings.cache_clear()

    response = client.get("/api/health")

    data = response.json()
    assert data["status"] == "degraded"
    assert data["pipeline"]["transcription_configured"] is False
    assert data["pipeline"]["summarization_configured"] is False
    assert data["pipeline"]["meetings_store"] == "memory"


def test_health_is_ok_when_pipeline_is_ready(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ELEVENLABS_API_KEY", "xi-key")
    monkeypatch.setenv("OPENAI_API_KEY", "openai-key")
    monkeypatch.setattr("app.services.health_service.shutil.which", lambda binary: f"/usr/bin/{binary}")
    get_settings.cache_clear()

    response = client.get("/api/health")

    data = response.json()
    assert data["status"] == "ok"
    assert data["pipeline"]["ffmpeg_available"] is True


def test_startup_warns_about_missing_api_keys(
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
) -> None:
    monkeypatch.setenv("ELEVENLABS_API_KEY", "")
    monkeypatch.setenv("OPENAI_API_KEY", "")
    get_settings.cache_clear()

    with caplog.at_level(logging.INFO, logger="app.main"):
        with TestClient(create_application()) as lifespan_client:
            response = lifespan_client.get("/api/health")

    assert response.status_code == 200
    messages = [record.getMessage() for record in caplog.records if record.name == "app.main"]
    assert any("ELEVENLABS_API_KEY is not set" in message for message in messages)
    assert any("OPENAI_API_KEY is not set" in message for message in messages)
    assert any("Meeting recording pipeline ready" in message for message in messages)
