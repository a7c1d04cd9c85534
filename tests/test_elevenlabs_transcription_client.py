import asyncio
import io
import json
from http.client import IncompleteRead, RemoteDisconnected
from urllib import error

import pytest

from app.services.elevenlabs_transcription_client import (
    ElevenLabsTranscriptionClient,
    TranscriptionFailed,
    TranscriptionUnavailable,
)


class _FakeResponse:
    def __init__(self, payload: object) -> None:
        self._body = json.dumps(payload).encode("utf-8")

    def __enter__(self) -> "_FakeResponse":
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> bool:
        return False

    def read(self) -> bytes:
        return self._body


def _client() -> ElevenLabsTranscriptionClient:
    return ElevenLabsTranscriptionClient(
        api_key="fake-xi-key",
        api_url="https://stt.example.test/v1/speech-to-text",
        model_id="scribe_v1",
    )


def test_transcribe_uploads_multipart_audio_and_returns_text(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    captured: dict[str, object] = {}

    def fake_urlopen(req: object, **kwargs: object) -> _FakeResponse:
        captured["request"] = req
        captured["kwargs"] = kwargs
        return _FakeResponse({"text": "Hello team, let's start.", "language_code": "en"})

    monkeypatch.setattr(
        "app.services.elevenlabs_transcription_client.request.urlopen",
        fake_urlopen,
    )

    transcript = asyncio.run(_client().transcribe(b"ID3-audio", "audio_out_clip.mp3"))

    assert transcript == "Hello team, let's start."
    req = captured["request"]
    assert req.full_url == "https://stt.example.test/v1/speech-to-text"
    assert req.get_method() == "POST"
    assert req.get_header("Xi-api-key") == "fake-xi-key"
    assert req.get_header("Content-type").startswith("multipart/form-data; boundary=")
    body = req.data
    assert b'name="model_id"\r\n\r\nscribe_v1' in body
    assert b'name="file"; filename="audio_out_clip.mp3"' in body
    assert b"Content-Type: audio/mpeg" in body
    assert b"ID3-audio" in body
    assert captured["kwargs"] == {}


def test_transcribe_passes_configured_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def fake_urlopen(req: object, **kwargs: object) -> _FakeResponse:
        captured.update(kwargs)
        return _FakeResponse({"text": ""})

    monkeypatch.setattr(
        "app.services.elevenlabs_transcription_client.request.urlopen",
        fake_urlopen,
    )
    client = ElevenLabsTranscriptionClient(api_key="key", timeout_seconds=30.0)

    assert client.transcribe_file(b"audio", "a.mp3") == ""
    assert captured == {"timeout": 30.0}


def test_transcribe_requires_api_key_before_network_call(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def fake_urlopen(*args: object, **kwargs: object) -> _FakeResponse:
        raise AssertionError("network must not be called")

    monkeypatch.setattr(
        "app.services.elevenlabs_transcription_client.request.urlopen",
        fake_urlopen,
    )
    client = ElevenLabsTranscriptionClient(api_key="  ")

    with pytest.raises(TranscriptionUnavailable):
        client.transcribe_file(b"audio", "a.mp3")


def test_transcribe_rejects_empty_audio_buffer() -> None:
    with pytest.raises(TranscriptionUnavailable):
        _client().transcribe_file(b"", "a.mp3")


def test_transcribe_rejects_response_without_text(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        "app.services.elevenlabs_transcription_client.request.urlopen",
        lambda *args, **kwargs: _FakeResponse({"words": []}),
    )

    with pytest.raises(TranscriptionFailed) as exc_info:
        _client().transcribe_file(b"audio", "a.mp3")

    assert "invalid response format" in str(exc_info.value)


def test_transcribe_wraps_http_error_with_upstream_detail(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def fake_urlopen(*args: object, **kwargs: object) -> _FakeResponse:
        raise error.HTTPError(
            url="https://stt.example.test",
            code=401,
            msg="Unauthorized",
            hdrs=None,
            fp=io.BytesIO(
                json.dumps(
                    {"detail": {"status": "invalid_api_key", "message": "Invalid API key"}},
                ).encode("utf-8"),
            ),
        )

    monkeypatch.setattr(
        "app.services.elevenlabs_transcription_client.request.urlopen",
        fake_urlopen,
    )

    with pytest.raises(TranscriptionFailed) as exc_info:
        _client().transcribe_file(b"audio", "a.mp3")

    assert str(exc_info.value) == "Transcription failed: Invalid API key"


def test_transcribe_wraps_network_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_urlopen(*args: object, **kwargs: object) -> _FakeResponse:
        raise error.URLError("connection refused")

    monkeypatch.setattr(
        "app.services.elevenlabs_transcription_client.request.urlopen",
        fake_urlopen,
    )

    with pytest.raises(TranscriptionFailed) as exc_info:
        _client().transcribe_file(b"audio", "a.mp3")

    assert "connection refused" in str(exc_info.value)


def test_transcribe_wraps_dropped_connection(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_urlopen(*args: object, **kwargs: object) -> _FakeResponse:
        raise RemoteDisconnected("Remote end closed connection without response")

    monkeypatch.setattr(
        "app.services.elevenlabs_transcription_client.request.urlopen",
        fake_urlopen,
    )

    with pytest.raises(TranscriptionFailed) as exc_info:
        _client().transcribe_file(b"mp3", "a.mp3")

    assert "Remote end closed connection" in str(exc_info.value)


def test_transcribe_wraps_truncated_response_body(monkeypatch: pytest.MonkeyPatch) -> None:
    class _TruncatedResponse(_FakeResponse):
        def read(self) -> bytes:
            raise IncompleteRead(b'{"te', 40)

    monkeypatch.setattr(
        "app.services.elevenlabs_transcription_client.request.urlopen",
        lambda *args, **kwargs: _TruncatedResponse({}),
    )

    with pytest.raises(TranscriptionFailed):
        _client().transcribe_file(b"mp3", "a.mp3")


def test_transcribe_wraps_connection_reset(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_urlopen(*args: object, **kwargs: object) -> _FakeResponse:
        raise ConnectionResetError(104, "Connection reset by peer")

    monkeypatch.setattr(
        "app.services.elevenlabs_transcription_client.request.urlopen",
        fake_urlopen,
    )

    with pytest.raises(TranscriptionFailed):
        asyncio.run(_client().transcribe(b"mp3", "a.mp3"))
