import asyncio
import io
import json
from http.client import RemoteDisconnected
from urllib import error

import pytest

from app.services.openai_summarization_client import OpenAiSummarizationClient, SummarizationFailed
from app.services.summary_prompts import PromptKind


class _FakeResponse:
    def __init__(self, payload: object) -> None:
        self._body = json.dumps(payload).encode("utf-8")

    def __enter__(self) -> "_FakeResponse":
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> bool:
        return False

    def read(self) -> bytes:
        return self._body


def _client() -> OpenAiSummarizationClient:
    return OpenAiSummarizationClient(
        api_key="fake-openai-key",
        model="gpt-4o-mini",
        max_tokens=5000,
        api_base_url="https://llm.example.test/v1/",
    )


def test_generate_posts_system_and_user_messages(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def fake_urlopen(req: object, **kwargs: object) -> _FakeResponse:
        captured["request"] = req
        return _FakeResponse(
            {"choices": [{"message": {"role": "assistant", "content": "The team agreed on Q4 goals."}}]},
        )

    monkeypatch.setattr("app.services.openai_summarization_client.request.urlopen", fake_urlopen)

    output = asyncio.run(
        _client().generate("Summarize.", "Transcript text", prompt_kind=PromptKind.summary),
    )

    assert output == "The team agreed on Q4 goals."
    req = captured["request"]
    assert req.full_url == "https://llm.example.test/v1/chat/completions"
    assert req.get_header("Authorization") == "Bearer fake-openai-key"
    payload = json.loads(req.data.decode("utf-8"))
    assert payload == {
        "model": "gpt-4o-mini",
        "messages": [
            {"role": "system", "content": "Summarize."},
            {"role": "user", "content": "Transcript text"},
        ],
        "max_tokens": 5000,
    }


def test_complete_wraps_http_error_with_prompt_kind(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_urlopen(*args: object, **kwargs: object) -> _FakeResponse:
        raise error.HTTPError(
            url="https://llm.example.test",
            code=429,
            msg="Too Many Requests",
            hdrs=None,
            fp=io.BytesIO(b'{"error": {"message": "Rate limit reached"}}'),
        )

    monkeypatch.setattr("app.services.openai_summarization_client.request.urlopen", fake_urlopen)

    with pytest.raises(SummarizationFailed) as exc_info:
        _client().complete("Extract tasks.", "Transcript", prompt_kind=PromptKind.tasks)

    assert exc_info.value.prompt_kind == PromptKind.tasks
    assert "HTTP 429" in str(exc_info.value)
    assert "Rate limit reached" in str(exc_info.value)


def test_complete_rejects_response_without_choices(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        "app.services.openai_summarization_client.request.urlopen",
        lambda *args, **kwargs: _FakeResponse({"choices": []}),
    )

    with pytest.raises(SummarizationFailed) as exc_info:
        _client().complete("Summarize.", "Transcript", prompt_kind=PromptKind.summary)

    assert exc_info.value.prompt_kind == PromptKind.summary


def test_complete_wraps_connection_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_urlopen(*args: object, **kwargs: object) -> _FakeResponse:
        raise error.URLError("name resolution failed")

    monkeypatch.setattr("app.services.openai_summarization_client.request.urlopen", fake_urlopen)

    with pytest.raises(SummarizationFailed) as exc_info:
        _client().complete("Summarize.", "Transcript", prompt_kind=PromptKind.summary)

    assert "name resolution failed" in str(exc_info.value)


def test_complete_requires_api_key() -> None:
    client = OpenAiSummarizationClient(api_key="")

    with pytest.raises(SummarizationFailed) as exc_info:
        client.complete("Summarize.", "Transcript", prompt_kind=PromptKind.summary)

    assert "not configured" in str(exc_info.value)


def test_complete_wraps_dropped_connection(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_urlopen(*args: object, **kwargs: object) -> _FakeResponse:
        raise RemoteDisconnected("Remote end closed connection without response")

    monkeypatch.setattr("app.services.openai_summarization_client.request.urlopen", fake_urlopen)

    with pytest.raises(SummarizationFailed) as exc_info:
        _client().complete("Summarize.", "Transcript", prompt_kind=PromptKind.tasks)

    assert exc_info.value.prompt_kind == PromptKind.tasks
    assert "Remote end closed connection" in str(exc_info.value)
