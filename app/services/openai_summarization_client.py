import asyncio
import json
from collections.abc import Mapping
from http.client import IncompleteRead, RemoteDisconnected
from typing import Any
from urllib import error, request

from app.services.summary_prompts import PromptKind


class SummarizationFailed(Exception):
    def __init__(self, prompt_kind: PromptKind, message: str) -> None:
        super().__init__(message)
        self.prompt_kind = prompt_kind


class OpenAiSummarizationClient:
    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        max_tokens: int = 5000,
        api_base_url: str = "https://api.openai.com/v1",
        timeout_seconds: float | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.api_base_url = api_base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

    async def generate(
        self,
        system_prompt: str,
        user_content: str,
        *,
        prompt_kind: PromptKind,
    ) -> str:
        return await asyncio.to_thread(
            self.complete,
            system_prompt,
            user_content,
            prompt_kind=prompt_kind,
        )

    def complete(
        self,
        system_prompt: str,
        user_content: str,
        *,
        prompt_kind: PromptKind,
    ) -> str:
        if not self.api_key.strip():
            raise SummarizationFailed(prompt_kind, "OpenAI API key not configured.")

        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content},
            ],
            "max_tokens": self.max_tokens,
        }
        req = request.Request(
            f"{self.api_base_url}/chat/completions",
            data=json.dumps(payload, ensure_ascii=False).encode("utf-8"),
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self.api_key}",
            },
            method="POST",
        )
        try:
            with request.urlopen(req, **self._urlopen_kwargs()) as response:
                response_body = response.read()
        except error.HTTPError as exc:
            body = exc.read().decode("utf-8", errors="ignore")
            raise SummarizationFailed(
                prompt_kind,
                f"OpenAI API HTTP {exc.code}: {_extract_error_message(body) or 'empty response body'}",
            ) from exc
        except error.URLError as exc:
            raise SummarizationFailed(
                prompt_kind,
                f"OpenAI API connection error: {exc.reason}",
            ) from exc
        except TimeoutError as exc:
            raise SummarizationFailed(prompt_kind, "OpenAI API request timed out.") from exc
        except (RemoteDisconnected, IncompleteRead, OSError) as exc:
            raise SummarizationFailed(
                prompt_kind,
                f"OpenAI API connection was closed before a full response: {exc}",
            ) from exc

        try:
            parsed_body = json.loads(response_body.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise SummarizationFailed(prompt_kind, "OpenAI API returned invalid JSON.") from exc

        if not isinstance(parsed_body, Mapping):
            raise SummarizationFailed(prompt_kind, "OpenAI API response is not a JSON object.")
        return self._extract_message_content(parsed_body, prompt_kind)

    def _extract_message_content(self, payload: Mapping[str, Any], prompt_kind: PromptKind) -> str:
        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices:
            raise SummarizationFailed(prompt_kind, "OpenAI API response missing choices.")

        first_choice = choices[0]
        if not isinstance(first_choice, Mapping):
            raise SummarizationFailed(prompt_kind, "OpenAI API response choice is invalid.")

        message = first_choice.get("message")
        if not isinstance(message, Mapping):
            raise SummarizationFailed(prompt_kind, "OpenAI API response missing message.")

        content = message.get("content")
        if not isinstance(content, str):
            raise SummarizationFailed(prompt_kind, "OpenAI API response missing message content.")
        return content

    def _urlopen_kwargs(self) -> dict[str, Any]:
        if self.timeout_seconds is None:
            return {}
        return {"timeout": self.timeout_seconds}


def _extract_error_message(raw_body: str) -> str | None:
    if not raw_body.strip():
        return None
    try:
        parsed = json.loads(raw_body)
    except json.JSONDecodeError:
        return raw_body.strip()[:500]
    if isinstance(parsed, Mapping):
        error_payload = parsed.get("error")
        if isinstance(error_payload, Mapping) and isinstance(error_payload.get("message"), str):
            return error_payload["message"]
    return raw_body.strip()[:500]
