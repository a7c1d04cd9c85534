import asyncio
import json
import logging
import mimetypes
from collections.abc import Mapping
from http.client import IncompleteRead, RemoteDisconnected
from typing import Any
from urllib import error, request
from uuid import uuid4

logger = logging.getLogger(__name__)


class TranscriptionUnavailable(Exception):
    pass


class TranscriptionFailed(Exception):
    pass


class ElevenLabsTranscriptionClient:
    def __init__(
        self,
        api_key: str,
        api_url: str = "https://api.elevenlabs.io/v1/speech-to-text",
        model_id: str = "scribe_v1",
        timeout_seconds: float | None = None,
    ) -> None:
        self.api_key = api_key
        self.api_url = api_url
        self.model_id = model_id
        self.timeout_seconds = timeout_seconds

    async def transcribe(self, audio_bytes: bytes, filename: str) -> str:
        return await asyncio.to_thread(self.transcribe_file, audio_bytes, filename)

    def transcribe_file(self, audio_bytes: bytes, filename: str) -> str:
        if not self.api_key.strip():
            raise TranscriptionUnavailable("Transcription service API key not configured.")
        if not audio_bytes:
            raise TranscriptionUnavailable("Cannot transcribe empty audio buffer.")

        body, content_type = self._encode_multipart(
            fields={"model_id": self.model_id},
            file_field="file",
            filename=filename,
            file_bytes=audio_bytes,
        )
        req = request.Request(
            self.api_url,
            data=body,
            headers={
                "Content-Type": content_type,
                "Content-Length": str(len(body)),
                "xi-api-key": self.api_key,
                "Accept": "application/json",
            },
            method="POST",
        )

        logger.info("Transcription requested filename=%s audio_bytes=%s", filename, len(audio_bytes))
        try:
            with request.urlopen(req, **self._urlopen_kwargs()) as response:
                response_body = response.read()
        except error.HTTPError as exc:
            raw_error = exc.read().decode("utf-8", errors="ignore")
            detail = _extract_error_detail(raw_error) or f"HTTP {exc.code}"
            raise TranscriptionFailed(f"Transcription failed: {detail}") from exc
        except error.URLError as exc:
            raise TranscriptionFailed(f"Transcription failed: {exc.reason}") from exc
        except TimeoutError as exc:
            raise TranscriptionFailed("Transcription failed: request timed out.") from exc
        except (RemoteDisconnected, IncompleteRead, OSError) as exc:
            raise TranscriptionFailed(f"Transcription failed: connection dropped: {exc}") from exc

        try:
            payload = json.loads(response_body.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise TranscriptionFailed("Transcription failed: invalid response format from API.") from exc

        if not isinstance(payload, Mapping) or not isinstance(payload.get("text"), str):
            raise TranscriptionFailed("Transcription failed: invalid response format from API.")

        transcript = payload["text"]
        logger.info("Transcription completed filename=%s transcript_length=%s", filename, len(transcript))
        return transcript

    def _urlopen_kwargs(self) -> dict[str, Any]:
        if self.timeout_seconds is None:
            return {}
        return {"timeout": self.timeout_seconds}

    def _encode_multipart(
        self,
        *,
        fields: Mapping[str, str],
        file_field: str,
        filename: str,
        file_bytes: bytes,
    ) -> tuple[bytes, str]:
        boundary = f"----meeting-recording-{uuid4().hex}"
        file_content_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"
        chunks: list[bytes] = []
        for name, value in fields.items():
            chunks.append(
                (
                    f"--{boundary}\r\n"
                    f'Content-Disposition: form-data; name="{name}"\r\n\r\n'
                    f"{value}\r\n"
                ).encode("utf-8"),
            )
        chunks.append(
            (
                f"--{boundary}\r\n"
                f'Content-Disposition: form-data; name="{file_field}"; filename="{filename}"\r\n'
                f"Content-Type: {file_content_type}\r\n\r\n"
            ).encode("utf-8"),
        )
        chunks.append(file_bytes)
        chunks.append(f"\r\n--{boundary}--\r\n".encode("utf-8"))
        return b"".join(chunks), f"multipart/form-data; boundary={boundary}"


def _extract_error_detail(raw_error: str) -> str | None:
    if not raw_error.strip():
        return None
    try:
        parsed = json.loads(raw_error)
    except json.JSONDecodeError:
        return raw_error.strip()[:500]

    if not isinstance(parsed, Mapping):
        return None
    detail = parsed.get("detail")
    if isinstance(detail, str):
        return detail
    if isinstance(detail, Mapping):
        message = detail.get("message")
        if isinstance(message, str):
            return message
        return json.dumps(detail, ensure_ascii=False)[:500]
    return None
