from functools import lru_cache
from typing import Annotated

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_RECORDING_MIME_TYPES = ["video/webm", "video/mp4", "audio/webm"]


class Settings(BaseSettings):
    app_name: str = "Meeting Recording Pipeline API"
    app_env: str = "development"
    app_version: str = "0.1.0"
    api_prefix: str = "/api"
    allowed_origins: Annotated[list[str], NoDecode] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]
    meetings_store: str = "mongodb"
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db_name: str = "meeting_spaces"
    mongodb_meetings_collection: str = "meetings"
    mongodb_space_members_collection: str = "space_members"
    mongodb_connect_timeout_ms: int = 2000
    auth_secret_key: str = "change-me-in-production"
    auth_token_ttl_minutes: int = 60 * 12
    elevenlabs_api_key: str = ""
    elevenlabs_api_url: str = "https://api.elevenlabs.io/v1/speech-to-text"
    elevenlabs_model_id: str = "scribe_v1"
    elevenlabs_api_timeout_seconds: float | None = None
    openai_api_key: str = ""
    openai_api_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o-mini"
    openai_max_tokens: int = 5000
    openai_api_timeout_seconds: float | None = None
    ffmpeg_binary: str = "ffmpeg"
    recording_audio_codec: str = "libmp3lame"
    recording_audio_bitrate: str = "192k"
    recording_scratch_dir: str = ""
    recording_max_bytes: int = 500 * 1024 * 1024
    recording_allowed_mime_types: Annotated[list[str], NoDecode] = DEFAULT_RECORDING_MIME_TYPES

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @field_validator("allowed_origins", "recording_allowed_mime_types", mode="before")
    @classmethod
    def parse_comma_separated(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("meetings_store", mode="before")
    @classmethod
    def normalize_meetings_store(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator(
        "elevenlabs_api_timeout_seconds",
        "openai_api_timeout_seconds",
        mode="before",
    )
    @classmethod
    def normalize_optional_timeout(cls, value: float | str | None) -> float | None:
        # Blank or non-positive values keep the transport default.
        if value is None:
            return None
        if isinstance(value, str) and not value.strip():
            return None
        parsed_value = float(value)
        if parsed_value <= 0:
            return None
        return parsed_value

    @field_validator("openai_max_tokens", mode="before")
    @classmethod
    def normalize_openai_max_tokens(cls, value: int | str) -> int:
        parsed_value = int(value)
        if parsed_value <= 0:
            return 5000
        return parsed_value

    @field_validator("recording_max_bytes", mode="before")
    @classmethod
    def normalize_recording_max_bytes(cls, value: int | str) -> int:
        parsed_value = int(value)
        if parsed_value <= 0:
            return 500 * 1024 * 1024
        return parsed_value

    @field_validator("auth_token_ttl_minutes", mode="before")
    @classmethod
    def normalize_auth_token_ttl(cls, value: int | str) -> int:
        parsed_value = int(value)
        if parsed_value <= 0:
            return 60 * 12
        return parsed_value


@lru_cache
def get_settings() -> Settings:
    return Settings()
