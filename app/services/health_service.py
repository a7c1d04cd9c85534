import shutil
from datetime import UTC, datetime

from app.core.config import Settings
from app.schemas.health import HealthResponse, PipelineReadiness


class HealthService:
    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def get_status(self) -> HealthResponse:
        readiness = PipelineReadiness(
            ffmpeg_available=shutil.which(self.settings.ffmpeg_binary) is not None,
            transcription_configured=bool(self.settings.elevenlabs_api_key.strip()),
            summarization_configured=bool(self.settings.openai_api_key.strip()),
            meetings_store=self.settings.meetings_store,
        )
        is_ready = (
            readiness.ffmpeg_available
            and readiness.transcription_configured
            and readiness.summarization_configured
        )
        return HealthResponse(
            status="ok" if is_ready else "degraded",
            service=self.settings.app_name,
            timestamp=datetime.now(UTC),
            pipeline=readiness,
        )
