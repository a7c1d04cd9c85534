from datetime import datetime

from pydantic import BaseModel


class PipelineReadiness(BaseModel):
    ffmpeg_available: bool
    transcription_configured: bool
    summarization_configured: bool
    meetings_store: str


class HealthResponse(BaseModel):
    status: str = "ok"
    service: str
    timestamp: datetime
    pipeline: PipelineReadiness
