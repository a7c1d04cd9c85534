from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import StrEnum

from fastapi import HTTPException, status

from app.core.config import Settings
from app.services.audio_extractor import AudioExtractor, ExtractedAudio, ExtractionFailed
from app.services.elevenlabs_transcription_client import (
    ElevenLabsTranscriptionClient,
    TranscriptionFailed,
    TranscriptionUnavailable,
)
from app.services.meeting_store import MeetingStore, PersistenceFailed, create_meeting_store
from app.services.meeting_summary_service import MeetingSummaryService, SummaryArtifacts
from app.services.scratch_workspace import ScratchWorkspace
from app.services.space_access import get_meeting_in_space

logger = logging.getLogger(__name__)


class PipelineStage(StrEnum):
    received = "received"
    audio_extracted = "audio_extracted"
    transcribed = "transcribed"
    transcript_persisted = "transcript_persisted"
    summarized = "summarized"
    artifacts_persisted = "artifacts_persisted"
    done = "done"
    aborted = "aborted"


class PipelineOutcome(StrEnum):
    succeeded = "succeeded"
    completed_with_errors = "completed_with_errors"
    failed = "failed"


@dataclass
class RecordingUpload:
    content: bytes
    content_type: str | None
    filename: str | None
    meeting_id: str
    space_id: str
    user_id: str | None


@dataclass
class RecordingPipelineResult:
    meeting_id: str
    outcome: PipelineOutcome
    message: str
    status_code: int
    stages: list[PipelineStage] = field(default_factory=list)
    transcript: str | None = None
    summary: str | None = None
    action_items: str | None = None
    errors: list[str] = field(default_factory=list)

    @property
    def stage(self) -> PipelineStage:
        return self.stages[-1] if self.stages else PipelineStage.received

    @property
    def transcript_length(self) -> int | None:
        if self.transcript is None:
            return None
        return len(self.transcript)


class RecordingPipeline:
    """Turns one uploaded recording into a transcript, summary and action items.

    Only the entry checks, audio extraction and transcription can abort the
    run. Every later stage records its failure and lets the pipeline carry on,
    so the caller always gets whatever was produced.
    """

    def __init__(
        self,
        settings: Settings,
        meeting_store: MeetingStore | None = None,
        audio_extractor: AudioExtractor | None = None,
        transcription_client: ElevenLabsTranscriptionClient | None = None,
        summary_service: MeetingSummaryService | None = None,
    ) -> None:
        self.settings = settings
        self.meeting_store = meeting_store or create_meeting_store(settings)
        self.audio_extractor = audio_extractor or AudioExtractor(
            ffmpeg_binary=settings.ffmpeg_binary,
            audio_codec=settings.recording_audio_codec,
            audio_bitrate=settings.recording_audio_bitrate,
        )
        self.transcription_client = transcription_client or ElevenLabsTranscriptionClient(
            api_key=settings.elevenlabs_api_key,
            api_url=settings.elevenlabs_api_url,
            model_id=settings.elevenlabs_model_id,
            timeout_seconds=settings.elevenlabs_api_timeout_seconds,
        )
        self.summary_service = summary_service or MeetingSummaryService.from_settings(settings)

    async def process(self, upload: RecordingUpload) -> RecordingPipelineResult:
        self._validate_upload(upload)
        logger.info(
            "Recording received meeting_id=%s user_id=%s content_type=%s size_bytes=%s",
            upload.meeting_id,
            upload.user_id,
            upload.content_type,
            len(upload.content),
        )

        workspace = ScratchWorkspace(
            meeting_id=upload.meeting_id,
            base_dir=self.settings.recording_scratch_dir or None,
        )
        try:
            return await self._run(upload, workspace)
        finally:
            workspace.cleanup()

    async def _run(
        self,
        upload: RecordingUpload,
        workspace: ScratchWorkspace,
    ) -> RecordingPipelineResult:
        meeting_id = upload.meeting_id
        stages = [PipelineStage.received]
        source_filename = upload.filename or f"meeting_{meeting_id}.webm"

        try:
            audio = await self.audio_extractor.extract(upload.content, source_filename, workspace)
        except ExtractionFailed as exc:
            logger.error(
                "Audio extraction failed meeting_id=%s error=%s stderr=%s",
                meeting_id,
                exc,
                exc.stderr,
            )
            return self._failed(
                meeting_id,
                stages,
                message="Audio extraction failed.",
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        stages.append(PipelineStage.audio_extracted)

        transcript = await self._transcribe(meeting_id, audio)
        if isinstance(transcript, RecordingPipelineResult):
            transcript.stages = [*stages, PipelineStage.aborted]
            return transcript
        stages.append(PipelineStage.transcribed)

        errors: list[str] = []
        try:
            self.meeting_store.update_transcript(meeting_id, transcript)
        except PersistenceFailed as exc:
            logger.warning("Transcript save failed meeting_id=%s error=%s", meeting_id, exc)
            errors.append("Failed to save transcript to database.")
        else:
            logger.info(
                "Transcript saved meeting_id=%s transcript_length=%s",
                meeting_id,
                len(transcript),
            )
            stages.append(PipelineStage.transcript_persisted)

        artifacts = await self.summary_service.summarize(meeting_id, transcript)
        errors.extend(artifacts.failure_messages())
        stages.append(PipelineStage.summarized)

        if artifacts.has_any_result:
            if self._persist_artifacts(meeting_id, artifacts):
                stages.append(PipelineStage.artifacts_persisted)
            else:
                errors.append("Failed to save summary/tasks.")
        else:
            logger.warning("Skipping summary/tasks save meeting_id=%s reason=no_results", meeting_id)

        stages.append(PipelineStage.done)
        return self._completed(meeting_id, transcript, artifacts, errors, stages)

    async def _transcribe(
        self,
        meeting_id: str,
        audio: ExtractedAudio,
    ) -> str | RecordingPipelineResult:
        try:
            return await self.transcription_client.transcribe(audio.audio_bytes, audio.filename)
        except TranscriptionUnavailable as exc:
            logger.error(
                "Transcription unavailable meeting_id=%s reason=%s",
                meeting_id,
                exc,
            )
            return self._failed(
                meeting_id,
                [],
                message="Transcription service is not available.",
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            )
        except TranscriptionFailed as exc:
            logger.error("Transcription failed meeting_id=%s error=%s", meeting_id, exc)
            return self._failed(
                meeting_id,
                [],
                message="Transcription failed.",
                status_code=status.HTTP_502_BAD_GATEWAY,
            )

    def _persist_artifacts(self, meeting_id: str, artifacts: SummaryArtifacts) -> bool:
        try:
            self.meeting_store.update_summary_and_action_items(
                meeting_id,
                summary=artifacts.summary,
                action_items=artifacts.action_items,
            )
        except PersistenceFailed as exc:
            logger.warning("Summary/tasks save failed meeting_id=%s error=%s", meeting_id, exc)
            return False
        logger.info(
            "Summary/tasks saved meeting_id=%s summary=%s tasks=%s",
            meeting_id,
            artifacts.summary is not None,
            artifacts.action_items is not None,
        )
        return True

    def _validate_upload(self, upload: RecordingUpload) -> None:
        if not upload.user_id:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="User not authenticated.",
            )
        if not upload.content:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No recording file uploaded.",
            )

        content_type = (upload.content_type or "").split(";", 1)[0].strip().lower()
        if content_type not in self.settings.recording_allowed_mime_types:
            raise HTTPException(
                status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
                detail="Invalid file type. Only webm or mp4 video/audio allowed.",
            )
        if len(upload.content) > self.settings.recording_max_bytes:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail="Recording exceeds the maximum upload size.",
            )

        get_meeting_in_space(self.meeting_store, upload.space_id, upload.meeting_id)

    def _failed(
        self,
        meeting_id: str,
        stages: list[PipelineStage],
        *,
        message: str,
        status_code: int,
    ) -> RecordingPipelineResult:
        logger.info("Recording pipeline aborted meeting_id=%s message=%s", meeting_id, message)
        return RecordingPipelineResult(
            meeting_id=meeting_id,
            outcome=PipelineOutcome.failed,
            message=message,
            status_code=status_code,
            stages=[*stages, PipelineStage.aborted],
            errors=[message],
        )

    def _completed(
        self,
        meeting_id: str,
        transcript: str,
        artifacts: SummaryArtifacts,
        errors: list[str],
        stages: list[PipelineStage],
    ) -> RecordingPipelineResult:
        if errors:
            outcome = PipelineOutcome.completed_with_errors
            message = f"Recording processed with errors: {' '.join(errors)}"
            status_code = status.HTTP_207_MULTI_STATUS
        else:
            outcome = PipelineOutcome.succeeded
            message = "Recording processed and data saved successfully."
            status_code = status.HTTP_200_OK

        logger.info(
            "Recording pipeline finished meeting_id=%s outcome=%s errors=%s",
            meeting_id,
            outcome.value,
            len(errors),
        )
        return RecordingPipelineResult(
            meeting_id=meeting_id,
            outcome=outcome,
            message=message,
            status_code=status_code,
            stages=stages,
            transcript=transcript,
            summary=artifacts.summary,
            action_items=artifacts.action_items,
            errors=errors,
        )
