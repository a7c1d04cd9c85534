import asyncio
import logging
from collections.abc import Coroutine
from typing import Any, TypeVar

from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.responses import JSONResponse

from app.core.config import get_settings
from app.schemas.auth import CurrentUser
from app.schemas.recording import (
    MeetingArtifactsResponse,
    MessageResponse,
    RecordingPartialResponse,
    RecordingProcessedResponse,
    TranscriptProcessRequest,
    TranscriptProcessResponse,
)
from app.services.meeting_ai_service import MeetingAiService
from app.services.recording_pipeline import (
    PipelineOutcome,
    RecordingPipeline,
    RecordingPipelineResult,
    RecordingUpload,
)
from app.services.space_access import require_space_member

router = APIRouter(prefix="/spaces/{space_id}/meetings/{meeting_id}/ai", tags=["recordings"])
logger = logging.getLogger(__name__)

_T = TypeVar("_T")
_RUNNING_PIPELINES: set[asyncio.Task[Any]] = set()


@router.post(
    "/recording",
    response_model=RecordingProcessedResponse,
    responses={
        status.HTTP_207_MULTI_STATUS: {"model": RecordingPartialResponse},
        status.HTTP_400_BAD_REQUEST: {"model": MessageResponse},
        status.HTTP_404_NOT_FOUND: {"model": MessageResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": MessageResponse},
        status.HTTP_502_BAD_GATEWAY: {"model": MessageResponse},
        status.HTTP_503_SERVICE_UNAVAILABLE: {"model": MessageResponse},
    },
)
async def upload_recording(
    space_id: str,
    meeting_id: str,
    recording: UploadFile | None = File(default=None),
    current_user: CurrentUser = Depends(require_space_member),
) -> JSONResponse:
    settings = get_settings()
    content = b""
    content_type: str | None = None
    filename: str | None = None
    if recording is not None:
        # One extra byte is enough to detect an oversized upload.
        content = await recording.read(settings.recording_max_bytes + 1)
        content_type = recording.content_type
        filename = recording.filename

    upload = RecordingUpload(
        content=content,
        content_type=content_type,
        filename=filename,
        meeting_id=meeting_id,
        space_id=space_id,
        user_id=current_user.id,
    )
    pipeline = RecordingPipeline(settings)
    result = await _run_to_completion(pipeline.process(upload))
    return _build_recording_response(result)


@router.post("/process-transcript", response_model=TranscriptProcessResponse)
async def process_transcript(
    space_id: str,
    meeting_id: str,
    payload: TranscriptProcessRequest,
    current_user: CurrentUser = Depends(require_space_member),
) -> TranscriptProcessResponse:
    logger.info(
        "Transcript processing requested meeting_id=%s user_id=%s",
        meeting_id,
        current_user.id,
    )
    service = MeetingAiService(get_settings())
    return await service.process_transcript(
        space_id=space_id,
        meeting_id=meeting_id,
        transcript=payload.message,
    )


@router.get("", response_model=MeetingArtifactsResponse)
def get_meeting_artifacts(
    space_id: str,
    meeting_id: str,
    current_user: CurrentUser = Depends(require_space_member),
) -> MeetingArtifactsResponse:
    service = MeetingAiService(get_settings())
    return service.get_artifacts(space_id=space_id, meeting_id=meeting_id)


async def _run_to_completion(coroutine: Coroutine[Any, Any, _T]) -> _T:
    # A client disconnect cancels this handler but not the pipeline run.
    task = asyncio.ensure_future(coroutine)
    _RUNNING_PIPELINES.add(task)
    task.add_done_callback(_RUNNING_PIPELINES.discard)
    return await asyncio.shield(task)


def _build_recording_response(result: RecordingPipelineResult) -> JSONResponse:
    if result.outcome == PipelineOutcome.failed:
        body: dict[str, Any] = MessageResponse(message=result.message).model_dump()
    elif result.outcome == PipelineOutcome.completed_with_errors:
        body = RecordingPartialResponse(
            message=result.message,
            transcript=result.transcript,
            summary=result.summary,
            tasks=result.action_items,
        ).model_dump(by_alias=True)
    else:
        body = RecordingProcessedResponse(
            message=result.message,
            transcript_length=result.transcript_length or 0,
            summary_generated=result.summary is not None,
            tasks_generated=result.action_items is not None,
        ).model_dump(by_alias=True)
    return JSONResponse(status_code=result.status_code, content=body)
