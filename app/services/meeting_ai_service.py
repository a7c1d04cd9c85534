import logging

from fastapi import HTTPException, status

from app.core.config import Settings
from app.schemas.recording import (
    ActionItemResponse,
    MeetingArtifactsResponse,
    TranscriptProcessResponse,
)
from app.services.action_item_parser import parse_action_items
from app.services.meeting_store import MeetingStore, PersistenceFailed, create_meeting_store
from app.services.meeting_summary_service import MeetingSummaryService
from app.services.space_access import get_meeting_in_space
from app.services.summary_prompts import PromptKind

logger = logging.getLogger(__name__)


class MeetingAiService:
    def __init__(
        self,
        settings: Settings,
        meeting_store: MeetingStore | None = None,
        summary_service: MeetingSummaryService | None = None,
    ) -> None:
        self.settings = settings
        self.meeting_store = meeting_store or create_meeting_store(settings)
        self.summary_service = summary_service or MeetingSummaryService.from_settings(settings)

    async def process_transcript(
        self,
        *,
        space_id: str,
        meeting_id: str,
        transcript: str,
    ) -> TranscriptProcessResponse:
        if not transcript.strip():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Transcript text (message) is required in the body.",
            )
        get_meeting_in_space(self.meeting_store, space_id, meeting_id)

        artifacts = await self.summary_service.summarize(meeting_id, transcript)
        meeting_updated = False
        if artifacts.has_any_result:
            try:
                self.meeting_store.update_summary_and_action_items(
                    meeting_id,
                    summary=artifacts.summary,
                    action_items=artifacts.action_items,
                )
                meeting_updated = True
            except PersistenceFailed as exc:
                logger.warning(
                    "Summary/tasks save failed meeting_id=%s error=%s",
                    meeting_id,
                    exc,
                )

        return TranscriptProcessResponse(
            message="Transcript processing attempted.",
            summary_status=artifacts.status_for(PromptKind.summary),
            tasks_status=artifacts.status_for(PromptKind.tasks),
            summary=artifacts.summary,
            tasks=artifacts.action_items,
            meeting_updated=meeting_updated,
        )

    def get_artifacts(self, *, space_id: str, meeting_id: str) -> MeetingArtifactsResponse:
        meeting = get_meeting_in_space(self.meeting_store, space_id, meeting_id)
        action_items_text = meeting.get("follow_ups")
        return MeetingArtifactsResponse(
            meeting_id=str(meeting.get("meeting_id", meeting_id)),
            transcript=meeting.get("transcript"),
            summary=meeting.get("summary"),
            action_items_text=action_items_text,
            action_items=[
                ActionItemResponse(**item.to_dict())
                for item in parse_action_items(action_items_text)
            ],
        )
