from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from app.core.config import Settings
from app.services.language_detector import is_arabic
from app.services.openai_summarization_client import OpenAiSummarizationClient, SummarizationFailed
from app.services.summary_prompts import PromptKind, get_summary_prompts

logger = logging.getLogger(__name__)


@dataclass
class SummaryArtifacts:
    summary: str | None = None
    action_items: str | None = None
    language: str = "en"
    failures: list[SummarizationFailed] = field(default_factory=list)

    @property
    def has_any_result(self) -> bool:
        return self.summary is not None or self.action_items is not None

    def status_for(self, kind: PromptKind) -> str:
        for failure in self.failures:
            if failure.prompt_kind == kind:
                return "failed"
        return "completed"

    def failure_messages(self) -> list[str]:
        messages: list[str] = []
        for failure in self.failures:
            if failure.prompt_kind == PromptKind.summary:
                messages.append("AI summary generation failed.")
            else:
                messages.append("AI action item generation failed.")
        return messages


class MeetingSummaryService:
    """Generates the narrative summary and action-item list for a transcript.

    Both completions run concurrently and settle independently: a failure of
    one never cancels the other.
    """

    def __init__(self, client: OpenAiSummarizationClient) -> None:
        self.client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> MeetingSummaryService:
        return cls(
            OpenAiSummarizationClient(
                api_key=settings.openai_api_key,
                model=settings.openai_model,
                max_tokens=settings.openai_max_tokens,
                api_base_url=settings.openai_api_base_url,
                timeout_seconds=settings.openai_api_timeout_seconds,
            ),
        )

    async def summarize(self, meeting_id: str, transcript: str) -> SummaryArtifacts:
        prompts = get_summary_prompts(is_arabic(transcript))
        logger.info(
            "Summarization started meeting_id=%s language=%s transcript_length=%s",
            meeting_id,
            prompts.language,
            len(transcript),
        )
        kinds = (PromptKind.summary, PromptKind.tasks)
        results = await asyncio.gather(
            *(
                self.client.generate(prompts.for_kind(kind), transcript, prompt_kind=kind)
                for kind in kinds
            ),
            return_exceptions=True,
        )

        artifacts = SummaryArtifacts(language=prompts.language)
        for kind, result in zip(kinds, results):
            if isinstance(result, BaseException):
                failure = _as_summarization_failure(kind, result)
                logger.warning(
                    "Summarization failed meeting_id=%s kind=%s error=%s",
                    meeting_id,
                    kind.value,
                    failure,
                )
                artifacts.failures.append(failure)
                continue

            if kind == PromptKind.summary:
                artifacts.summary = result
            else:
                artifacts.action_items = result
            logger.info("Summarization completed meeting_id=%s kind=%s", meeting_id, kind.value)
        return artifacts


def _as_summarization_failure(kind: PromptKind, exc: BaseException) -> SummarizationFailed:
    if isinstance(exc, SummarizationFailed):
        return exc
    if not isinstance(exc, Exception):
        # Cancellation and interpreter exits are not summarization failures.
        raise exc
    failure = SummarizationFailed(kind, f"Unexpected summarization error: {exc}")
    failure.__cause__ = exc
    return failure
