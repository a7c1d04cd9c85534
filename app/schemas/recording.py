from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RecordingProcessedResponse(CamelModel):
    message: str
    transcript_length: int
    summary_generated: bool
    tasks_generated: bool


class RecordingPartialResponse(CamelModel):
    message: str
    transcript: str | None = None
    summary: str | None = None
    tasks: str | None = None


class MessageResponse(BaseModel):
    message: str


class TranscriptProcessRequest(BaseModel):
    message: str = Field(..., description="Transcript text to summarize.")


class TranscriptProcessResponse(CamelModel):
    message: str
    summary_status: str
    tasks_status: str
    summary: str | None = None
    tasks: str | None = None
    meeting_updated: bool


class ActionItemResponse(BaseModel):
    text: str
    owner: str | None = None
    deadline: str | None = None


class MeetingArtifactsResponse(CamelModel):
    meeting_id: str
    transcript: str | None = None
    summary: str | None = None
    action_items_text: str | None = None
    action_items: list[ActionItemResponse] = Field(default_factory=list)
