from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class WebhookOutcome(StrEnum):
    unmatched = "unmatched"
    completed = "completed"
    aborted = "aborted"


class WebhookRouteSummary(BaseModel):
    name: str
    task_id: str
    matched_keywords: list[str] = Field(default_factory=list)


class MeetingTasksSummary(BaseModel):
    extraction_status: str
    extraction_reason: str | None = None
    extracted_count: int = 0
    task_creation_status: str
    task_creation_reason: str | None = None
    list_id: str | None = None
    parent_task_id: str | None = None
    eligible_subtasks_count: int = 0
    created_subtasks_count: int = 0
    subtask_ids: list[str] = Field(default_factory=list)
    confidence_threshold: float | None = None
    below_threshold_count: int = 0
    errors: list[str] = Field(default_factory=list)


class FathomWebhookResponse(BaseModel):
    success: bool
    outcome: WebhookOutcome
    posted_to_clickup: bool
    message: str
    meeting_title: str
    route: WebhookRouteSummary | None = None
    clickup_comment_id: str | None = None
    tasks: MeetingTasksSummary | None = None
    error: str | None = None
    received_at: datetime
