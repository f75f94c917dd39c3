import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from fastapi import HTTPException, status

from app.core.config import Settings
from app.schemas.meeting_webhook import (
    FathomWebhookResponse,
    MeetingTasksSummary,
    WebhookOutcome,
    WebhookRouteSummary,
)
from app.services.meeting_models import MeetingEvent
from app.services.meeting_task_orchestrator import (
    MeetingTaskOrchestrator,
    OrchestrationOutcome,
    OrchestrationResult,
)

logger = logging.getLogger(__name__)


class FathomWebhookService:
    def __init__(
        self,
        settings: Settings,
        orchestrator: MeetingTaskOrchestrator | None = None,
    ) -> None:
        self.settings = settings
        self.orchestrator = orchestrator or MeetingTaskOrchestrator(settings)

    def process_webhook(self, payload: Mapping[str, Any]) -> FathomWebhookResponse:
        if not payload:
            logger.warning("Empty Fathom webhook payload received")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Empty payload",
            )

        event = MeetingEvent.from_payload(payload)
        logger.info(
            "Fathom webhook received event=%s meeting_title=%s share_url=%s",
            event.event or "unknown",
            event.display_title,
            event.share_url or event.url or None,
        )
        result = self.orchestrator.process(event)
        return self._build_response(event, result)

    def _build_response(
        self,
        event: MeetingEvent,
        result: OrchestrationResult,
    ) -> FathomWebhookResponse:
        received_at = datetime.now(UTC)
        if result.outcome is OrchestrationOutcome.unmatched:
            return FathomWebhookResponse(
                success=True,
                outcome=WebhookOutcome.unmatched,
                posted_to_clickup=False,
                message="Webhook received but no ClickUp mapping matched this meeting",
                meeting_title=event.display_title,
                received_at=received_at,
            )

        route_summary = None
        if result.route is not None:
            route_summary = WebhookRouteSummary(
                name=result.route.name,
                task_id=result.route.task_id,
                matched_keywords=list(result.route.matched_keywords),
            )

        if result.outcome is OrchestrationOutcome.aborted:
            return FathomWebhookResponse(
                success=False,
                outcome=WebhookOutcome.aborted,
                posted_to_clickup=False,
                message="Failed to post meeting comment to ClickUp",
                meeting_title=event.display_title,
                route=route_summary,
                error=result.error if self.settings.app_env == "development" else None,
                received_at=received_at,
            )

        return FathomWebhookResponse(
            success=True,
            outcome=WebhookOutcome.completed,
            posted_to_clickup=result.comment_posted,
            message="Webhook received and ClickUp comment added",
            meeting_title=event.display_title,
            route=route_summary,
            clickup_comment_id=result.comment_id,
            tasks=MeetingTasksSummary(
                extraction_status=result.extraction_status.value,
                extraction_reason=result.extraction_reason,
                extracted_count=result.extracted_count,
                task_creation_status=result.task_creation_status.value,
                task_creation_reason=result.task_creation_reason,
                list_id=result.tasks.list_id,
                parent_task_id=result.parent_task_id,
                eligible_subtasks_count=result.eligible_subtasks_count,
                created_subtasks_count=result.created_subtasks_count,
                subtask_ids=list(result.tasks.subtask_ids),
                confidence_threshold=result.confidence_threshold,
                below_threshold_count=result.below_threshold_count,
                errors=list(result.tasks.errors),
            ),
            received_at=received_at,
        )
