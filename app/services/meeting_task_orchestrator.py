from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Generic, TypeVar

from app.core.config import Settings
from app.services.clickup_client import ClickUpApiError, ClickUpClient
from app.services.extracted_task_models import ExtractedTasksResult
from app.services.groq_action_items_client import GroqActionItemsClient, GroqActionItemsError
from app.services.meeting_content_formatter import (
    build_comment_text,
    build_parent_task_description,
    build_parent_task_name,
    build_subtask_description,
    build_transcript_text,
    markdown_to_comment_blocks,
)
from app.services.meeting_models import MeetingEvent
from app.services.meeting_routing import MeetingRouteResolver, ResolvedMeetingRoute
from app.services.route_settings import (
    RouteConfigurationError,
    resolve_clickup_api_token,
    resolve_confidence_threshold,
    resolve_task_assignee_ids,
    resolve_task_creation_enabled,
    resolve_task_folder_id,
    resolve_task_list_id,
    resolve_task_space_id,
    resolve_task_status,
)

logger = logging.getLogger(__name__)

ClickUpClientFactory = Callable[[str], ClickUpClient]
StageValue = TypeVar("StageValue")


class StageStatus(StrEnum):
    completed = "completed"
    completed_with_errors = "completed_with_errors"
    skipped = "skipped"
    failed = "failed"
    not_attempted = "not_attempted"


class OrchestrationOutcome(StrEnum):
    unmatched = "unmatched"
    completed = "completed"
    aborted = "aborted"


@dataclass(frozen=True)
class StageResult(Generic[StageValue]):
    status: StageStatus
    value: StageValue | None = None
    reason: str | None = None


@dataclass(frozen=True)
class CommentDelivery:
    client: ClickUpClient
    comment_id: str | None


@dataclass
class TaskCreationReport:
    list_id: str | None = None
    space_id: str | None = None
    folder_id: str | None = None
    parent_task_id: str | None = None
    eligible_subtasks_count: int = 0
    created_subtasks_count: int = 0
    subtask_ids: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


@dataclass
class OrchestrationResult:
    outcome: OrchestrationOutcome
    route: ResolvedMeetingRoute | None = None
    comment_posted: bool = False
    comment_id: str | None = None
    error: str | None = None
    extraction_status: StageStatus = StageStatus.not_attempted
    extraction_reason: str | None = None
    extracted_count: int = 0
    meeting_summary: str | None = None
    task_creation_status: StageStatus = StageStatus.not_attempted
    task_creation_reason: str | None = None
    confidence_threshold: float | None = None
    below_threshold_count: int = 0
    tasks: TaskCreationReport = field(default_factory=TaskCreationReport)

    @property
    def route_matched(self) -> bool:
        return self.route is not None

    @property
    def parent_task_id(self) -> str | None:
        return self.tasks.parent_task_id

    @property
    def eligible_subtasks_count(self) -> int:
        return self.tasks.eligible_subtasks_count

    @property
    def created_subtasks_count(self) -> int:
        return self.tasks.created_subtasks_count


class MeetingTaskOrchestrator:
    """Runs one meeting event through the ClickUp pipeline.

    The comment post is the only mandatory side effect once a route matches:
    its failure aborts the event. Extraction, parent task creation and each
    subtask creation fail independently and only reduce the reported counts.
    Calls are issued sequentially.
    """

    def __init__(
        self,
        settings: Settings,
        route_resolver: MeetingRouteResolver | None = None,
        clickup_client_factory: ClickUpClientFactory | None = None,
        groq_client: GroqActionItemsClient | None = None,
    ) -> None:
        self.settings = settings
        self.route_resolver = route_resolver or MeetingRouteResolver(settings)
        self.clickup_client_factory = clickup_client_factory or self._create_clickup_client
        self.groq_client = groq_client or self._create_groq_client()

    def process(self, event: MeetingEvent) -> OrchestrationResult:
        resolved_route = self.route_resolver.resolve(event)
        if resolved_route is None:
            logger.warning(
                "No ClickUp route matched meeting_title=%s",
                event.display_title,
            )
            return OrchestrationResult(outcome=OrchestrationOutcome.unmatched)

        comment_stage = self._post_comment(event, resolved_route)
        delivery = comment_stage.value
        if comment_stage.status is not StageStatus.completed or delivery is None:
            return OrchestrationResult(
                outcome=OrchestrationOutcome.aborted,
                route=resolved_route,
                error=comment_stage.reason,
            )
        result = OrchestrationResult(
            outcome=OrchestrationOutcome.completed,
            route=resolved_route,
            comment_posted=True,
            comment_id=delivery.comment_id,
        )

        extraction_stage = self._extract_tasks(event, resolved_route)
        result.extraction_status = extraction_stage.status
        result.extraction_reason = extraction_stage.reason
        extracted = extraction_stage.value
        if extraction_stage.status is not StageStatus.completed or extracted is None:
            return result

        result.extracted_count = len(extracted.tasks)
        result.meeting_summary = extracted.meeting_summary or None
        threshold = resolve_confidence_threshold(resolved_route, self.settings)
        result.confidence_threshold = threshold
        result.below_threshold_count = sum(
            1 for item in extracted.tasks if item.confidence < threshold
        )

        task_stage = self._create_tasks(
            event=event,
            route=resolved_route,
            extracted=extracted,
            client=delivery.client,
        )
        result.task_creation_status = task_stage.status
        result.task_creation_reason = task_stage.reason
        if task_stage.value is not None:
            result.tasks = task_stage.value
        return result

    def _post_comment(
        self,
        event: MeetingEvent,
        route: ResolvedMeetingRoute,
    ) -> StageResult[CommentDelivery]:
        try:
            client = self.clickup_client_factory(
                resolve_clickup_api_token(route, self.settings),
            )
            comment_id = client.post_task_comment(
                task_id=route.task_id,
                comment=markdown_to_comment_blocks(build_comment_text(event)),
                notify_all=False,
            )
        except (ClickUpApiError, RouteConfigurationError) as exc:
            logger.error(
                "ClickUp comment failed route=%s task_id=%s error=%s",
                route.name,
                route.task_id,
                exc,
            )
            return StageResult(status=StageStatus.failed, reason=str(exc))

        logger.info(
            "Posted meeting to ClickUp task meeting_title=%s route=%s task_id=%s "
            "matched_keywords=%s comment_id=%s",
            event.display_title,
            route.name,
            route.task_id,
            list(route.matched_keywords),
            comment_id,
        )
        return StageResult(
            status=StageStatus.completed,
            value=CommentDelivery(client=client, comment_id=comment_id),
        )

    def _extract_tasks(
        self,
        event: MeetingEvent,
        route: ResolvedMeetingRoute,
    ) -> StageResult[ExtractedTasksResult]:
        if not self.groq_client:
            return StageResult(
                status=StageStatus.skipped,
                reason="GROQ_API_KEY or GROQ_MODEL is missing.",
            )
        transcript_text = build_transcript_text(event)
        if not transcript_text:
            return StageResult(status=StageStatus.skipped, reason="Transcript not available.")

        try:
            extracted = self.groq_client.extract_tasks(
                meeting_title=event.display_title,
                participants=event.participant_names,
                transcript_text=transcript_text,
            )
        except GroqActionItemsError as exc:
            logger.warning(
                "Task extraction failed route=%s meeting_title=%s error=%s",
                route.name,
                event.display_title,
                exc,
            )
            return StageResult(status=StageStatus.failed, reason=str(exc))

        logger.info(
            "Extracted meeting tasks route=%s meeting_title=%s extracted_count=%s",
            route.name,
            event.display_title,
            len(extracted.tasks),
        )
        return StageResult(status=StageStatus.completed, value=extracted)

    def _create_tasks(
        self,
        *,
        event: MeetingEvent,
        route: ResolvedMeetingRoute,
        extracted: ExtractedTasksResult,
        client: ClickUpClient,
    ) -> StageResult[TaskCreationReport]:
        report = TaskCreationReport(
            list_id=resolve_task_list_id(route, self.settings),
            space_id=resolve_task_space_id(route),
            folder_id=resolve_task_folder_id(route),
        )
        if not resolve_task_creation_enabled(route, self.settings):
            logger.info("Task creation disabled route=%s", route.name)
            return StageResult(
                status=StageStatus.skipped,
                value=report,
                reason="Task creation is disabled for this route.",
            )
        if not report.list_id:
            logger.info("Task creation skipped, no list id resolved route=%s", route.name)
            return StageResult(
                status=StageStatus.skipped,
                value=report,
                reason="No ClickUp list id configured for task creation.",
            )
        if not extracted.tasks:
            return StageResult(
                status=StageStatus.skipped,
                value=report,
                reason="No action items were extracted.",
            )

        status = resolve_task_status(route, self.settings)
        assignee_ids = resolve_task_assignee_ids(route, self.settings)
        try:
            report.parent_task_id = client.create_task(
                list_id=report.list_id,
                name=build_parent_task_name(event),
                description=build_parent_task_description(
                    event,
                    extracted_count=len(extracted.tasks),
                    max_chars=self.settings.clickup_task_description_max_chars,
                ),
                assignees=assignee_ids,
                status=status,
            )
        except ClickUpApiError as exc:
            logger.error(
                "ClickUp parent task creation failed route=%s list_id=%s space_id=%s "
                "folder_id=%s error=%s",
                route.name,
                report.list_id,
                report.space_id,
                report.folder_id,
                exc,
            )
            report.errors.append(str(exc))
            return StageResult(status=StageStatus.failed, value=report, reason=str(exc))

        report.eligible_subtasks_count = len(extracted.tasks)
        for index, item in enumerate(extracted.tasks):
            try:
                subtask_id = client.create_task(
                    list_id=report.list_id,
                    name=item.task,
                    description=build_subtask_description(item),
                    assignees=assignee_ids,
                    status=status,
                    parent_task_id=report.parent_task_id,
                )
            except ClickUpApiError as exc:
                logger.warning(
                    "ClickUp subtask creation failed route=%s list_id=%s parent_task_id=%s "
                    "index=%s task=%s error=%s",
                    route.name,
                    report.list_id,
                    report.parent_task_id,
                    index,
                    item.task,
                    exc,
                )
                report.errors.append(f"Subtask {index + 1}: {exc}")
                continue
            report.subtask_ids.append(subtask_id)
            report.created_subtasks_count += 1

        logger.info(
            "Created ClickUp meeting tasks route=%s list_id=%s parent_task_id=%s "
            "eligible_subtasks=%s created_subtasks=%s",
            route.name,
            report.list_id,
            report.parent_task_id,
            report.eligible_subtasks_count,
            report.created_subtasks_count,
        )
        if report.created_subtasks_count < report.eligible_subtasks_count:
            return StageResult(
                status=StageStatus.completed_with_errors,
                value=report,
                reason="Some subtasks could not be created in ClickUp.",
            )
        return StageResult(status=StageStatus.completed, value=report)

    def _create_clickup_client(self, api_token: str) -> ClickUpClient:
        return ClickUpClient(
            api_token=api_token,
            timeout_seconds=self.settings.clickup_api_timeout_seconds,
            api_base_url=self.settings.clickup_api_base_url,
        )

    def _create_groq_client(self) -> GroqActionItemsClient | None:
        if not self.settings.groq_api_key:
            return None
        if not self.settings.groq_model:
            return None
        return GroqActionItemsClient(
            api_key=self.settings.groq_api_key,
            model=self.settings.groq_model,
            timeout_seconds=self.settings.groq_api_timeout_seconds,
            max_transcript_chars=self.settings.groq_max_transcript_chars,
            api_base_url=self.settings.groq_api_base_url,
        )
