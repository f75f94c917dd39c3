from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from app.core.config import Settings, parse_finite_float, parse_positive_ids
from app.services.meeting_models import MeetingEvent

logger = logging.getLogger(__name__)

DEFAULT_ROUTE_NAME = "default"


@dataclass(frozen=True)
class TaskRoutingConfig:
    enabled: bool | None = None
    list_id: str | None = None
    space_id: str | None = None
    folder_id: str | None = None
    status: str | None = None
    assignee_ids: tuple[int, ...] = ()
    confidence_threshold: float | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> TaskRoutingConfig | None:
        if not isinstance(payload, Mapping):
            return None
        raw_enabled = payload.get("enabled")
        raw_assignee_ids = payload.get("assigneeIds")
        assignee_ids: list[int] = []
        if isinstance(raw_assignee_ids, list):
            assignee_ids = parse_positive_ids(raw_assignee_ids)
        return cls(
            enabled=raw_enabled if isinstance(raw_enabled, bool) else None,
            list_id=_optional_text(payload.get("listId")),
            space_id=_optional_text(payload.get("spaceId")),
            folder_id=_optional_text(payload.get("folderId")),
            status=_optional_text(payload.get("status")),
            assignee_ids=tuple(assignee_ids),
            confidence_threshold=parse_finite_float(payload.get("confidenceThreshold")),
        )


@dataclass(frozen=True)
class MeetingRoute:
    name: str
    keywords: tuple[str, ...]
    task_id: str
    api_token: str | None = None
    space_id: str | None = None
    folder_id: str | None = None
    list_id: str | None = None
    task_routing: TaskRoutingConfig | None = None


@dataclass(frozen=True)
class ResolvedMeetingRoute:
    route: MeetingRoute
    matched_keywords: tuple[str, ...] = ()

    @property
    def name(self) -> str:
        return self.route.name

    @property
    def task_id(self) -> str:
        return self.route.task_id


@dataclass(frozen=True)
class RouteParseOutcome:
    index: int
    route: MeetingRoute | None = None
    reason: str | None = None

    @property
    def is_valid(self) -> bool:
        return self.route is not None


def parse_meeting_route(index: int, payload: Any) -> RouteParseOutcome:
    if not isinstance(payload, Mapping):
        return RouteParseOutcome(index=index, reason="route entry is not a JSON object")

    name = _optional_text(payload.get("name")) or ""
    task_id = _optional_text(payload.get("taskId")) or ""
    raw_keywords = payload.get("keywords")
    keywords: list[str] = []
    if isinstance(raw_keywords, list):
        for raw_keyword in raw_keywords:
            keyword = _optional_text(raw_keyword)
            if keyword:
                keywords.append(keyword)

    missing = [
        field_name
        for field_name, value in (("name", name), ("taskId", task_id), ("keywords", keywords))
        if not value
    ]
    if missing:
        return RouteParseOutcome(
            index=index,
            reason=f"missing required fields: {', '.join(missing)}",
        )

    return RouteParseOutcome(
        index=index,
        route=MeetingRoute(
            name=name,
            keywords=tuple(keywords),
            task_id=task_id,
            api_token=_optional_text(payload.get("apiToken")),
            space_id=_optional_text(payload.get("spaceId")),
            folder_id=_optional_text(payload.get("folderId")),
            list_id=_optional_text(payload.get("listId")),
            task_routing=TaskRoutingConfig.from_payload(payload.get("taskRouting")),
        ),
    )


def parse_meeting_routes(raw_routes: str) -> list[MeetingRoute]:
    if not raw_routes.strip():
        return []

    try:
        parsed = json.loads(raw_routes)
    except json.JSONDecodeError as exc:
        logger.error("Invalid CLICKUP_MEETING_ROUTING_JSON error=%s", exc)
        return []

    if not isinstance(parsed, list):
        logger.warning("CLICKUP_MEETING_ROUTING_JSON must be a JSON array")
        return []

    routes: list[MeetingRoute] = []
    for index, raw_route in enumerate(parsed):
        outcome = parse_meeting_route(index, raw_route)
        if outcome.route is None:
            logger.warning(
                "Skipping ClickUp route index=%s reason=%s",
                outcome.index,
                outcome.reason,
            )
            continue
        routes.append(outcome.route)
    return routes


def normalize_match_text(value: str) -> str:
    return value.lower().strip()


def build_matching_fields(event: MeetingEvent) -> list[str]:
    raw_fields = [event.meeting_title or event.title]
    raw_fields.extend(event.recorded_by.matching_fields())
    for invitee in event.calendar_invitees:
        raw_fields.extend(invitee.matching_fields())

    normalized_fields = (normalize_match_text(value) for value in raw_fields)
    return [value for value in normalized_fields if value]


def match_route_keywords(route: MeetingRoute, matching_fields: list[str]) -> tuple[str, ...]:
    matched: list[str] = []
    for raw_keyword in route.keywords:
        keyword = normalize_match_text(raw_keyword)
        if not keyword or keyword in matched:
            continue
        if any(keyword in matching_field for matching_field in matching_fields):
            matched.append(keyword)
    return tuple(matched)


class MeetingRouteResolver:
    def __init__(
        self,
        settings: Settings,
        routes: list[MeetingRoute] | None = None,
    ) -> None:
        self.settings = settings
        self.routes = (
            routes
            if routes is not None
            else parse_meeting_routes(settings.clickup_meeting_routing_json)
        )
        self.default_task_id = settings.clickup_default_task_id

    def resolve(self, event: MeetingEvent) -> ResolvedMeetingRoute | None:
        if not self.routes and not self.default_task_id:
            return None

        matching_fields = build_matching_fields(event)
        scored_routes: list[tuple[int, ResolvedMeetingRoute]] = []
        for route in self.routes:
            matched_keywords = match_route_keywords(route, matching_fields)
            if not matched_keywords:
                continue
            scored_routes.append(
                (
                    len(matched_keywords),
                    ResolvedMeetingRoute(route=route, matched_keywords=matched_keywords),
                ),
            )

        if scored_routes:
            # sorted() is stable, so equal scores keep configuration order.
            ranked_routes = sorted(scored_routes, key=lambda scored: scored[0], reverse=True)
            return ranked_routes[0][1]

        if self.default_task_id:
            return ResolvedMeetingRoute(
                route=MeetingRoute(
                    name=DEFAULT_ROUTE_NAME,
                    keywords=(),
                    task_id=self.default_task_id,
                ),
            )
        return None


def _optional_text(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    cleaned = value.strip()
    return cleaned or None
