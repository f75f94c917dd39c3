"""Per-route resolution of ClickUp tunables.

Every value is looked up on the resolved route first, then on the global
settings, then falls back to a built-in default.
"""

from app.core.config import Settings, clamp_unit_interval, parse_positive_ids
from app.services.meeting_routing import ResolvedMeetingRoute, TaskRoutingConfig

DEFAULT_TASK_STATUS = "backlog"


class RouteConfigurationError(Exception):
    pass


def resolve_clickup_api_token(route: ResolvedMeetingRoute, settings: Settings) -> str:
    token = route.route.api_token or settings.clickup_api_token
    if not token:
        raise RouteConfigurationError(
            f"Missing ClickUp API token for route '{route.name}' and CLICKUP_API_TOKEN is empty.",
        )
    return token


def resolve_task_list_id(route: ResolvedMeetingRoute, settings: Settings) -> str | None:
    task_routing = _task_routing(route)
    return (
        task_routing.list_id
        or route.route.list_id
        or settings.clickup_task_list_id
        or None
    )


def resolve_task_space_id(route: ResolvedMeetingRoute) -> str | None:
    return _task_routing(route).space_id or route.route.space_id


def resolve_task_folder_id(route: ResolvedMeetingRoute) -> str | None:
    return _task_routing(route).folder_id or route.route.folder_id


def resolve_task_status(route: ResolvedMeetingRoute, settings: Settings) -> str:
    return _task_routing(route).status or settings.clickup_task_status or DEFAULT_TASK_STATUS


def resolve_task_assignee_ids(route: ResolvedMeetingRoute, settings: Settings) -> list[int]:
    route_assignee_ids = _task_routing(route).assignee_ids
    if route_assignee_ids:
        return list(route_assignee_ids)
    if settings.clickup_task_assignee_ids:
        return list(settings.clickup_task_assignee_ids)
    # CLICKUP_TASK_ASSIGNEE_ID predates the list variable.
    return parse_positive_ids(settings.clickup_task_assignee_id.split(","))


def resolve_confidence_threshold(route: ResolvedMeetingRoute, settings: Settings) -> float:
    route_threshold = _task_routing(route).confidence_threshold
    if route_threshold is not None:
        return clamp_unit_interval(route_threshold)
    return clamp_unit_interval(settings.clickup_task_confidence_threshold)


def resolve_task_creation_enabled(route: ResolvedMeetingRoute, settings: Settings) -> bool:
    route_enabled = _task_routing(route).enabled
    if route_enabled is not None:
        return route_enabled
    return settings.clickup_task_creation_enabled


def _task_routing(route: ResolvedMeetingRoute) -> TaskRoutingConfig:
    return route.route.task_routing or TaskRoutingConfig()
