from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from app.core.config import clamp_unit_interval, parse_finite_float

TASK_PRIORITIES = frozenset({"high", "medium", "low"})
DEFAULT_PRIORITY = "medium"
UNASSIGNED_OWNER = "Unassigned"


@dataclass(frozen=True)
class ExtractedTaskItem:
    task: str
    owner: str = UNASSIGNED_OWNER
    due_date: str | None = None
    priority: str = DEFAULT_PRIORITY
    confidence: float = 0.0
    evidence: str = ""

    @classmethod
    def from_payload(cls, payload: Any) -> ExtractedTaskItem | None:
        if not isinstance(payload, Mapping):
            return None

        raw_task = payload.get("task")
        if not isinstance(raw_task, str):
            return None
        task = raw_task.strip()
        if not task:
            return None

        raw_owner = payload.get("owner")
        owner = raw_owner.strip() if isinstance(raw_owner, str) else ""

        raw_priority = payload.get("priority")
        priority = raw_priority.strip().lower() if isinstance(raw_priority, str) else ""
        if priority not in TASK_PRIORITIES:
            priority = DEFAULT_PRIORITY

        raw_confidence = payload.get("confidence")
        confidence = None
        if isinstance(raw_confidence, int | float):
            confidence = parse_finite_float(raw_confidence)

        raw_evidence = payload.get("evidence")
        return cls(
            task=task,
            owner=owner or UNASSIGNED_OWNER,
            due_date=_normalize_due_date(payload.get("due_date")),
            priority=priority,
            confidence=clamp_unit_interval(confidence) if confidence is not None else 0.0,
            evidence=raw_evidence.strip() if isinstance(raw_evidence, str) else "",
        )


@dataclass(frozen=True)
class ExtractedTasksResult:
    meeting_summary: str = ""
    tasks: tuple[ExtractedTaskItem, ...] = field(default_factory=tuple)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> ExtractedTasksResult:
        raw_summary = payload.get("meeting_summary")
        raw_tasks = payload.get("tasks")
        tasks: list[ExtractedTaskItem] = []
        if isinstance(raw_tasks, list):
            for raw_task in raw_tasks:
                item = ExtractedTaskItem.from_payload(raw_task)
                if item:
                    tasks.append(item)
        return cls(
            meeting_summary=raw_summary.strip() if isinstance(raw_summary, str) else "",
            tasks=tuple(tasks),
        )


def _normalize_due_date(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    cleaned = value.strip()
    if not cleaned:
        return None
    try:
        return date.fromisoformat(cleaned).isoformat()
    except ValueError:
        return None
