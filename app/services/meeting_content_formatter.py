from __future__ import annotations

import re
from datetime import datetime
from typing import Any

from app.services.extracted_task_models import ExtractedTaskItem
from app.services.meeting_models import MeetingEvent

NOT_AVAILABLE = "N/A"
NO_SUMMARY_TEXT = "No summary provided by Fathom."
SUMMARY_SEPARATOR = "\nKindly check summary as below:\n"
NO_TRANSCRIPT_TEXT = "Transcript not available."
NO_EVIDENCE_TEXT = "No evidence quote provided."
TRUNCATION_MARKER = "\n\n[Description truncated]"
PARENT_TASK_PREAMBLE = (
    "Action items discussed in this meeting were extracted automatically from the transcript. "
    "Each one is listed as a subtask of this task."
)

_ESCAPED_MARKDOWN_PATTERN = re.compile(r"\\([\\`*_{}\[\]()#+\-.!&])")
_HEADING_PATTERN = re.compile(r"^#{1,6}\s+")
_LINK_PATTERN = re.compile(r"\[([^\]]+)\]\((https?://[^\s)]+)\)")

CommentBlock = dict[str, Any]


def parse_event_datetime(raw_value: str) -> datetime | None:
    if not raw_value:
        return None
    try:
        return datetime.fromisoformat(raw_value)
    except ValueError:
        return None


def format_meeting_date(event: MeetingEvent) -> str:
    raw_date = (
        event.recording_start_time
        or event.scheduled_start_time
        or event.created_at
        or event.timestamp
    )
    parsed_date = parse_event_datetime(raw_date)
    if parsed_date is None:
        return NOT_AVAILABLE
    return parsed_date.strftime("%d-%m-%Y")


def format_meeting_duration(event: MeetingEvent) -> str:
    start = parse_event_datetime(event.recording_start_time)
    end = parse_event_datetime(event.recording_end_time)
    if start is None or end is None:
        start = parse_event_datetime(event.scheduled_start_time)
        end = parse_event_datetime(event.scheduled_end_time)
    if start is None or end is None:
        return NOT_AVAILABLE

    try:
        total_seconds = (end - start).total_seconds()
    except TypeError:
        # naive and aware timestamps cannot be subtracted
        return NOT_AVAILABLE
    if total_seconds <= 0:
        return NOT_AVAILABLE

    total_minutes = int(total_seconds // 60)
    hours, minutes = divmod(total_minutes, 60)
    if hours >= 1:
        return f"{hours:02d}h {minutes:02d}m"
    return f"{minutes:02d}m"


def get_summary_text(event: MeetingEvent) -> str:
    return event.summary_markdown or event.summary or NO_SUMMARY_TEXT


def build_comment_text(event: MeetingEvent) -> str:
    return "\n".join(
        [
            f"{event.display_title} {format_meeting_date(event)} : {event.display_share_url}.",
            SUMMARY_SEPARATOR,
            get_summary_text(event),
        ],
    )


def unescape_markdown(value: str) -> str:
    return _ESCAPED_MARKDOWN_PATTERN.sub(r"\1", value)


def markdown_to_comment_blocks(markdown: str) -> list[CommentBlock]:
    """Convert light markdown into ClickUp comment blocks.

    Headings become bold text and ``[label](url)`` spans become link blocks.
    Lines are separated by explicit newline blocks.
    """
    lines = markdown.split("\n")
    blocks: list[CommentBlock] = []

    for line_index, line in enumerate(lines):
        working_line = unescape_markdown(line)
        default_attributes: dict[str, Any] = {}
        if _HEADING_PATTERN.match(working_line):
            working_line = _HEADING_PATTERN.sub("", working_line, count=1)
            default_attributes = {"bold": True}

        last_index = 0
        for match in _LINK_PATTERN.finditer(working_line):
            if match.start() > last_index:
                blocks.append(
                    {
                        "text": working_line[last_index : match.start()],
                        "attributes": dict(default_attributes),
                    },
                )
            blocks.append(
                {
                    "text": match.group(1),
                    "attributes": {**default_attributes, "link": match.group(2)},
                },
            )
            last_index = match.end()

        if last_index < len(working_line) or not working_line:
            blocks.append(
                {
                    "text": working_line[last_index:],
                    "attributes": dict(default_attributes),
                },
            )

        if line_index < len(lines) - 1:
            blocks.append({"text": "\n", "attributes": {}})

    return blocks


def build_transcript_text(event: MeetingEvent) -> str:
    return "\n".join(
        f"[{entry.timestamp or '00:00:00'}] {entry.speaker or 'Unknown'}: {entry.text}"
        for entry in event.transcript
    )


def build_parent_task_name(event: MeetingEvent) -> str:
    return (
        f"{format_meeting_date(event)} - Meeting discussed tasks"
        f" | Title: {event.display_title}"
        f" | Duration: {format_meeting_duration(event)}"
    )


def build_parent_task_description(
    event: MeetingEvent,
    *,
    extracted_count: int,
    max_chars: int = 50000,
) -> str:
    transcript_text = build_transcript_text(event) or NO_TRANSCRIPT_TEXT
    description = "\n".join(
        [
            PARENT_TASK_PREAMBLE,
            "",
            f"Meeting: {event.display_title}",
            f"Date: {format_meeting_date(event)}",
            f"Duration: {format_meeting_duration(event)}",
            f"Recording: {event.display_share_url}",
            f"Extracted action items: {extracted_count}",
            "",
            "Transcript:",
            transcript_text,
        ],
    )
    return truncate_with_marker(description, max_chars)


def truncate_with_marker(value: str, max_chars: int, marker: str = TRUNCATION_MARKER) -> str:
    if len(value) <= max_chars:
        return value
    if max_chars <= len(marker):
        return marker[:max_chars]
    return value[: max_chars - len(marker)] + marker


def build_subtask_description(item: ExtractedTaskItem) -> str:
    return f"Evidence: {item.evidence or NO_EVIDENCE_TEXT}\nConfidence: {item.confidence:.2f}"
