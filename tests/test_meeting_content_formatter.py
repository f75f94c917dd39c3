import pytest

from app.services.extracted_task_models import ExtractedTaskItem
from app.services.meeting_content_formatter import (
    TRUNCATION_MARKER,
    build_comment_text,
    build_parent_task_description,
    build_parent_task_name,
    build_subtask_description,
    build_transcript_text,
    format_meeting_date,
    format_meeting_duration,
    markdown_to_comment_blocks,
    truncate_with_marker,
)
from app.services.meeting_models import MeetingEvent


def _event(**payload: object) -> MeetingEvent:
    return MeetingEvent.from_payload(payload)


def test_comment_text_places_title_date_url_and_markdown_summary() -> None:
    event = _event(
        meeting_title="OpenCables Weekly",
        title="ignored",
        share_url="https://fathom.video/share/abc",
        recording_start_time="2026-03-05T10:00:00Z",
        default_summary={"markdown_formatted": "## Notes\n- shipped"},
        summary="plain summary",
    )

    assert build_comment_text(event) == (
        "OpenCables Weekly 05-03-2026 : https://fathom.video/share/abc.\n"
        "\nKindly check summary as below:\n\n"
        "## Notes\n- shipped"
    )


def test_comment_text_falls_back_to_plain_summary_then_fixed_text() -> None:
    with_plain = _event(title="Sync", summary="  plain summary  ")
    without_summary = _event(title="Sync")

    assert build_comment_text(with_plain).endswith("\nplain summary")
    assert build_comment_text(with_plain).startswith("Sync N/A : N/A.")
    assert build_comment_text(without_summary).endswith("\nNo summary provided by Fathom.")


def test_meeting_date_uses_first_available_timestamp() -> None:
    assert format_meeting_date(_event(scheduled_start_time="2026-01-31T23:00:00+00:00")) == (
        "31-01-2026"
    )
    assert format_meeting_date(_event(created_at="2025-12-01T08:00:00Z")) == "01-12-2025"
    assert format_meeting_date(_event(timestamp="2025-07-04")) == "04-07-2025"
    assert format_meeting_date(_event()) == "N/A"
    assert format_meeting_date(_event(recording_start_time="yesterday")) == "N/A"


@pytest.mark.parametrize(
    ("payload", "expected"),
    [
        (
            {
                "recording_start_time": "2026-03-05T10:00:00Z",
                "recording_end_time": "2026-03-05T11:25:40Z",
            },
            "01h 25m",
        ),
        (
            {
                "recording_start_time": "2026-03-05T10:00:00Z",
                "recording_end_time": "2026-03-05T10:42:10Z",
            },
            "42m",
        ),
        (
            {
                "scheduled_start_time": "2026-03-05T10:00:00Z",
                "scheduled_end_time": "2026-03-05T10:30:00Z",
            },
            "30m",
        ),
        (
            {
                "recording_start_time": "2026-03-05T10:00:00Z",
                "recording_end_time": "2026-03-05T10:00:00Z",
            },
            "N/A",
        ),
        ({"recording_start_time": "2026-03-05T10:00:00Z"}, "N/A"),
    ],
)
def test_meeting_duration(payload: dict[str, object], expected: str) -> None:
    assert format_meeting_duration(MeetingEvent.from_payload(payload)) == expected


def test_plain_line_yields_single_block_with_unescaped_text() -> None:
    assert markdown_to_comment_blocks(r"Budget is \$5k \- approved\!") == [
        {"text": r"Budget is \$5k - approved!", "attributes": {}},
    ]


def test_headings_become_bold_and_lines_are_separated() -> None:
    blocks = markdown_to_comment_blocks("## Action Items\nShip it\n\nDone")

    assert blocks == [
        {"text": "Action Items", "attributes": {"bold": True}},
        {"text": "\n", "attributes": {}},
        {"text": "Ship it", "attributes": {}},
        {"text": "\n", "attributes": {}},
        {"text": "", "attributes": {}},
        {"text": "\n", "attributes": {}},
        {"text": "Done", "attributes": {}},
    ]


def test_links_become_separate_blocks_in_scan_order() -> None:
    blocks = markdown_to_comment_blocks(
        "### See [recording](https://fathom.video/x) and [doc](http://d.io/a) now",
    )

    assert blocks == [
        {"text": "See ", "attributes": {"bold": True}},
        {"text": "recording", "attributes": {"bold": True, "link": "https://fathom.video/x"}},
        {"text": " and ", "attributes": {"bold": True}},
        {"text": "doc", "attributes": {"bold": True, "link": "http://d.io/a"}},
        {"text": " now", "attributes": {"bold": True}},
    ]


def test_seven_hashes_is_not_a_heading() -> None:
    assert markdown_to_comment_blocks("####### too deep") == [
        {"text": "####### too deep", "attributes": {}},
    ]


def test_transcript_rendering_uses_placeholders() -> None:
    event = _event(
        transcript=[
            {"timestamp": "00:01:02", "speaker": {"display_name": "Sunil"}, "text": "Hello"},
            {"text": "Anyone there?"},
            "garbage",
        ],
    )

    assert build_transcript_text(event) == (
        "[00:01:02] Sunil: Hello\n[00:00:00] Unknown: Anyone there?"
    )


def test_parent_task_name() -> None:
    event = _event(
        title="OpenCables Weekly",
        recording_start_time="2026-03-05T10:00:00Z",
        recording_end_time="2026-03-05T11:05:00Z",
    )

    assert build_parent_task_name(event) == (
        "05-03-2026 - Meeting discussed tasks | Title: OpenCables Weekly | Duration: 01h 05m"
    )


def test_parent_task_description_lists_meeting_details_and_transcript() -> None:
    event = _event(
        title="OpenCables Weekly",
        share_url="https://fathom.video/share/abc",
        transcript=[{"timestamp": "00:00:05", "speaker": {"display_name": "Sunil"}, "text": "Hi"}],
    )

    description = build_parent_task_description(event, extracted_count=3)

    assert "Meeting: OpenCables Weekly" in description
    assert "Recording: https://fathom.video/share/abc" in description
    assert "Extracted action items: 3" in description
    assert description.endswith("Transcript:\n[00:00:05] Sunil: Hi")


def test_parent_task_description_without_transcript() -> None:
    description = build_parent_task_description(_event(title="x"), extracted_count=0)

    assert description.endswith("Transcript not available.")


def test_parent_task_description_is_truncated_within_budget() -> None:
    event = _event(
        title="Long",
        transcript=[{"text": "word " * 200} for _ in range(10)],
    )

    description = build_parent_task_description(event, extracted_count=1, max_chars=500)

    assert len(description) == 500
    assert description.endswith(TRUNCATION_MARKER)


def test_truncate_with_marker_keeps_short_values() -> None:
    assert truncate_with_marker("short", 10) == "short"
    assert truncate_with_marker("x" * 20, 5) == TRUNCATION_MARKER[:5]


def test_subtask_description() -> None:
    item = ExtractedTaskItem(task="Send quote", evidence="I'll send it", confidence=0.876)

    assert build_subtask_description(item) == "Evidence: I'll send it\nConfidence: 0.88"
    assert build_subtask_description(ExtractedTaskItem(task="x")) == (
        "Evidence: No evidence quote provided.\nConfidence: 0.00"
    )
