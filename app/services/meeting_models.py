from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class MeetingParticipant:
    name: str = ""
    email: str = ""
    email_domain: str = ""

    def matching_fields(self) -> tuple[str, str, str]:
        return (self.name, self.email, self.email_domain)

    @classmethod
    def from_payload(cls, payload: Any) -> MeetingParticipant | None:
        if not isinstance(payload, Mapping):
            return None
        return cls(
            name=_to_text(payload.get("name")),
            email=_to_text(payload.get("email")),
            email_domain=_to_text(payload.get("email_domain")),
        )


@dataclass(frozen=True)
class TranscriptEntry:
    timestamp: str = ""
    speaker: str = ""
    text: str = ""

    @classmethod
    def from_payload(cls, payload: Any) -> TranscriptEntry | None:
        if not isinstance(payload, Mapping):
            return None
        speaker_payload = payload.get("speaker")
        speaker = ""
        if isinstance(speaker_payload, Mapping):
            speaker = _to_text(speaker_payload.get("display_name"))
        elif isinstance(speaker_payload, str):
            speaker = speaker_payload.strip()
        return cls(
            timestamp=_to_text(payload.get("timestamp")),
            speaker=speaker,
            text=_to_text(payload.get("text")),
        )


@dataclass(frozen=True)
class MeetingEvent:
    """A completed-meeting notification as sent by the recorder.

    Every field is optional on the wire. Missing or wrongly typed values
    become empty strings or empty tuples so downstream formatting can
    degrade instead of failing.
    """

    event: str = ""
    meeting_title: str = ""
    title: str = ""
    share_url: str = ""
    url: str = ""
    summary_markdown: str = ""
    summary: str = ""
    recorded_by: MeetingParticipant = field(default_factory=MeetingParticipant)
    calendar_invitees: tuple[MeetingParticipant, ...] = ()
    recording_start_time: str = ""
    recording_end_time: str = ""
    scheduled_start_time: str = ""
    scheduled_end_time: str = ""
    created_at: str = ""
    timestamp: str = ""
    transcript: tuple[TranscriptEntry, ...] = ()

    @property
    def display_title(self) -> str:
        return self.meeting_title or self.title or "Untitled Meeting"

    @property
    def display_share_url(self) -> str:
        return self.share_url or self.url or "N/A"

    @property
    def participant_names(self) -> list[str]:
        names = [self.recorded_by.name]
        names.extend(invitee.name for invitee in self.calendar_invitees)
        return [name for name in names if name]

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> MeetingEvent:
        default_summary = payload.get("default_summary")
        summary_markdown = ""
        if isinstance(default_summary, Mapping):
            summary_markdown = _to_text(default_summary.get("markdown_formatted"))

        recorded_by = MeetingParticipant.from_payload(payload.get("recorded_by"))

        raw_invitees = payload.get("calendar_invitees")
        invitees: list[MeetingParticipant] = []
        if isinstance(raw_invitees, list):
            for raw_invitee in raw_invitees:
                invitee = MeetingParticipant.from_payload(raw_invitee)
                if invitee:
                    invitees.append(invitee)

        raw_transcript = payload.get("transcript")
        transcript: list[TranscriptEntry] = []
        if isinstance(raw_transcript, list):
            for raw_entry in raw_transcript:
                entry = TranscriptEntry.from_payload(raw_entry)
                if entry:
                    transcript.append(entry)

        return cls(
            event=_to_text(payload.get("event")),
            meeting_title=_to_text(payload.get("meeting_title")),
            title=_to_text(payload.get("title")),
            share_url=_to_text(payload.get("share_url")),
            url=_to_text(payload.get("url")),
            summary_markdown=summary_markdown,
            summary=_to_text(payload.get("summary")),
            recorded_by=recorded_by or MeetingParticipant(),
            calendar_invitees=tuple(invitees),
            recording_start_time=_to_text(payload.get("recording_start_time")),
            recording_end_time=_to_text(payload.get("recording_end_time")),
            scheduled_start_time=_to_text(payload.get("scheduled_start_time")),
            scheduled_end_time=_to_text(payload.get("scheduled_end_time")),
            created_at=_to_text(payload.get("created_at")),
            timestamp=_to_text(payload.get("timestamp")),
            transcript=tuple(transcript),
        )


def _to_text(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    return ""
