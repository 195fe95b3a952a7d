"""Pydantic v2 schemas for meeting records and handler payloads.

The stored document mirrors ``MeetingRecord``; request bodies are validated
into ``MeetingCreate`` / ``MeetingUpdate`` after the required-field check.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ── Enums ────────────────────────────────────────────────────────────────────


class MeetingStatus(str, Enum):
    """Lifecycle status stored on the meeting document."""

    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# ── Helpers ──────────────────────────────────────────────────────────────────


def parse_start_time(value: str) -> datetime:
    """Parse an ISO 8601 start time; a trailing Z is read as UTC."""
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def _check_start_time(value: str) -> str:
    try:
        parse_start_time(value)
    except ValueError as exc:
        raise ValueError("start_time must be an ISO 8601 date-time") from exc
    return value


# ── Request Models ───────────────────────────────────────────────────────────


class MeetingCreate(BaseModel):
    """Body of the create handler."""

    title: str = Field(min_length=1)
    start_time: str = Field(description="ISO 8601 date-time, stored as given")
    description: str | None = None
    duration: int | None = Field(
        default=None, ge=1, le=1440, description="Length in minutes"
    )
    attendees: list[str] | None = None
    calendar_sync: bool | None = False
    created_by: str | None = Field(
        default=None, description="Owning user id, matched by the list handler"
    )

    @field_validator("start_time")
    @classmethod
    def check_start_time(cls, value: str) -> str:
        return _check_start_time(value)


class MeetingUpdate(BaseModel):
    """Body of the update handler. Only these fields may change."""

    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    start_time: str | None = None
    duration: int | None = Field(default=None, ge=1, le=1440)
    attendees: list[str] | None = None
    status: MeetingStatus | None = None

    @field_validator("start_time")
    @classmethod
    def check_start_time(cls, value: str | None) -> str | None:
        return None if value is None else _check_start_time(value)

# ── Stored Document ──────────────────────────────────────────────────────────


class MeetingRecord(BaseModel):
    """One document in the meetings collection.

    Reads are tolerant: documents written by other clients may lack fields
    or carry extra ones, and both survive a read unchanged.
    """

    model_config = ConfigDict(extra="allow")

    meeting_id: str
    title: str | None = None
    start_time: str | None = None
    join_url: str | None = None
    description: str | None = None
    duration: int | None = None
    attendees: list[str] | None = None
    calendar_event_id: str | None = None
    created_by: str | None = None
    status: MeetingStatus = MeetingStatus.SCHEDULED
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_document(self) -> dict:
        """Firestore payload; datetimes stay native so they store as timestamps."""
        data = self.model_dump(exclude={"meeting_id"}, exclude_none=True)
        data["meeting_id"] = self.meeting_id
        data["status"] = self.status.value
        return data

    def to_item(self) -> dict:
        """JSON-ready view of the stored fields only, keyed by ``id``."""
        data = self.model_dump(mode="json", exclude_unset=True)
        return {"id": self.meeting_id, **data}


# ── Response Models ──────────────────────────────────────────────────────────


class CreatedMeeting(BaseModel):
    """Data returned by the create handler."""

    meeting_id: str
    title: str
    start_time: str
    join_url: str
    calendar_event_id: str | None = None


class JoinLink(BaseModel):
    """Data returned by the join link handler."""

    meeting_id: str
    join_url: str | None = None
    title: str | None = None
    start_time: str | None = None
