"""Meeting operations behind the HTTP handlers.

MeetingService validates payloads, generates ids and join links, keeps the
optional calendar event in step, and performs the single document-store
operation each handler needs.
"""

from __future__ import annotations

import secrets
import time
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any

import pydantic
import structlog

from src.meet.core.errors import MeetError, NotFoundError, ValidationError, validate_required_fields
from src.meet.core.monitoring import record_meeting_operation
from src.meet.meetings.repository import MeetingRepository
from src.meet.meetings.schemas import (
    CreatedMeeting,
    JoinLink,
    MeetingCreate,
    MeetingRecord,
    MeetingUpdate,
)
from src.meet.services.calendar import (
    GoogleCalendarService,
    build_event_body,
    build_event_times,
)

logger = structlog.get_logger(__name__)

REQUIRED_CREATE_FIELDS = ("title", "start_time")

_ID_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


def generate_meeting_id() -> str:
    """Meeting id: ``meet_<epoch milliseconds>_<9 random base36 chars>``."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"meet_{int(time.time() * 1000)}_{suffix}"


def build_join_url(meeting_id: str, base_url: str = "https://meet.google.com") -> str:
    """Join link for a meeting that has no calendar-issued Meet link."""
    return f"{base_url.rstrip('/')}/{meeting_id}"


def _parse_model(model: type[pydantic.BaseModel], payload: dict[str, Any]) -> Any:
    """Validate payload into model, turning pydantic errors into ValidationError."""
    try:
        return model.model_validate(payload)
    except pydantic.ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first["loc"])
        message = first["msg"].removeprefix("Value error, ")
        raise ValidationError(f"{field}: {message}" if field else message) from exc


@contextmanager
def _tracked(operation: str) -> Iterator[None]:
    """Count the outcome of one meeting operation."""
    try:
        yield
    except MeetError as exc:
        record_meeting_operation(operation, exc.code.lower())
        raise
    except Exception:
        record_meeting_operation(operation, "error")
        raise
    record_meeting_operation(operation, "success")


class MeetingService:
    """Meeting CRUD with optional Google Calendar sync.

    Args:
        repository: Document store for meeting records.
        calendar_service: Calendar client, None when calendar sync is unavailable.
        meet_base_url: Base of generated join links.
        default_duration: Event length in minutes when the request gives none.
        list_limit: Maximum meetings returned by list_meetings().
    """

    def __init__(
        self,
        repository: MeetingRepository,
        calendar_service: GoogleCalendarService | None = None,
        *,
        meet_base_url: str = "https://meet.google.com",
        default_duration: int = 60,
        list_limit: int = 50,
    ) -> None:
        self._repo = repository
        self._calendar = calendar_service
        self._meet_base_url = meet_base_url
        self._default_duration = default_duration
        self._list_limit = list_limit

    @property
    def calendar_enabled(self) -> bool:
        return self._calendar is not None

    # ── Create ───────────────────────────────────────────────────────────

    async def create_meeting(self, payload: dict[str, Any]) -> CreatedMeeting:
        """Validate the body, optionally create the calendar event, store the record.

        Raises:
            ValidationError: If title or start_time is missing, or a field is malformed.
        """
        with _tracked("create"):
            validate_required_fields(payload, REQUIRED_CREATE_FIELDS)
            data: MeetingCreate = _parse_model(MeetingCreate, payload)

            meeting_id = generate_meeting_id()
            join_url = build_join_url(meeting_id, self._meet_base_url)
            calendar_event_id = None

            if data.calendar_sync:
                if self._calendar is None:
                    logger.warning("calendar_sync_unavailable", meeting_id=meeting_id)
                else:
                    event = await self._calendar.create_meet_event(
                        request_id=meeting_id,
                        event_body=build_event_body(
                            title=data.title,
                            start_time=data.start_time,
                            duration_minutes=data.duration or self._default_duration,
                            time_zone=self._calendar.time_zone,
                            description=data.description,
                            attendees=data.attendees,
                        ),
                    )
                    calendar_event_id = event.get("id")
                    join_url = GoogleCalendarService.get_meet_url(event) or join_url

            record = MeetingRecord(
                meeting_id=meeting_id,
                title=data.title,
                start_time=data.start_time,
                join_url=join_url,
                description=data.description,
                duration=data.duration or self._default_duration,
                attendees=data.attendees or [],
                calendar_event_id=calendar_event_id,
                created_by=data.created_by,
                created_at=datetime.now(timezone.utc),
            )
            await self._repo.create_meeting(record)

        logger.info(
            "meeting_created",
            meeting_id=meeting_id,
            created_by=data.created_by,
            calendar_synced=calendar_event_id is not None,
        )
        return CreatedMeeting(
            meeting_id=record.meeting_id,
            title=record.title,
            start_time=record.start_time,
            join_url=record.join_url,
            calendar_event_id=record.calendar_event_id,
        )

    # ── Read ─────────────────────────────────────────────────────────────

    async def list_meetings(self, user_id: str) -> list[MeetingRecord]:
        """Meetings created by user_id, newest first, capped at list_limit."""
        with _tracked("list"):
            meetings = await self._repo.list_meetings_for_user(user_id, limit=self._list_limit)
        logger.debug("meetings_listed", user_id=user_id, count=len(meetings))
        return meetings

    async def get_join_link(self, meeting_id: str) -> JoinLink:
        """Join link and headline details of an existing meeting.

        Raises:
            NotFoundError: If the meeting does not exist.
        """
        with _tracked("join_link"):
            meeting = await self._require_meeting(meeting_id)
        return JoinLink(
            meeting_id=meeting_id,
            join_url=meeting.join_url,
            title=meeting.title,
            start_time=meeting.start_time,
        )

    # ── Update / Delete ──────────────────────────────────────────────────

    async def update_meeting(self, meeting_id: str, payload: dict[str, Any]) -> None:
        """Apply a partial update and stamp updated_at.

        Raises:
            ValidationError: If the body has no updatable fields or an unknown field.
            NotFoundError: If the meeting does not exist.
        """
        with _tracked("update"):
            update: MeetingUpdate = _parse_model(MeetingUpdate, payload)
            # description is the only field that may be cleared
            fields = {
                key: value
                for key, value in update.model_dump(mode="json", exclude_unset=True).items()
                if value is not None or key == "description"
            }
            if not fields:
                raise ValidationError("No updatable fields provided")

            meeting = await self._require_meeting(meeting_id)

            if meeting.calendar_event_id and self._calendar is not None:
                changes = self._calendar_changes(self._calendar, meeting, fields)
                if changes:
                    await self._calendar.patch_event(meeting.calendar_event_id, changes)

            fields["updated_at"] = datetime.now(timezone.utc)
            await self._repo.update_meeting(meeting_id, fields)

        logger.info("meeting_updated", meeting_id=meeting_id, fields=sorted(fields))

    async def delete_meeting(self, meeting_id: str) -> None:
        """Delete the meeting and its calendar event.

        Raises:
            NotFoundError: If the meeting does not exist.
        """
        with _tracked("delete"):
            meeting = await self._require_meeting(meeting_id)
            if meeting.calendar_event_id and self._calendar is not None:
                await self._calendar.delete_event(meeting.calendar_event_id)
            await self._repo.delete_meeting(meeting_id)

        logger.info("meeting_deleted", meeting_id=meeting_id)

    # ── Helpers ──────────────────────────────────────────────────────────

    async def _require_meeting(self, meeting_id: str) -> MeetingRecord:
        meeting = await self._repo.get_meeting(meeting_id)
        if meeting is None:
            raise NotFoundError("Meeting not found")
        return meeting

    def _calendar_changes(
        self,
        calendar: GoogleCalendarService,
        meeting: MeetingRecord,
        fields: dict[str, Any],
    ) -> dict[str, Any]:
        """Calendar event fields affected by a meeting update."""
        changes: dict[str, Any] = {}
        if "title" in fields:
            changes["summary"] = fields["title"]
        if "description" in fields:
            changes["description"] = fields["description"]
        if "attendees" in fields:
            changes["attendees"] = [{"email": email} for email in fields["attendees"]]

        start_time = fields.get("start_time") or meeting.start_time
        if start_time and ("start_time" in fields or "duration" in fields):
            changes["start"], changes["end"] = build_event_times(
                start_time,
                fields.get("duration") or meeting.duration or self._default_duration,
                calendar.time_zone,
            )
        return changes
