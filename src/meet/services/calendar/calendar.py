"""Google Calendar service for meetings synced to the organizer's calendar.

Creates events with a Google Meet conference attached, keeps them in step
with meeting updates and removes them on delete. All Google API calls are
wrapped in asyncio.to_thread() so the blocking client does not stall the
event loop, and each request runs on its own authorized transport.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta
from typing import Any

import structlog
from googleapiclient.errors import HttpError

from src.meet.meetings.schemas import parse_start_time
from src.meet.services.calendar.auth import CalendarAuthManager

logger = structlog.get_logger(__name__)

# Calendar returns these when an event was already deleted
_GONE_STATUSES = {404, 410}


def _event_time(start: datetime, time_zone: str) -> dict[str, str]:
    entry = {"dateTime": start.isoformat()}
    if start.tzinfo is None:
        entry["timeZone"] = time_zone
    return entry


def build_event_times(
    start_time: str, duration_minutes: int, time_zone: str
) -> tuple[dict[str, str], dict[str, str]]:
    """Calendar start and end entries; times with no UTC offset are pinned to time_zone."""
    start = parse_start_time(start_time)
    end = start + timedelta(minutes=duration_minutes)
    return _event_time(start, time_zone), _event_time(end, time_zone)


def build_event_body(
    *,
    title: str,
    start_time: str,
    duration_minutes: int,
    time_zone: str,
    description: str | None = None,
    attendees: list[str] | None = None,
) -> dict[str, Any]:
    """Build a Calendar event resource (without conference data)."""
    start, end = build_event_times(start_time, duration_minutes, time_zone)

    body: dict[str, Any] = {
        "summary": title,
        "start": start,
        "end": end,
    }
    if description is not None:
        body["description"] = description
    if attendees is not None:
        body["attendees"] = [{"email": email} for email in attendees]
    return body


class GoogleCalendarService:
    """Calendar API v3 operations for meeting sync.

    Args:
        auth_manager: CalendarAuthManager for the organizer account.
        calendar_id: Calendar to write events to ("primary" by default).
        time_zone: IANA zone applied to start times without an offset.
    """

    def __init__(
        self,
        auth_manager: CalendarAuthManager,
        calendar_id: str = "primary",
        time_zone: str = "UTC",
    ) -> None:
        self._auth = auth_manager
        self.calendar_id = calendar_id
        self.time_zone = time_zone

    async def create_meet_event(
        self,
        request_id: str,
        event_body: dict[str, Any],
    ) -> dict:
        """Insert an event and ask Calendar to attach a Google Meet conference.

        Args:
            request_id: Idempotency key for the conference request (the meeting id).
            event_body: Event resource from build_event_body().

        Returns:
            The created Calendar event dict, including hangoutLink.
        """
        body = {
            **event_body,
            "conferenceData": {
                "createRequest": {
                    "requestId": request_id,
                    "conferenceSolutionKey": {"type": "hangoutsMeet"},
                }
            },
        }
        service = self._auth.get_calendar_service()

        def _insert() -> dict:
            return (
                service.events()
                .insert(
                    calendarId=self.calendar_id,
                    body=body,
                    conferenceDataVersion=1,
                    sendUpdates="all",
                )
                .execute(http=self._auth.authorized_http())
            )

        event = await asyncio.to_thread(_insert)
        logger.info("calendar_event_created", event_id=event.get("id"), request_id=request_id)
        return event

    async def patch_event(self, event_id: str, changes: dict[str, Any]) -> dict:
        """Apply a partial update to an existing event."""
        service = self._auth.get_calendar_service()

        def _patch() -> dict:
            return (
                service.events()
                .patch(
                    calendarId=self.calendar_id,
                    eventId=event_id,
                    body=changes,
                    sendUpdates="all",
                )
                .execute(http=self._auth.authorized_http())
            )

        event = await asyncio.to_thread(_patch)
        logger.info("calendar_event_patched", event_id=event_id, fields=sorted(changes))
        return event

    async def delete_event(self, event_id: str) -> None:
        """Delete an event; an event that is already gone is not an error."""
        service = self._auth.get_calendar_service()

        def _delete() -> None:
            service.events().delete(
                calendarId=self.calendar_id,
                eventId=event_id,
                sendUpdates="all",
            ).execute(http=self._auth.authorized_http())

        try:
            await asyncio.to_thread(_delete)
        except HttpError as exc:
            if exc.resp.status not in _GONE_STATUSES:
                raise
            logger.info("calendar_event_already_gone", event_id=event_id)
            return
        logger.info("calendar_event_deleted", event_id=event_id)

    @staticmethod
    def get_meet_url(event: dict) -> str | None:
        """Extract the Google Meet URL from an event.

        Prefers hangoutLink, then the first video entry point in
        conferenceData.

        Args:
            event: Google Calendar event dict.

        Returns:
            Google Meet URL string, or None if not found.
        """
        if event.get("hangoutLink"):
            return event["hangoutLink"]
        conference = event.get("conferenceData", {})
        for ep in conference.get("entryPoints", []):
            if ep.get("entryPointType") == "video":
                return ep.get("uri")
        return None
