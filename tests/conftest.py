"""Shared fixtures for meeting handler tests.

Provides:
- InMemoryMeetingRepository: test double for the Firestore repository
- A FastAPI app from create_app() with app.state wired to the double
- A TestClient that does not run the lifespan (no Firestore client is built)
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from src.meet.core.errors import NotFoundError
from src.meet.main import create_app
from src.meet.meetings.schemas import MeetingRecord
from src.meet.meetings.service import MeetingService


# ── In-Memory Repository ────────────────────────────────────────────────────


class InMemoryMeetingRepository:
    """In-memory test double for MeetingRepository."""

    def __init__(self) -> None:
        self.documents: dict[str, dict[str, Any]] = {}
        self.ping_error: Exception | None = None

    async def create_meeting(self, record: MeetingRecord) -> MeetingRecord:
        self.documents[record.meeting_id] = record.to_document()
        return record

    async def get_meeting(self, meeting_id: str) -> MeetingRecord | None:
        data = self.documents.get(meeting_id)
        if data is None:
            return None
        return MeetingRecord.model_validate({**data, "meeting_id": meeting_id})

    async def list_meetings_for_user(
        self, user_id: str, limit: int = 50
    ) -> list[MeetingRecord]:
        owned = [
            MeetingRecord.model_validate({**data, "meeting_id": meeting_id})
            for meeting_id, data in self.documents.items()
            if data.get("created_by") == user_id
        ]
        owned.sort(
            key=lambda m: m.created_at or datetime.min.replace(tzinfo=timezone.utc),
            reverse=True,
        )
        return owned[:limit]

    async def update_meeting(self, meeting_id: str, fields: dict[str, Any]) -> None:
        if meeting_id not in self.documents:
            raise NotFoundError("Meeting not found")
        self.documents[meeting_id].update(fields)

    async def delete_meeting(self, meeting_id: str) -> None:
        self.documents.pop(meeting_id, None)

    async def ping(self) -> None:
        if self.ping_error is not None:
            raise self.ping_error


def make_record(
    meeting_id: str = "meet_1700000000000_abc123xyz",
    *,
    created_by: str | None = "user-1",
    created_at: datetime | None = None,
    **overrides: Any,
) -> MeetingRecord:
    """Build a stored meeting record with sensible defaults."""
    fields: dict[str, Any] = {
        "meeting_id": meeting_id,
        "title": "Weekly sync",
        "start_time": "2026-11-02T15:00:00Z",
        "join_url": f"https://meet.google.com/{meeting_id}",
        "created_by": created_by,
        "created_at": created_at or datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc),
    }
    fields.update(overrides)
    return MeetingRecord(**fields)


# ── Fixtures ─────────────────────────────────────────────────────────────────


@pytest.fixture
def repo() -> InMemoryMeetingRepository:
    return InMemoryMeetingRepository()


@pytest.fixture
def calendar_service() -> MagicMock:
    """Mock GoogleCalendarService with async methods and real Meet URL extraction."""
    from src.meet.services.calendar import GoogleCalendarService

    service = MagicMock(spec=GoogleCalendarService)
    service.time_zone = "UTC"
    service.calendar_id = "primary"
    service.create_meet_event = AsyncMock(
        return_value={
            "id": "evt-123",
            "hangoutLink": "https://meet.google.com/abc-defg-hij",
        }
    )
    service.patch_event = AsyncMock(return_value={"id": "evt-123"})
    service.delete_event = AsyncMock(return_value=None)
    return service


@pytest.fixture
def meeting_service(repo) -> MeetingService:
    return MeetingService(repository=repo)


def build_test_app(repo, meeting_service=None, calendar_service=None):
    """create_app() with app.state wired to test doubles."""
    app = create_app()
    app.state.meeting_repository = repo
    app.state.calendar_service = calendar_service
    app.state.meeting_service = meeting_service or MeetingService(
        repository=repo, calendar_service=calendar_service
    )
    return app


@pytest.fixture
def app(repo):
    return build_test_app(repo)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def record_factory():
    """Factory for stored MeetingRecord instances."""
    return make_record


@pytest.fixture
def app_factory():
    """Factory for test apps wired to a given repository and calendar."""
    return build_test_app
