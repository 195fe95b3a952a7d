"""Integration tests for the meeting HTTP handlers.

Uses the InMemoryMeetingRepository test double and FastAPI TestClient.
Covers method enforcement, required-field validation, the error envelope,
and pass-through of data to and from the document store.
"""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from src.meet.meetings.service import MeetingService


# ── Method Enforcement ───────────────────────────────────────────────────────


class TestMethodEnforcement:
    """Every handler accepts exactly one HTTP method."""

    @pytest.mark.parametrize(
        ("path", "allowed", "wrong"),
        [
            ("/meetCreateMeeting", "POST", "GET"),
            ("/meetListMeetings", "GET", "POST"),
            ("/meetUpdateMeeting", "PUT", "POST"),
            ("/meetDeleteMeeting", "DELETE", "GET"),
            ("/meetGenerateJoinLink", "GET", "DELETE"),
        ],
    )
    def test_wrong_method_returns_405_envelope(self, client, path, allowed, wrong):
        response = client.request(wrong, path)

        assert response.status_code == 405
        assert response.json() == {
            "success": False,
            "error": {
                "code": "METHOD_NOT_ALLOWED",
                "message": f"Only {allowed} method allowed",
            },
        }

    def test_unknown_path_returns_404_envelope(self, client):
        response = client.get("/meetNothing")

        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "NOT_FOUND"


# ── Create ───────────────────────────────────────────────────────────────────


class TestCreateMeeting:
    """POST /meetCreateMeeting."""

    def test_create_returns_generated_meeting(self, client, repo):
        response = client.post(
            "/meetCreateMeeting",
            json={"title": "Design review", "start_time": "2026-11-02T15:00:00Z"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        data = body["data"]
        assert data["title"] == "Design review"
        assert data["start_time"] == "2026-11-02T15:00:00Z"
        assert data["meeting_id"].startswith("meet_")
        assert data["join_url"] == f"https://meet.google.com/{data['meeting_id']}"
        assert "calendar_event_id" not in data

    def test_create_persists_scheduled_document(self, client, repo):
        response = client.post(
            "/meetCreateMeeting",
            json={
                "title": "Design review",
                "start_time": "2026-11-02T15:00:00Z",
                "description": "Q4 roadmap",
                "duration": 45,
                "attendees": ["ana@example.com"],
                "created_by": "user-1",
            },
        )
        meeting_id = response.json()["data"]["meeting_id"]

        stored = repo.documents[meeting_id]
        assert stored["title"] == "Design review"
        assert stored["description"] == "Q4 roadmap"
        assert stored["duration"] == 45
        assert stored["attendees"] == ["ana@example.com"]
        assert stored["created_by"] == "user-1"
        assert stored["status"] == "scheduled"
        assert isinstance(stored["created_at"], datetime)

    def test_missing_fields_are_all_reported(self, client, repo):
        response = client.post("/meetCreateMeeting", json={})

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Missing required fields: title, start_time",
            },
        }
        assert repo.documents == {}

    def test_empty_title_counts_as_missing(self, client):
        response = client.post(
            "/meetCreateMeeting",
            json={"title": "", "start_time": "2026-11-02T15:00:00Z"},
        )

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Missing required fields: title"

    def test_malformed_start_time_rejected(self, client):
        response = client.post(
            "/meetCreateMeeting",
            json={"title": "Sync", "start_time": "next tuesday"},
        )

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["message"].startswith("start_time:")

    def test_non_object_body_rejected(self, client):
        response = client.post("/meetCreateMeeting", json=["title"])

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Request body must be a JSON object"

    def test_invalid_json_rejected(self, client):
        response = client.post(
            "/meetCreateMeeting",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_calendar_sync_uses_calendar_meet_link(
        self, repo, calendar_service, app_factory
    ):
        client = TestClient(app_factory(repo, calendar_service=calendar_service))

        response = client.post(
            "/meetCreateMeeting",
            json={
                "title": "Kickoff",
                "start_time": "2026-11-02T15:00:00Z",
                "calendar_sync": True,
            },
        )

        data = response.json()["data"]
        assert data["join_url"] == "https://meet.google.com/abc-defg-hij"
        assert data["calendar_event_id"] == "evt-123"
        assert repo.documents[data["meeting_id"]]["calendar_event_id"] == "evt-123"
        calendar_service.create_meet_event.assert_awaited_once()

    def test_null_optional_fields_use_defaults(
        self, repo, calendar_service, app_factory
    ):
        client = TestClient(app_factory(repo, calendar_service=calendar_service))

        response = client.post(
            "/meetCreateMeeting",
            json={
                "title": "Sync",
                "start_time": "2026-11-02T15:00:00Z",
                "description": None,
                "duration": None,
                "attendees": None,
                "calendar_sync": None,
                "created_by": None,
            },
        )

        assert response.status_code == 200
        meeting_id = response.json()["data"]["meeting_id"]
        stored = repo.documents[meeting_id]
        assert stored["attendees"] == []
        assert stored["duration"] == 60
        assert "calendar_event_id" not in stored
        calendar_service.create_meet_event.assert_not_awaited()


# ── List ─────────────────────────────────────────────────────────────────────


class TestListMeetings:
    """GET /meetListMeetings."""

    def test_user_id_required(self, client):
        response = client.get("/meetListMeetings")

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": {"code": "VALIDATION_ERROR", "message": "user_id parameter required"},
        }

    def test_lists_only_users_meetings_newest_first(self, client, repo, record_factory):
        older = record_factory(
            "meet_1_old", created_at=datetime(2026, 9, 1, tzinfo=timezone.utc)
        )
        newer = record_factory(
            "meet_2_new", created_at=datetime(2026, 10, 1, tzinfo=timezone.utc)
        )
        other = record_factory("meet_3_other", created_by="user-2")
        for record in (older, newer, other):
            repo.documents[record.meeting_id] = record.to_document()

        response = client.get("/meetListMeetings", params={"user_id": "user-1"})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total"] == 2
        assert [m["id"] for m in data["meetings"]] == ["meet_2_new", "meet_1_old"]
        first = data["meetings"][0]
        assert first["meeting_id"] == "meet_2_new"
        assert first["title"] == "Weekly sync"
        assert first["status"] == "scheduled"
        assert first["created_at"].startswith("2026-10-01T00:00:00")

    def test_partial_document_is_listed_as_stored(self, client, repo):
        repo.documents["meet_legacy"] = {
            "title": "old",
            "created_by": "u",
            "created_at": datetime(2026, 9, 1, tzinfo=timezone.utc),
            "room": "4B",
        }

        response = client.get("/meetListMeetings", params={"user_id": "u"})

        assert response.status_code == 200
        assert response.json()["data"] == {
            "meetings": [
                {
                    "id": "meet_legacy",
                    "meeting_id": "meet_legacy",
                    "title": "old",
                    "created_by": "u",
                    "created_at": "2026-09-01T00:00:00Z",
                    "room": "4B",
                }
            ],
            "total": 1,
        }

    def test_empty_list(self, client):
        response = client.get("/meetListMeetings", params={"user_id": "nobody"})

        assert response.status_code == 200
        assert response.json() == {"success": True, "data": {"meetings": [], "total": 0}}


# ── Update ───────────────────────────────────────────────────────────────────


class TestUpdateMeeting:
    """PUT /meetUpdateMeeting."""

    def test_meeting_id_required(self, client):
        response = client.put("/meetUpdateMeeting", json={"title": "x"})

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "meeting_id parameter required"

    def test_update_passes_fields_through(self, client, repo, record_factory):
        record = record_factory()
        repo.documents[record.meeting_id] = record.to_document()

        response = client.put(
            "/meetUpdateMeeting",
            params={"meeting_id": record.meeting_id},
            json={"title": "Renamed", "status": "cancelled"},
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Meeting updated successfully",
        }
        stored = repo.documents[record.meeting_id]
        assert stored["title"] == "Renamed"
        assert stored["status"] == "cancelled"
        assert isinstance(stored["updated_at"], datetime)

    def test_update_missing_meeting_is_404(self, client):
        response = client.put(
            "/meetUpdateMeeting",
            params={"meeting_id": "meet_missing"},
            json={"title": "Renamed"},
        )

        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "error": {"code": "NOT_FOUND", "message": "Meeting not found"},
        }

    def test_protected_field_rejected(self, client, repo, record_factory):
        record = record_factory()
        repo.documents[record.meeting_id] = record.to_document()

        response = client.put(
            "/meetUpdateMeeting",
            params={"meeting_id": record.meeting_id},
            json={"join_url": "https://evil.example.com"},
        )

        assert response.status_code == 400
        assert response.json()["error"]["message"].startswith("join_url:")
        assert repo.documents[record.meeting_id]["join_url"] == record.join_url

    def test_empty_update_rejected(self, client, repo, record_factory):
        record = record_factory()
        repo.documents[record.meeting_id] = record.to_document()

        response = client.put(
            "/meetUpdateMeeting", params={"meeting_id": record.meeting_id}, json={}
        )

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "No updatable fields provided"


# ── Delete ───────────────────────────────────────────────────────────────────


class TestDeleteMeeting:
    """DELETE /meetDeleteMeeting."""

    def test_meeting_id_required(self, client):
        response = client.delete("/meetDeleteMeeting")

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "VALIDATION_ERROR"

    def test_delete_removes_document(self, client, repo, record_factory):
        record = record_factory()
        repo.documents[record.meeting_id] = record.to_document()

        response = client.delete(
            "/meetDeleteMeeting", params={"meeting_id": record.meeting_id}
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Meeting deleted successfully",
        }
        assert record.meeting_id not in repo.documents

    def test_delete_missing_meeting_is_404(self, client):
        response = client.delete("/meetDeleteMeeting", params={"meeting_id": "nope"})

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"


# ── Join Link ────────────────────────────────────────────────────────────────


class TestGenerateJoinLink:
    """GET /meetGenerateJoinLink."""

    def test_returns_stored_link(self, client, repo, record_factory):
        record = record_factory(join_url="https://meet.google.com/abc-defg-hij")
        repo.documents[record.meeting_id] = record.to_document()

        response = client.get(
            "/meetGenerateJoinLink", params={"meeting_id": record.meeting_id}
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "data": {
                "meeting_id": record.meeting_id,
                "join_url": "https://meet.google.com/abc-defg-hij",
                "title": "Weekly sync",
                "start_time": "2026-11-02T15:00:00Z",
            },
        }

    def test_partial_document_returns_stored_fields(self, client, repo):
        repo.documents["meet_legacy"] = {"title": "old", "created_by": "u"}

        response = client.get("/meetGenerateJoinLink", params={"meeting_id": "meet_legacy"})

        assert response.status_code == 200
        assert response.json()["data"] == {
            "meeting_id": "meet_legacy",
            "join_url": None,
            "title": "old",
            "start_time": None,
        }

    def test_missing_meeting_is_404(self, client):
        response = client.get("/meetGenerateJoinLink", params={"meeting_id": "nope"})

        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "error": {"code": "NOT_FOUND", "message": "Meeting not found"},
        }

    def test_meeting_id_required(self, client):
        response = client.get("/meetGenerateJoinLink", params={"meeting_id": "  "})

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "meeting_id parameter required"


# ── Unexpected Failures ──────────────────────────────────────────────────────


class TestUnexpectedErrors:
    """Store failures surface as 500 MEET_ERROR without crashing the app."""

    def test_store_failure_returns_500_envelope(self, repo, app_factory):
        repo.get_meeting = AsyncMock(side_effect=RuntimeError("deadline exceeded"))
        client = TestClient(app_factory(repo))

        response = client.get("/meetGenerateJoinLink", params={"meeting_id": "m1"})

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "error": {"code": "MEET_ERROR", "message": "deadline exceeded"},
        }

    def test_error_without_message_uses_default(self, repo, app_factory, record_factory):
        record = record_factory("m1")
        repo.documents[record.meeting_id] = record.to_document()
        repo.delete_meeting = AsyncMock(side_effect=RuntimeError())
        client = TestClient(app_factory(repo))

        response = client.delete("/meetDeleteMeeting", params={"meeting_id": "m1"})

        assert response.status_code == 500
        assert response.json()["error"] == {
            "code": "MEET_ERROR",
            "message": "An unexpected error occurred",
        }

    def test_uninitialized_service_returns_503(self, repo, app_factory):
        app = app_factory(repo)
        app.state.meeting_service = None
        client = TestClient(app)

        response = client.get("/meetListMeetings", params={"user_id": "user-1"})

        assert response.status_code == 503
        assert response.json()["error"]["code"] == "SERVICE_UNAVAILABLE"

    def test_responses_carry_request_id(self, client):
        response = client.get("/meetListMeetings", params={"user_id": "user-1"})

        assert response.headers["X-Request-ID"]


def test_service_instance_is_used(repo, app_factory):
    """Handlers delegate to the MeetingService on app.state."""
    service = MeetingService(repository=repo)
    service.list_meetings = AsyncMock(return_value=[])
    client = TestClient(app_factory(repo, meeting_service=service))

    client.get("/meetListMeetings", params={"user_id": "user-9"})

    service.list_meetings.assert_awaited_once_with("user-9")
