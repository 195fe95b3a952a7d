"""HTTP handlers for meeting CRUD.

Each handler is exposed under the name it is deployed as (meetCreateMeeting,
meetListMeetings, ...) and accepts exactly one HTTP method; any other method
is answered with 405 METHOD_NOT_ALLOWED by the exception handlers in
src/meet/api/errors.py. Successful responses are ``{"success": true, ...}``.
"""

from __future__ import annotations

import json
from typing import Any

import structlog
from fastapi import APIRouter, HTTPException, Query, Request, status
from pydantic import BaseModel, Field

from src.meet.api.errors import MeetRoute
from src.meet.core.errors import ValidationError
from src.meet.meetings.schemas import CreatedMeeting, JoinLink
from src.meet.meetings.service import MeetingService

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["meetings"], route_class=MeetRoute)


# ── Response Schemas ─────────────────────────────────────────────────────────


class CreateMeetingResponse(BaseModel):
    success: bool = True
    data: CreatedMeeting


class MeetingListData(BaseModel):
    meetings: list[dict[str, Any]] = Field(default_factory=list)
    total: int = 0


class ListMeetingsResponse(BaseModel):
    success: bool = True
    data: MeetingListData


class JoinLinkResponse(BaseModel):
    success: bool = True
    data: JoinLink


class MessageResponse(BaseModel):
    success: bool = True
    message: str


# ── Dependency Helpers ───────────────────────────────────────────────────────


def _get_meeting_service(request: Request) -> MeetingService:
    """Retrieve MeetingService from app.state, 503 if not available."""
    service = getattr(request.app.state, "meeting_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Meeting service not initialized",
        )
    return service


def _require_param(value: str | None, name: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{name} parameter required")
    return value.strip()


async def _read_json_object(request: Request) -> dict[str, Any]:
    """Parse the request body as a JSON object; an empty body reads as {}."""
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise ValidationError("Request body must be valid JSON") from exc
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


# ── Handlers ─────────────────────────────────────────────────────────────────


@router.post(
    "/meetCreateMeeting",
    response_model=CreateMeetingResponse,
    response_model_exclude_none=True,
)
async def meet_create_meeting(request: Request) -> dict[str, Any]:
    """Create a meeting with a generated join link.

    Body: title and start_time are required; description, duration (minutes),
    attendees, calendar_sync and created_by are optional.
    """
    service = _get_meeting_service(request)
    payload = await _read_json_object(request)
    meeting = await service.create_meeting(payload)
    return {"success": True, "data": meeting}


@router.get("/meetListMeetings", response_model=ListMeetingsResponse)
async def meet_list_meetings(
    request: Request,
    user_id: str | None = Query(default=None, description="Owner of the meetings"),
) -> dict[str, Any]:
    """List up to 50 meetings created by user_id, newest first."""
    service = _get_meeting_service(request)
    user_id = _require_param(user_id, "user_id")
    meetings = await service.list_meetings(user_id)
    return {
        "success": True,
        "data": {
            "meetings": [m.to_item() for m in meetings],
            "total": len(meetings),
        },
    }


@router.put("/meetUpdateMeeting", response_model=MessageResponse)
async def meet_update_meeting(
    request: Request,
    meeting_id: str | None = Query(default=None),
) -> dict[str, Any]:
    """Update fields of an existing meeting."""
    service = _get_meeting_service(request)
    meeting_id = _require_param(meeting_id, "meeting_id")
    payload = await _read_json_object(request)
    await service.update_meeting(meeting_id, payload)
    return {"success": True, "message": "Meeting updated successfully"}


@router.delete("/meetDeleteMeeting", response_model=MessageResponse)
async def meet_delete_meeting(
    request: Request,
    meeting_id: str | None = Query(default=None),
) -> dict[str, Any]:
    """Delete a meeting and its calendar event."""
    service = _get_meeting_service(request)
    meeting_id = _require_param(meeting_id, "meeting_id")
    await service.delete_meeting(meeting_id)
    return {"success": True, "message": "Meeting deleted successfully"}


@router.get("/meetGenerateJoinLink", response_model=JoinLinkResponse)
async def meet_generate_join_link(
    request: Request,
    meeting_id: str | None = Query(default=None),
) -> dict[str, Any]:
    """Return the join link of an existing meeting."""
    service = _get_meeting_service(request)
    meeting_id = _require_param(meeting_id, "meeting_id")
    link = await service.get_join_link(meeting_id)
    return {"success": True, "data": link}
