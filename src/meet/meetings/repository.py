"""Meeting repository -- async CRUD over the Firestore ``meetings`` collection.

One document per meeting, keyed by the generated meeting id. Documents are
written from ``MeetingRecord.to_document()`` and read back through
``MeetingRecord.model_validate()`` so timestamps come out as datetimes.
"""

from __future__ import annotations

from typing import Any

import structlog
from google.api_core.exceptions import NotFound
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from src.meet.core.errors import NotFoundError
from src.meet.meetings.schemas import MeetingRecord

logger = structlog.get_logger(__name__)

MEETINGS_COLLECTION = "meetings"


def _snapshot_to_record(snapshot: Any) -> MeetingRecord:
    """Convert a Firestore DocumentSnapshot to MeetingRecord."""
    data = snapshot.to_dict() or {}
    return MeetingRecord.model_validate({**data, "meeting_id": snapshot.id})


class MeetingRepository:
    """Async CRUD operations for meeting documents.

    Args:
        client: Firestore AsyncClient.
        collection: Name of the collection holding meeting documents.
    """

    def __init__(
        self,
        client: firestore.AsyncClient,
        collection: str = MEETINGS_COLLECTION,
    ) -> None:
        self._client = client
        self._collection_name = collection

    @property
    def _collection(self) -> Any:
        return self._client.collection(self._collection_name)

    async def create_meeting(self, record: MeetingRecord) -> MeetingRecord:
        """Write a new meeting document under its meeting_id."""
        await self._collection.document(record.meeting_id).set(record.to_document())
        logger.debug("meeting_document_written", meeting_id=record.meeting_id)
        return record

    async def get_meeting(self, meeting_id: str) -> MeetingRecord | None:
        """Fetch a meeting by id, None if the document does not exist."""
        snapshot = await self._collection.document(meeting_id).get()
        if not snapshot.exists:
            return None
        return _snapshot_to_record(snapshot)

    async def list_meetings_for_user(
        self, user_id: str, limit: int = 50
    ) -> list[MeetingRecord]:
        """Meetings created by user_id, newest first.

        Requires a composite index on (created_by ASC, created_at DESC).
        """
        query = (
            self._collection.where(filter=FieldFilter("created_by", "==", user_id))
            .order_by("created_at", direction=firestore.Query.DESCENDING)
            .limit(limit)
        )
        return [_snapshot_to_record(snapshot) async for snapshot in query.stream()]

    async def update_meeting(self, meeting_id: str, fields: dict[str, Any]) -> None:
        """Merge fields into an existing meeting document.

        Raises:
            NotFoundError: If the document does not exist.
        """
        try:
            await self._collection.document(meeting_id).update(fields)
        except NotFound as exc:
            raise NotFoundError("Meeting not found") from exc

    async def delete_meeting(self, meeting_id: str) -> None:
        """Delete a meeting document. Deleting a missing document is a no-op."""
        await self._collection.document(meeting_id).delete()

    async def ping(self) -> None:
        """Round-trip to Firestore; raises on connectivity or permission errors."""
        async for _ in self._collection.limit(1).stream():
            break
