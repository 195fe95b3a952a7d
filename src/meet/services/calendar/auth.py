"""Google Calendar authentication from an OAuth client and refresh token.

Builds user credentials for the organizer account and caches the Calendar
API resource. The resource's own ``httplib2.Http`` is not thread-safe, so
every request executed from a worker thread gets its own authorized
transport from ``authorized_http()``.
"""

from __future__ import annotations

from typing import Any

import google_auth_httplib2
import httplib2
import structlog
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build

from src.meet.core.credentials import OAuthClientConfig

logger = structlog.get_logger(__name__)

GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"

# Read/write access to events, required for conference creation
CALENDAR_SCOPES = [
    "https://www.googleapis.com/auth/calendar.events",
]


class CalendarAuthManager:
    """Manages Calendar API authentication for the organizer account.

    Args:
        client: OAuth client with a refresh token for the organizer.
    """

    def __init__(self, client: OAuthClientConfig) -> None:
        if not client.can_authorize:
            raise ValueError("A refresh token is required for calendar access")
        self._client = client
        self._credentials: Credentials | None = None
        self._service: Any = None

    def get_credentials(self) -> Credentials:
        """Refreshable user credentials; the access token is minted on first use."""
        if self._credentials is None:
            self._credentials = Credentials(
                token=None,
                refresh_token=self._client.refresh_token,
                token_uri=GOOGLE_TOKEN_URI,
                client_id=self._client.client_id,
                client_secret=self._client.client_secret,
                scopes=CALENDAR_SCOPES,
            )
        return self._credentials

    def authorized_http(self) -> google_auth_httplib2.AuthorizedHttp:
        """A fresh authorized transport for a single request."""
        return google_auth_httplib2.AuthorizedHttp(
            self.get_credentials(), http=httplib2.Http()
        )

    def get_calendar_service(self) -> Any:
        """Get the cached Calendar API v3 Resource, building it on first call."""
        if self._service is None:
            logger.info("building_calendar_service")
            self._service = build(
                "calendar",
                "v3",
                credentials=self.get_credentials(),
                cache_discovery=False,
            )
        return self._service
