"""Google OAuth client credential lookup.

Remote runtime config wins over environment variables, key by key, so an
operator can rotate the secret without redeploying.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from src.meet.config import Settings, get_settings
from src.meet.core.errors import CredentialsNotConfiguredError
from src.meet.core.runtime_config import get_config_value, load_runtime_config


class OAuthClientConfig(BaseModel):
    """OAuth client used to call Google Calendar on behalf of the organizer."""

    client_id: str
    client_secret: str
    refresh_token: str | None = None

    @property
    def can_authorize(self) -> bool:
        """True when a refresh token is present to mint access tokens."""
        return bool(self.refresh_token)


def get_google_oauth_client(
    settings: Settings | None = None,
    runtime_config: dict[str, Any] | None = None,
) -> OAuthClientConfig:
    """Resolve the Google OAuth client from runtime config, then environment.

    Args:
        settings: Settings to read environment fallbacks from.
        runtime_config: Pre-loaded runtime config; loaded on demand if None.

    Raises:
        CredentialsNotConfiguredError: If client id or secret is missing.
    """
    settings = settings or get_settings()
    if runtime_config is None:
        runtime_config = load_runtime_config(settings)

    client_id = get_config_value(runtime_config, "google.client_id") or settings.GOOGLE_CLIENT_ID
    client_secret = (
        get_config_value(runtime_config, "google.client_secret") or settings.GOOGLE_CLIENT_SECRET
    )
    refresh_token = (
        get_config_value(runtime_config, "google.refresh_token") or settings.GOOGLE_REFRESH_TOKEN
    )

    if not client_id or not client_secret:
        raise CredentialsNotConfiguredError()

    return OAuthClientConfig(
        client_id=client_id,
        client_secret=client_secret,
        refresh_token=refresh_token or None,
    )
