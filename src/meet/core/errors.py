"""Domain exceptions and the uniform error envelope.

Every failure leaving a handler is rendered as::

    {"success": false, "error": {"code": "...", "message": "..."}}

The exception classes carry the envelope code and the HTTP status so the
API layer can map them without per-handler branching.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

DEFAULT_ERROR_MESSAGE = "An unexpected error occurred"


class MeetError(Exception):
    """Base class for errors raised by the meeting handlers."""

    code = "MEET_ERROR"
    status_code = 500

    def __init__(self, message: str = DEFAULT_ERROR_MESSAGE) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(MeetError):
    """Missing or malformed request input."""

    code = "VALIDATION_ERROR"
    status_code = 400


class NotFoundError(MeetError):
    """The requested meeting document does not exist."""

    code = "NOT_FOUND"
    status_code = 404


class ConfigurationError(MeetError):
    """Runtime configuration could not be loaded."""


class CredentialsNotConfiguredError(ConfigurationError):
    """Google OAuth client credentials are absent."""

    def __init__(self, message: str = "Google credentials not configured") -> None:
        super().__init__(message)


def error_envelope(code: str, message: str) -> dict[str, Any]:
    """Build the error response body."""
    return {
        "success": False,
        "error": {"code": code, "message": message or DEFAULT_ERROR_MESSAGE},
    }


def validate_required_fields(data: Mapping[str, Any], fields: Iterable[str]) -> None:
    """Raise ValidationError listing every field that is missing or empty.

    Missing keys, None, empty strings and empty collections all count as
    missing. Numeric zero and False are accepted.
    """
    missing = [field for field in fields if _is_blank(data.get(field))]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set)):
        return not value
    return False
