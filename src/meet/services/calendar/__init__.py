"""Google Calendar integration for meetings with Google Meet links.

Provides async-wrapped event creation, patching and deletion using OAuth
user credentials for the organizer account.
"""

from src.meet.services.calendar.auth import CalendarAuthManager
from src.meet.services.calendar.calendar import (
    GoogleCalendarService,
    build_event_body,
    build_event_times,
)

__all__ = [
    "CalendarAuthManager",
    "GoogleCalendarService",
    "build_event_body",
    "build_event_times",
]
