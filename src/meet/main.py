"""FastAPI application factory.

Creates the app with logging middleware, metrics middleware, CORS, Sentry,
the error envelope handlers, lifespan wiring of the Firestore repository and
optional calendar sync, and the v1 API router.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.requests import Request
from fastapi.responses import Response

from src.meet.api.errors import register_exception_handlers
from src.meet.api.middleware.logging import LoggingMiddleware, configure_structlog
from src.meet.api.v1.router import router as v1_router
from src.meet.config import Settings, get_settings
from src.meet.core.credentials import get_google_oauth_client
from src.meet.core.errors import CredentialsNotConfiguredError
from src.meet.core.firestore import close_firestore, get_firestore_client
from src.meet.core.monitoring import MetricsMiddleware, get_metrics_response, init_sentry
from src.meet.meetings.repository import MeetingRepository
from src.meet.meetings.service import MeetingService
from src.meet.services.calendar import CalendarAuthManager, GoogleCalendarService

logger = structlog.get_logger(__name__)


def build_calendar_service(settings: Settings) -> GoogleCalendarService | None:
    """Calendar client when OAuth client and refresh token are configured, else None."""
    try:
        client = get_google_oauth_client(settings)
    except CredentialsNotConfiguredError:
        logger.info("calendar_sync_disabled", reason="credentials_not_configured")
        return None

    if not client.can_authorize:
        logger.info("calendar_sync_disabled", reason="refresh_token_missing")
        return None

    logger.info("calendar_sync_enabled", calendar_id=settings.GOOGLE_CALENDAR_ID)
    return GoogleCalendarService(
        auth_manager=CalendarAuthManager(client),
        calendar_id=settings.GOOGLE_CALENDAR_ID,
        time_zone=settings.CALENDAR_TIME_ZONE,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: wire repository and calendar on startup, release on shutdown."""
    settings = get_settings()
    configure_structlog()

    if settings.SENTRY_DSN:
        init_sentry(dsn=settings.SENTRY_DSN, environment=settings.ENVIRONMENT.value)

    repository = MeetingRepository(
        client=get_firestore_client(),
        collection=settings.MEETINGS_COLLECTION,
    )
    calendar_service = build_calendar_service(settings)

    app.state.meeting_repository = repository
    app.state.calendar_service = calendar_service
    app.state.meeting_service = MeetingService(
        repository=repository,
        calendar_service=calendar_service,
        meet_base_url=settings.MEET_BASE_URL,
        default_duration=settings.DEFAULT_MEETING_DURATION_MINUTES,
        list_limit=settings.MEETING_LIST_LIMIT,
    )
    logger.info(
        "meet_functions_started",
        environment=settings.ENVIRONMENT.value,
        collection=settings.MEETINGS_COLLECTION,
    )

    yield

    close_firestore()
    logger.info("meet_functions_stopped")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Meet Functions API",
        version="0.1.0",
        description="Meeting CRUD handlers backed by Firestore with Google Meet links",
        lifespan=lifespan,
    )

    register_exception_handlers(app)

    # Middleware is added in reverse order (last added = outermost)

    # CORS middleware
    if settings.CORS_ALLOWED_ORIGINS == "*":
        origins = ["*"]
    else:
        origins = [o.strip() for o in settings.CORS_ALLOWED_ORIGINS.split(",")]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Logging middleware (logs every request with timing)
    app.add_middleware(LoggingMiddleware)

    # Metrics middleware (outermost -- records Prometheus metrics for all requests)
    app.add_middleware(MetricsMiddleware)

    app.include_router(v1_router)

    # Prometheus metrics endpoint (infrastructure route, outside v1 router)
    @app.get("/metrics", include_in_schema=False)
    async def metrics(request: Request) -> Response:
        """Prometheus metrics endpoint."""
        return get_metrics_response()

    return app


# Module-level app for uvicorn
app = create_app()
