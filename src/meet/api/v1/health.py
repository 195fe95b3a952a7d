"""Health check endpoints.

Provides liveness (/health) and readiness (/health/ready) checks. Cloud Run
uses these to determine if the container is alive and ready to serve traffic.
"""

from __future__ import annotations

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from src.meet.config import get_settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """Basic liveness check.

    No external dependencies are checked -- just that the server is running.
    """
    settings = get_settings()
    return {"status": "ok", "environment": settings.ENVIRONMENT.value}


async def _check_dependencies(request: Request) -> dict:
    """Check Firestore reachability and report calendar sync availability."""
    checks: dict = {"firestore": "ok", "calendar": "disabled"}

    repository = getattr(request.app.state, "meeting_repository", None)
    if repository is None:
        checks["firestore"] = "error"
        checks["firestore_error"] = "Meeting repository not initialized"
    else:
        try:
            await repository.ping()
        except Exception as e:
            checks["firestore"] = "error"
            checks["firestore_error"] = str(e)

    if getattr(request.app.state, "calendar_service", None) is not None:
        checks["calendar"] = "ok"

    return checks


@router.get("/health/ready")
async def readiness_check(request: Request):
    """Readiness check: verifies Firestore connectivity.

    Returns 200 if the document store answers, 503 otherwise. Calendar sync
    is optional and never fails readiness.
    """
    checks = await _check_dependencies(request)
    healthy = checks.get("firestore") == "ok"

    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if healthy else "degraded",
            "checks": checks,
        },
    )
