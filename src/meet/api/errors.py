"""Map every handler failure onto the ``{success: false, error: {...}}`` envelope.

- MeetError subclasses carry their own code and status.
- Request validation failures become 400 VALIDATION_ERROR.
- Routing errors (unknown path, wrong method) keep their status with
  NOT_FOUND / METHOD_NOT_ALLOWED codes.
- Anything else raised inside a meeting handler is caught by MeetRoute and
  returned as 500 MEET_ERROR.
"""

from __future__ import annotations

from collections.abc import Callable, Coroutine
from typing import Any

import structlog
from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.meet.config import Environment, get_settings
from src.meet.core.errors import DEFAULT_ERROR_MESSAGE, MeetError, error_envelope

logger = structlog.get_logger(__name__)

_HTTP_ERROR_CODES = {
    status.HTTP_400_BAD_REQUEST: "VALIDATION_ERROR",
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
    status.HTTP_503_SERVICE_UNAVAILABLE: "SERVICE_UNAVAILABLE",
}


def error_response(
    status_code: int,
    code: str,
    message: str,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """JSONResponse carrying the error envelope."""
    return JSONResponse(
        status_code=status_code,
        content=error_envelope(code, message),
        headers=headers,
    )


async def meet_error_handler(request: Request, exc: MeetError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("meet_function_error", path=request.url.path, code=exc.code, error=exc.message)
    return error_response(exc.status_code, exc.code, exc.message)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query")]
    message = first.get("msg", "Invalid request")
    if loc:
        message = f"{'.'.join(loc)}: {message}"
    return error_response(status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR", message)


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    headers = dict(exc.headers) if exc.headers else None
    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        allow_header = (headers or {}).get("Allow", "")
        allowed = ", ".join(
            m.strip() for m in allow_header.split(",") if m.strip() and m.strip() != "HEAD"
        )
        message = f"Only {allowed} method allowed" if allowed else "Method not allowed"
    else:
        message = str(exc.detail)
    code = _HTTP_ERROR_CODES.get(exc.status_code, "MEET_ERROR")
    return error_response(exc.status_code, code, message, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """Install the envelope handlers on the application."""
    app.add_exception_handler(MeetError, meet_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)


class MeetRoute(APIRoute):
    """APIRoute that turns unexpected handler exceptions into 500 MEET_ERROR.

    Known exceptions are re-raised for the application's exception handlers.
    The raw message is only exposed outside production.
    """

    def get_route_handler(self) -> Callable[[Request], Coroutine[Any, Any, Response]]:
        original_route_handler = super().get_route_handler()

        async def route_handler(request: Request) -> Response:
            try:
                return await original_route_handler(request)
            except (MeetError, RequestValidationError, StarletteHTTPException):
                raise
            except Exception as exc:
                logger.exception("meet_function_error", path=request.url.path)
                if get_settings().ENVIRONMENT == Environment.production:
                    message = DEFAULT_ERROR_MESSAGE
                else:
                    message = str(exc) or DEFAULT_ERROR_MESSAGE
                return error_response(
                    status.HTTP_500_INTERNAL_SERVER_ERROR, "MEET_ERROR", message
                )

        return route_handler
