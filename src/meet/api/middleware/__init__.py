"""API middleware package."""

from src.meet.api.middleware.logging import LoggingMiddleware

__all__ = ["LoggingMiddleware"]
