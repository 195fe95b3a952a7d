"""Lazily created Firestore async client.

Provides:
- get_firestore_client(): process-wide AsyncClient singleton
- close_firestore(): drop the singleton on shutdown
"""

from __future__ import annotations

from google.cloud import firestore

from src.meet.config import get_settings

# ── Module-level client (lazy init) ────────────────────────────────────────

_client: firestore.AsyncClient | None = None


def get_firestore_client() -> firestore.AsyncClient:
    """Get or create the Firestore AsyncClient singleton."""
    global _client
    if _client is None:
        settings = get_settings()
        _client = firestore.AsyncClient(
            project=settings.GCP_PROJECT_ID or None,
            database=settings.FIRESTORE_DATABASE,
        )
    return _client


def close_firestore() -> None:
    """Forget the singleton so the next call builds a fresh client."""
    global _client
    _client = None
