from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from terramail.errors import NotFound, ValidationFailure
from terramail.models import ProcessingSession
from terramail.models.processing_session import COUNTER_FIELDS
from terramail.store import Store

UPDATABLE_FIELDS = frozenset(COUNTER_FIELDS) | {"is_active"}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def get_or_create_current_session(store: Store, user_id: str) -> ProcessingSession:
    """Return the user's most recent session, creating a zeroed one if none exists."""
    now = _now()
    candidate = ProcessingSession(
        id=str(uuid4()),
        user_id=user_id,
        is_active=False,
        created_at=now,
        updated_at=now,
        **{field: 0 for field in COUNTER_FIELDS},
    )
    return store.ensure_current_session(user_id, candidate)


def get_session(store: Store, session_id: str) -> ProcessingSession:
    record = store.get_session(session_id)
    if record is None:
        raise NotFound("Session not found")
    return record


def update_session(
    store: Store, session_id: str, changes: dict[str, Any]
) -> ProcessingSession:
    unknown = set(changes) - UPDATABLE_FIELDS
    if unknown:
        raise ValidationFailure(f"Unknown fields: {', '.join(sorted(unknown))}")

    patch: dict[str, Any] = {}
    for field in COUNTER_FIELDS:
        if field not in changes:
            continue
        value = changes[field]
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ValidationFailure(f"{field} must be a non-negative integer")
        patch[field] = value
    if "is_active" in changes:
        if not isinstance(changes["is_active"], bool):
            raise ValidationFailure("is_active must be true or false")
        patch["is_active"] = changes["is_active"]
    patch["updated_at"] = _now()

    record = store.update_session(session_id, patch)
    if record is None:
        raise NotFound("Session not found")
    return record


__all__ = [
    "UPDATABLE_FIELDS",
    "get_or_create_current_session",
    "get_session",
    "update_session",
]
