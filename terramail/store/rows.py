"""Conversion between model instances and JSON-safe row dicts."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, TypeVar

from terramail.models import (
    LoginAttempt,
    ProcessingSession,
    SubscriptionPlan,
    User,
    UserPurchase,
)
from terramail.models.base import UTCDateTime

MODELS = {
    "users": User,
    "login_attempts": LoginAttempt,
    "processing_sessions": ProcessingSession,
    "subscription_plans": SubscriptionPlan,
    "user_purchases": UserPurchase,
}

M = TypeVar("M")


def _encode(value: Any) -> Any:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat()
    if isinstance(value, list):
        return list(value)
    return value


def _decode_datetime(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if dt is not None and dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def to_row(obj: Any) -> dict[str, Any]:
    return {col.key: _encode(getattr(obj, col.key)) for col in obj.__table__.columns}


def from_row(model: type[M], row: dict[str, Any]) -> M:
    values: dict[str, Any] = {}
    for col in model.__table__.columns:
        if col.key not in row:
            continue
        value = row[col.key]
        if isinstance(col.type, UTCDateTime):
            value = _decode_datetime(value)
        values[col.key] = value
    return model(**values)


__all__ = ["MODELS", "to_row", "from_row"]
