"""Subscription plan catalogue."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from terramail.errors import NotFound, ValidationFailure
from terramail.models import SubscriptionPlan
from terramail.store import Store

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({"name", "days", "price", "description", "is_active"})


def _checked(field: str, value: Any) -> Any:
    if field == "name":
        if not isinstance(value, str) or not value.strip():
            raise ValidationFailure("Plan name is required")
        return value.strip()
    if field == "days":
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ValidationFailure("Plan days must be a positive integer")
        return value
    if field == "price":
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
            raise ValidationFailure("Plan price must be a non-negative number")
        return round(float(value), 2)
    if field == "description":
        return value or ""
    if field == "is_active":
        if not isinstance(value, bool):
            raise ValidationFailure("is_active must be true or false")
        return value
    raise ValidationFailure(f"Unknown field: {field}")


def list_plans(store: Store, *, active_only: bool = True) -> list[SubscriptionPlan]:
    """Plans ordered by price ascending."""
    return store.list_plans(active_only)


def get_plan(store: Store, plan_id: str) -> SubscriptionPlan:
    plan = store.get_plan(plan_id)
    if plan is None:
        raise NotFound("Plan not found")
    return plan


def create_plan(
    store: Store,
    *,
    name: str,
    days: int,
    price: float,
    description: str | None = "",
    is_active: bool = True,
) -> SubscriptionPlan:
    plan = SubscriptionPlan(
        id=str(uuid4()),
        name=_checked("name", name),
        days=_checked("days", days),
        price=_checked("price", price),
        description=_checked("description", description),
        is_active=_checked("is_active", is_active),
        created_at=datetime.now(timezone.utc),
    )
    created = store.add_plan(plan)
    logger.info("plan created id=%s name=%s", created.id, created.name)
    return created


def update_plan(store: Store, plan_id: str, changes: dict[str, Any]) -> SubscriptionPlan:
    unknown = set(changes) - UPDATABLE_FIELDS
    if unknown:
        raise ValidationFailure(f"Unknown fields: {', '.join(sorted(unknown))}")
    patch = {field: _checked(field, value) for field, value in changes.items()}
    plan = store.update_plan(plan_id, patch)
    if plan is None:
        raise NotFound("Plan not found")
    return plan


def delete_plan(store: Store, plan_id: str) -> None:
    """Remove the plan; purchases that reference it are kept."""
    if not store.delete_plan(plan_id):
        raise NotFound("Plan not found")
    logger.info("plan deleted id=%s", plan_id)


__all__ = [
    "UPDATABLE_FIELDS",
    "list_plans",
    "get_plan",
    "create_plan",
    "update_plan",
    "delete_plan",
]
