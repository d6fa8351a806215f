"""Entitlement purchases."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import NamedTuple, Optional
from uuid import uuid4

from terramail.errors import NotFound, ValidationFailure
from terramail.metrics import entitlement_days_granted_total, purchases_total
from terramail.models import SubscriptionPlan, User, UserPurchase
from terramail.store import Store

logger = logging.getLogger(__name__)


class PurchaseView(NamedTuple):
    purchase: UserPurchase
    plan: Optional[SubscriptionPlan]


class PurchaseResult(NamedTuple):
    purchase: UserPurchase
    user: User


def add_purchase(
    store: Store,
    *,
    user_id: str,
    plan_id: str,
    days_added: int | None = None,
    amount_paid: float | None = None,
    payment_method: str = "manual",
) -> PurchaseResult:
    """Record a purchase and credit its days to the account.

    ``days_added`` and ``amount_paid`` default to the plan's values. The
    purchase row and the balance increment are written together or not at all.
    """
    plan = store.get_plan(plan_id)
    if plan is None:
        raise NotFound("Plan not found")

    days = plan.days if days_added is None else days_added
    amount = plan.price if amount_paid is None else amount_paid
    if isinstance(days, bool) or not isinstance(days, int) or days <= 0:
        raise ValidationFailure("days_added must be a positive integer")
    if amount < 0:
        raise ValidationFailure("amount_paid must be non-negative")

    now = datetime.now(timezone.utc)
    purchase = UserPurchase(
        id=str(uuid4()),
        user_id=user_id,
        plan_id=plan_id,
        days_added=days,
        amount_paid=round(float(amount), 2),
        payment_method=payment_method or "manual",
        created_at=now,
    )
    user = store.add_purchase(purchase, now)

    purchases_total.labels(payment_method=purchase.payment_method).inc()
    entitlement_days_granted_total.inc(days)
    logger.info(
        "purchase recorded user=%s plan=%s days=%s balance=%s",
        user_id,
        plan_id,
        days,
        user.subscription_days,
    )
    return PurchaseResult(purchase=purchase, user=user)


def list_purchases(store: Store, user_id: str | None = None) -> list[PurchaseView]:
    """Purchases newest first, each with its plan if the plan still exists."""
    plans = {plan.id: plan for plan in store.list_plans(active_only=False)}
    return [
        PurchaseView(purchase=purchase, plan=plans.get(purchase.plan_id))
        for purchase in store.list_purchases(user_id)
    ]


__all__ = ["PurchaseView", "PurchaseResult", "add_purchase", "list_purchases"]
