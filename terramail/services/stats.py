from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import NamedTuple

from terramail.store import Store

REVENUE_WINDOW = timedelta(days=30)


class SystemStats(NamedTuple):
    total_users: int
    admin_users: int
    banned_users: int
    active_users: int
    total_processed: int
    total_approved: int
    total_rejected: int
    total_loaded: int
    total_revenue: float
    monthly_revenue: float
    generated_at: datetime


def system_stats(store: Store, now: datetime | None = None) -> SystemStats:
    """Aggregate account, processing and revenue figures."""
    now = now or datetime.now(timezone.utc)
    users = store.list_users()
    sessions = store.list_sessions()
    purchases = store.list_purchases()
    since = now - REVENUE_WINDOW

    return SystemStats(
        total_users=len(users),
        admin_users=sum(1 for u in users if u.role == "admin"),
        banned_users=sum(1 for u in users if u.is_banned),
        active_users=sum(
            1 for u in users if not u.is_banned and (u.subscription_days or 0) > 0
        ),
        total_processed=sum(s.tested_count or 0 for s in sessions),
        total_approved=sum(s.approved_count or 0 for s in sessions),
        total_rejected=sum(s.rejected_count or 0 for s in sessions),
        total_loaded=sum(s.loaded_count or 0 for s in sessions),
        total_revenue=round(sum(float(p.amount_paid or 0) for p in purchases), 2),
        monthly_revenue=round(
            sum(
                float(p.amount_paid or 0)
                for p in purchases
                if p.created_at is not None and p.created_at > since
            ),
            2,
        ),
        generated_at=now,
    )


__all__ = ["SystemStats", "system_stats", "REVENUE_WINDOW"]
