from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from terramail.models import UserPurchase
from terramail.services import accounts, plans, purchases, sessions
from terramail.services.stats import system_stats
from tests.utils.auth import make_account


def test_system_stats(store):
    now = datetime.now(timezone.utc)
    admin = make_account(store, "admin@example.com", role="admin", subscription_days=9999)
    active = make_account(store, "active@example.com")
    banned = make_account(store, "banned@example.com", subscription_days=10)
    make_account(store, "expired@example.com")
    accounts.set_ban(store, banned.id, True)

    plan = plans.create_plan(store, name="Basic", days=30, price=29.90)
    purchases.add_purchase(store, user_id=active.id, plan_id=plan.id)
    old = UserPurchase(
        id=str(uuid4()),
        user_id=admin.id,
        plan_id=plan.id,
        days_added=30,
        amount_paid=100.0,
        payment_method="manual",
        created_at=now - timedelta(days=45),
    )
    store.add_purchase(old, now - timedelta(days=45))

    for user, counts in ((active, (3, 1, 5, 4)), (admin, (2, 2, 0, 6))):
        current = sessions.get_or_create_current_session(store, user.id)
        sessions.update_session(
            store,
            current.id,
            dict(
                zip(
                    ("approved_count", "rejected_count", "loaded_count", "tested_count"),
                    counts,
                )
            ),
        )

    stats = system_stats(store)

    assert stats.total_users == 4
    assert stats.admin_users == 1
    assert stats.banned_users == 1
    assert stats.active_users == 2
    assert stats.total_processed == 10
    assert stats.total_approved == 5
    assert stats.total_rejected == 3
    assert stats.total_loaded == 5
    assert stats.total_revenue == pytest.approx(129.90)
    assert stats.monthly_revenue == pytest.approx(29.90)
    assert stats.generated_at >= now


def test_empty_store_stats(store):
    stats = system_stats(store)
    assert stats.total_users == 0
    assert stats.total_revenue == 0
