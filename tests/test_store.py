from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from terramail.errors import Conflict, NotFound, StoreUnavailable
from terramail.models import LoginAttempt, ProcessingSession, UserPurchase
from terramail.services import plans
from terramail.services.purchases import add_purchase
from terramail.services.sessions import get_or_create_current_session
from terramail.store import JsonFileStore
from tests.utils.auth import make_account

T0 = datetime(2020, 1, 1, 12, 0, tzinfo=timezone.utc)


def _attempt(ip, success=False, at=T0, email="x@example.com"):
    return LoginAttempt(ip_address=ip, user_email=email, success=success, created_at=at)


def test_duplicate_email_conflicts(store):
    make_account(store, "dup@example.com")
    with pytest.raises(Conflict):
        make_account(store, "dup@example.com")


def test_update_to_taken_email_conflicts(store):
    make_account(store, "one@example.com")
    other = make_account(store, "two@example.com")
    with pytest.raises(Conflict):
        store.update_user(other.id, {"email": "one@example.com"})


def test_list_users_newest_first(store):
    first = make_account(store, "first@example.com")
    store.update_user(first.id, {"created_at": T0})
    second = make_account(store, "second@example.com")
    assert [u.id for u in store.list_users()] == [second.id, first.id]


def test_delete_user_cascades(store):
    user = make_account(store, "gone@example.com")
    keeper = make_account(store, "keeper@example.com")
    plan = plans.create_plan(store, name="Basic", days=30, price=29.9)
    get_or_create_current_session(store, user.id)
    get_or_create_current_session(store, keeper.id)
    add_purchase(store, user_id=user.id, plan_id=plan.id)
    add_purchase(store, user_id=keeper.id, plan_id=plan.id)

    assert store.delete_user(user.id) is True

    assert store.get_user(user.id) is None
    assert store.list_sessions(user.id) == []
    assert store.list_purchases(user.id) == []
    assert len(store.list_sessions(keeper.id)) == 1
    assert len(store.list_purchases(keeper.id)) == 1
    assert store.delete_user(user.id) is False


def test_failed_attempts_counted_inside_window(store):
    store.add_login_attempt(_attempt("1.1.1.1", at=T0 - timedelta(minutes=20)), keep=100)
    store.add_login_attempt(_attempt("1.1.1.1", at=T0 - timedelta(minutes=5)), keep=100)
    store.add_login_attempt(_attempt("1.1.1.1", success=True, at=T0), keep=100)
    store.add_login_attempt(_attempt("2.2.2.2", at=T0), keep=100)

    since = T0 - timedelta(minutes=15)
    assert store.count_failed_attempts("1.1.1.1", since) == 1
    assert store.count_failed_attempts("2.2.2.2", since) == 1
    assert store.count_failed_attempts("3.3.3.3", since) == 0


def test_login_log_keeps_newest(store):
    for minute in range(8):
        store.add_login_attempt(
            _attempt(f"10.0.0.{minute}", at=T0 + timedelta(minutes=minute)), keep=5
        )
    # out-of-order timestamp: oldest of all, evicted immediately
    store.add_login_attempt(_attempt("10.0.0.99", at=T0 - timedelta(days=1)), keep=5)

    rows = store.list_login_attempts()
    assert len(rows) == 5
    assert [r.ip_address for r in rows] == [f"10.0.0.{m}" for m in (7, 6, 5, 4, 3)]


def test_login_log_ties_keep_append_order(store):
    for i in range(4):
        store.add_login_attempt(_attempt(f"10.0.1.{i}"), keep=3)
    assert [r.ip_address for r in store.list_login_attempts()] == [
        "10.0.1.3",
        "10.0.1.2",
        "10.0.1.1",
    ]


def test_ensure_current_session_requires_user(store):
    candidate = ProcessingSession(
        id=str(uuid4()),
        user_id="missing",
        approved_count=0,
        rejected_count=0,
        loaded_count=0,
        tested_count=0,
        is_active=False,
        created_at=T0,
        updated_at=T0,
    )
    with pytest.raises(NotFound):
        store.ensure_current_session("missing", candidate)


def test_plans_sorted_by_price(store):
    plans.create_plan(store, name="Gold", days=365, price=299.9)
    plans.create_plan(store, name="Basic", days=30, price=29.9)
    plans.create_plan(store, name="Hidden", days=10, price=5.0, is_active=False)

    assert [p.name for p in store.list_plans(active_only=True)] == ["Basic", "Gold"]
    assert [p.name for p in store.list_plans(active_only=False)] == [
        "Hidden",
        "Basic",
        "Gold",
    ]


def test_purchase_missing_plan_writes_nothing(store):
    user = make_account(store, "buyer@example.com", subscription_days=3)
    purchase = UserPurchase(
        id=str(uuid4()),
        user_id=user.id,
        plan_id="no-such-plan",
        days_added=30,
        amount_paid=29.9,
        payment_method="manual",
        created_at=T0,
    )
    with pytest.raises(NotFound):
        store.add_purchase(purchase, T0)
    assert store.list_purchases(user.id) == []
    assert store.get_user(user.id).subscription_days == 3


def test_dump_load_roundtrip(store, tmp_path):
    user = make_account(store, "snap@example.com")
    plan = plans.create_plan(store, name="Basic", days=30, price=29.9)
    add_purchase(store, user_id=user.id, plan_id=plan.id)
    store.add_login_attempt(_attempt("9.9.9.9"), keep=100)

    copy = JsonFileStore(tmp_path / "copy.json")
    copy.load(store.dump())

    assert copy.get_user(user.id).email == "snap@example.com"
    assert copy.get_user(user.id).subscription_days == 30
    assert [p.plan_id for p in copy.list_purchases(user.id)] == [plan.id]
    assert copy.count_failed_attempts("9.9.9.9", T0 - timedelta(minutes=1)) == 1


def test_corrupt_json_file_is_unavailable(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    store = JsonFileStore(path)
    with pytest.raises(StoreUnavailable):
        store.list_users()
    assert store.ping() is False


def test_missing_json_file_is_empty(tmp_path):
    store = JsonFileStore(tmp_path / "nested" / "fresh.json")
    assert store.list_users() == []
    assert store.ping() is True
    make_account(store, "first@example.com")
    assert (tmp_path / "nested" / "fresh.json").exists()
