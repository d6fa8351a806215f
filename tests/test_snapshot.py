import json
import sys

from scripts import store_snapshot
from terramail.services import plans, purchases, sessions, throttle
from terramail.store import COLLECTIONS
from tests.utils.auth import make_account


def _rows(snapshot):
    out = {}
    for name in COLLECTIONS:
        rows = snapshot[name]
        if name == "login_attempts":
            rows = [{k: v for k, v in r.items() if k != "id"} for r in rows]
            out[name] = sorted(rows, key=lambda r: (r["created_at"], r["ip_address"]))
        else:
            out[name] = sorted(rows, key=lambda r: r["id"])
    return out


def _populate(store):
    user = make_account(store, "flat@example.com")
    plan = plans.create_plan(store, name="Plano Standard", days=90, price=79.90)
    purchases.add_purchase(store, user_id=user.id, plan_id=plan.id)
    current = sessions.get_or_create_current_session(store, user.id)
    sessions.update_session(store, current.id, {"tested_count": 4})
    throttle.record_attempt(store, "1.2.3.4", "flat@example.com", False, "bad_password")
    return user


def test_json_snapshot_loads_into_sql(json_store, sql_store):
    _populate(json_store)

    sql_store.load(json_store.dump())

    assert _rows(sql_store.dump()) == _rows(json_store.dump())


def test_snapshot_script_roundtrip(json_store, tmp_path, monkeypatch):
    user = _populate(json_store)
    target = tmp_path / "dump.json"
    monkeypatch.setenv("STORE_BACKEND", "json")
    monkeypatch.setenv("JSON_STORE_PATH", str(json_store.path))
    monkeypatch.setattr(sys, "argv", ["store_snapshot.py", "export", str(target)])

    store_snapshot.main()

    data = json.loads(target.read_text(encoding="utf-8"))
    assert [u["id"] for u in data["users"]] == [user.id]
    assert "password_hash" in data["users"][0]
