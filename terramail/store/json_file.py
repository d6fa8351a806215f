"""Flat-file store: the whole database is one JSON document.

Every operation runs as read -> mutate -> write under a single process-wide
lock, so concurrent requests are serialized instead of racing. Writes go to a
temporary file that replaces the document atomically.
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Iterator

from terramail.errors import Conflict, NotFound, StoreUnavailable
from terramail.models import (
    LoginAttempt,
    ProcessingSession,
    SubscriptionPlan,
    User,
    UserPurchase,
)
from terramail.store.base import COLLECTIONS, Snapshot, Store
from terramail.store.rows import from_row, to_row

logger = logging.getLogger(__name__)


def _empty() -> Snapshot:
    return {name: [] for name in COLLECTIONS}


def _sort_key(row: dict[str, Any], field: str) -> datetime:
    return datetime.fromisoformat(row[field])


class JsonFileStore(Store):
    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = Path(path)
        self._lock = threading.RLock()

    # -- file I/O -----------------------------------------------------------

    def _read(self) -> Snapshot:
        if not self.path.exists():
            return _empty()
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as exc:
            logger.exception("Failed to read JSON store %s", self.path)
            raise StoreUnavailable() from exc
        data = _empty()
        for name in COLLECTIONS:
            data[name] = list(raw.get(name) or [])
        return data

    def _write(self, data: Snapshot) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", dir=str(self.path.parent)
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(data, fh, ensure_ascii=False, indent=2)
                os.replace(tmp_name, self.path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as exc:
            logger.exception("Failed to write JSON store %s", self.path)
            raise StoreUnavailable() from exc

    @contextmanager
    def _reading(self) -> Iterator[Snapshot]:
        with self._lock:
            yield self._read()

    @contextmanager
    def _writing(self) -> Iterator[Snapshot]:
        """Yield the document for mutation; persist it if the block succeeds."""
        with self._lock:
            data = self._read()
            yield data
            self._write(data)

    @staticmethod
    def _find(rows: list[dict[str, Any]], key: str, value: Any) -> dict[str, Any] | None:
        for row in rows:
            if row.get(key) == value:
                return row
        return None

    @staticmethod
    def _patch(row: dict[str, Any], model: type, changes: dict[str, Any]) -> None:
        current = from_row(model, row)
        for field, value in changes.items():
            setattr(current, field, value)
        row.update(to_row(current))

    # -- users --------------------------------------------------------------

    def get_user(self, user_id: str) -> User | None:
        with self._reading() as data:
            row = self._find(data["users"], "id", user_id)
        return from_row(User, row) if row else None

    def get_user_by_email(self, email: str) -> User | None:
        with self._reading() as data:
            row = self._find(data["users"], "email", email)
        return from_row(User, row) if row else None

    def list_users(self) -> list[User]:
        with self._reading() as data:
            rows = sorted(
                data["users"], key=lambda r: _sort_key(r, "created_at"), reverse=True
            )
        return [from_row(User, row) for row in rows]

    def add_user(self, user: User) -> User:
        with self._writing() as data:
            if self._find(data["users"], "email", user.email):
                raise Conflict("Email already registered")
            data["users"].append(to_row(user))
        return user

    def update_user(self, user_id: str, changes: dict[str, Any]) -> User | None:
        with self._writing() as data:
            row = self._find(data["users"], "id", user_id)
            if row is None:
                return None
            email = changes.get("email")
            if email is not None:
                other = self._find(data["users"], "email", email)
                if other is not None and other["id"] != user_id:
                    raise Conflict("Email already registered")
            self._patch(row, User, changes)
            updated = from_row(User, row)
        return updated

    def delete_user(self, user_id: str) -> bool:
        with self._writing() as data:
            if self._find(data["users"], "id", user_id) is None:
                return False
            data["users"] = [r for r in data["users"] if r["id"] != user_id]
            data["processing_sessions"] = [
                r for r in data["processing_sessions"] if r["user_id"] != user_id
            ]
            data["user_purchases"] = [
                r for r in data["user_purchases"] if r["user_id"] != user_id
            ]
        return True

    # -- login audit --------------------------------------------------------

    def add_login_attempt(self, attempt: LoginAttempt, keep: int) -> None:
        with self._writing() as data:
            rows = data["login_attempts"]
            attempt.id = max((r["id"] for r in rows), default=0) + 1
            rows.append(to_row(attempt))
            if len(rows) > keep:
                # stable sort: equal timestamps keep append order
                rows.sort(key=lambda r: (_sort_key(r, "created_at"), r["id"]))
                data["login_attempts"] = rows[len(rows) - keep:]

    def count_failed_attempts(self, ip_address: str, since: datetime) -> int:
        with self._reading() as data:
            return sum(
                1
                for row in data["login_attempts"]
                if row["ip_address"] == ip_address
                and not row["success"]
                and _sort_key(row, "created_at") > since
            )

    def list_login_attempts(self) -> list[LoginAttempt]:
        with self._reading() as data:
            rows = sorted(
                data["login_attempts"],
                key=lambda r: (_sort_key(r, "created_at"), r["id"]),
                reverse=True,
            )
        return [from_row(LoginAttempt, row) for row in rows]

    # -- processing sessions ------------------------------------------------

    def _latest_session_row(self, data: Snapshot, user_id: str) -> dict[str, Any] | None:
        rows = [r for r in data["processing_sessions"] if r["user_id"] == user_id]
        if not rows:
            return None
        return max(rows, key=lambda r: _sort_key(r, "created_at"))

    def ensure_current_session(
        self, user_id: str, candidate: ProcessingSession
    ) -> ProcessingSession:
        with self._lock:
            with self._reading() as data:
                row = self._latest_session_row(data, user_id)
                if row is not None:
                    return from_row(ProcessingSession, row)
            with self._writing() as data:
                if self._find(data["users"], "id", user_id) is None:
                    raise NotFound("User not found")
                data["processing_sessions"].append(to_row(candidate))
        return candidate

    def get_session(self, session_id: str) -> ProcessingSession | None:
        with self._reading() as data:
            row = self._find(data["processing_sessions"], "id", session_id)
        return from_row(ProcessingSession, row) if row else None

    def update_session(
        self, session_id: str, changes: dict[str, Any]
    ) -> ProcessingSession | None:
        with self._writing() as data:
            row = self._find(data["processing_sessions"], "id", session_id)
            if row is None:
                return None
            self._patch(row, ProcessingSession, changes)
            updated = from_row(ProcessingSession, row)
        return updated

    def list_sessions(self, user_id: str | None = None) -> list[ProcessingSession]:
        with self._reading() as data:
            rows = [
                r
                for r in data["processing_sessions"]
                if user_id is None or r["user_id"] == user_id
            ]
        rows.sort(key=lambda r: _sort_key(r, "created_at"), reverse=True)
        return [from_row(ProcessingSession, row) for row in rows]

    # -- plans --------------------------------------------------------------

    def list_plans(self, active_only: bool) -> list[SubscriptionPlan]:
        with self._reading() as data:
            rows = [
                r for r in data["subscription_plans"] if r["is_active"] or not active_only
            ]
        rows.sort(key=lambda r: r["price"])
        return [from_row(SubscriptionPlan, row) for row in rows]

    def get_plan(self, plan_id: str) -> SubscriptionPlan | None:
        with self._reading() as data:
            row = self._find(data["subscription_plans"], "id", plan_id)
        return from_row(SubscriptionPlan, row) if row else None

    def add_plan(self, plan: SubscriptionPlan) -> SubscriptionPlan:
        with self._writing() as data:
            data["subscription_plans"].append(to_row(plan))
        return plan

    def update_plan(
        self, plan_id: str, changes: dict[str, Any]
    ) -> SubscriptionPlan | None:
        with self._writing() as data:
            row = self._find(data["subscription_plans"], "id", plan_id)
            if row is None:
                return None
            self._patch(row, SubscriptionPlan, changes)
            updated = from_row(SubscriptionPlan, row)
        return updated

    def delete_plan(self, plan_id: str) -> bool:
        with self._writing() as data:
            before = len(data["subscription_plans"])
            data["subscription_plans"] = [
                r for r in data["subscription_plans"] if r["id"] != plan_id
            ]
            return len(data["subscription_plans"]) != before

    # -- purchases ----------------------------------------------------------

    def list_purchases(self, user_id: str | None = None) -> list[UserPurchase]:
        with self._reading() as data:
            rows = [
                r
                for r in data["user_purchases"]
                if user_id is None or r["user_id"] == user_id
            ]
        rows.sort(key=lambda r: _sort_key(r, "created_at"), reverse=True)
        return [from_row(UserPurchase, row) for row in rows]

    def add_purchase(self, purchase: UserPurchase, now: datetime) -> User:
        with self._writing() as data:
            user_row = self._find(data["users"], "id", purchase.user_id)
            if user_row is None:
                raise NotFound("User not found")
            if self._find(data["subscription_plans"], "id", purchase.plan_id) is None:
                raise NotFound("Plan not found")
            data["user_purchases"].append(to_row(purchase))
            self._patch(
                user_row,
                User,
                {
                    "subscription_days": user_row["subscription_days"] + purchase.days_added,
                    "updated_at": now,
                },
            )
            updated = from_row(User, user_row)
        return updated

    # -- whole store --------------------------------------------------------

    def dump(self) -> Snapshot:
        with self._reading() as data:
            return data

    def load(self, snapshot: Snapshot) -> None:
        data = _empty()
        for name in COLLECTIONS:
            data[name] = [dict(row) for row in snapshot.get(name, [])]
        with self._lock:
            self._write(data)

    def ping(self) -> bool:
        try:
            with self._reading():
                pass
        except StoreUnavailable:
            return False
        return True
