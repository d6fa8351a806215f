"""SQLAlchemy-backed store (SQLite locally, hosted Postgres in production)."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from terramail import db as db_module
from terramail.errors import Conflict, NotFound, StoreUnavailable
from terramail.models import (
    LoginAttempt,
    ProcessingSession,
    SubscriptionPlan,
    User,
    UserPurchase,
)
from terramail.store.base import COLLECTIONS, Snapshot, Store
from terramail.store.rows import MODELS, from_row, to_row

logger = logging.getLogger(__name__)

# children first so deletes respect foreign keys
_DELETE_ORDER = (
    "user_purchases",
    "processing_sessions",
    "login_attempts",
    "subscription_plans",
    "users",
)


class SqlStore(Store):
    @contextmanager
    def _session(self) -> Iterator[Session]:
        try:
            with db_module.SessionLocal() as db:
                yield db
        except IntegrityError as exc:
            logger.warning("Integrity error: %s", exc.orig)
            raise Conflict("Record conflicts with existing data") from exc
        except SQLAlchemyError as exc:
            logger.exception("Database error: %s", exc)
            raise StoreUnavailable() from exc

    # -- users --------------------------------------------------------------

    def get_user(self, user_id: str) -> User | None:
        with self._session() as db:
            return db.get(User, user_id)

    def get_user_by_email(self, email: str) -> User | None:
        with self._session() as db:
            return db.execute(select(User).where(User.email == email)).scalar_one_or_none()

    def list_users(self) -> list[User]:
        with self._session() as db:
            return list(
                db.execute(select(User).order_by(User.created_at.desc())).scalars()
            )

    def add_user(self, user: User) -> User:
        with self._session() as db:
            existing = db.execute(
                select(User.id).where(User.email == user.email)
            ).first()
            if existing:
                raise Conflict("Email already registered")
            db.add(user)
            db.commit()
            return user

    def update_user(self, user_id: str, changes: dict[str, Any]) -> User | None:
        with self._session() as db:
            user = db.get(User, user_id)
            if user is None:
                return None
            email = changes.get("email")
            if email is not None:
                clash = db.execute(
                    select(User.id).where(User.email == email, User.id != user_id)
                ).first()
                if clash:
                    raise Conflict("Email already registered")
            for field, value in changes.items():
                setattr(user, field, value)
            db.commit()
            return user

    def delete_user(self, user_id: str) -> bool:
        with self._session() as db:
            user = db.get(User, user_id)
            if user is None:
                return False
            db.execute(delete(ProcessingSession).where(ProcessingSession.user_id == user_id))
            db.execute(delete(UserPurchase).where(UserPurchase.user_id == user_id))
            db.delete(user)
            db.commit()
            return True

    # -- login audit --------------------------------------------------------

    def add_login_attempt(self, attempt: LoginAttempt, keep: int) -> None:
        with self._session() as db:
            db.add(attempt)
            db.flush()
            total = db.execute(select(func.count(LoginAttempt.id))).scalar_one()
            if total > keep:
                newest = (
                    select(LoginAttempt.id)
                    .order_by(LoginAttempt.created_at.desc(), LoginAttempt.id.desc())
                    .limit(keep)
                )
                db.execute(
                    delete(LoginAttempt)
                    .where(LoginAttempt.id.not_in(newest))
                    .execution_options(synchronize_session=False)
                )
            db.commit()

    def count_failed_attempts(self, ip_address: str, since: datetime) -> int:
        with self._session() as db:
            return db.execute(
                select(func.count(LoginAttempt.id)).where(
                    LoginAttempt.ip_address == ip_address,
                    LoginAttempt.success.is_(False),
                    LoginAttempt.created_at > since,
                )
            ).scalar_one()

    def list_login_attempts(self) -> list[LoginAttempt]:
        with self._session() as db:
            return list(
                db.execute(
                    select(LoginAttempt).order_by(
                        LoginAttempt.created_at.desc(), LoginAttempt.id.desc()
                    )
                ).scalars()
            )

    # -- processing sessions ------------------------------------------------

    def ensure_current_session(
        self, user_id: str, candidate: ProcessingSession
    ) -> ProcessingSession:
        with self._session() as db:
            current = db.execute(
                select(ProcessingSession)
                .where(ProcessingSession.user_id == user_id)
                .order_by(ProcessingSession.created_at.desc())
                .limit(1)
            ).scalar_one_or_none()
            if current is not None:
                return current
            if db.get(User, user_id) is None:
                raise NotFound("User not found")
            db.add(candidate)
            db.commit()
            return candidate

    def get_session(self, session_id: str) -> ProcessingSession | None:
        with self._session() as db:
            return db.get(ProcessingSession, session_id)

    def update_session(
        self, session_id: str, changes: dict[str, Any]
    ) -> ProcessingSession | None:
        with self._session() as db:
            record = db.get(ProcessingSession, session_id)
            if record is None:
                return None
            for field, value in changes.items():
                setattr(record, field, value)
            db.commit()
            return record

    def list_sessions(self, user_id: str | None = None) -> list[ProcessingSession]:
        stmt = select(ProcessingSession).order_by(ProcessingSession.created_at.desc())
        if user_id is not None:
            stmt = stmt.where(ProcessingSession.user_id == user_id)
        with self._session() as db:
            return list(db.execute(stmt).scalars())

    # -- plans --------------------------------------------------------------

    def list_plans(self, active_only: bool) -> list[SubscriptionPlan]:
        stmt = select(SubscriptionPlan).order_by(SubscriptionPlan.price.asc())
        if active_only:
            stmt = stmt.where(SubscriptionPlan.is_active.is_(True))
        with self._session() as db:
            return list(db.execute(stmt).scalars())

    def get_plan(self, plan_id: str) -> SubscriptionPlan | None:
        with self._session() as db:
            return db.get(SubscriptionPlan, plan_id)

    def add_plan(self, plan: SubscriptionPlan) -> SubscriptionPlan:
        with self._session() as db:
            db.add(plan)
            db.commit()
            return plan

    def update_plan(
        self, plan_id: str, changes: dict[str, Any]
    ) -> SubscriptionPlan | None:
        with self._session() as db:
            plan = db.get(SubscriptionPlan, plan_id)
            if plan is None:
                return None
            for field, value in changes.items():
                setattr(plan, field, value)
            db.commit()
            return plan

    def delete_plan(self, plan_id: str) -> bool:
        with self._session() as db:
            plan = db.get(SubscriptionPlan, plan_id)
            if plan is None:
                return False
            db.delete(plan)
            db.commit()
            return True

    # -- purchases ----------------------------------------------------------

    def list_purchases(self, user_id: str | None = None) -> list[UserPurchase]:
        stmt = select(UserPurchase).order_by(UserPurchase.created_at.desc())
        if user_id is not None:
            stmt = stmt.where(UserPurchase.user_id == user_id)
        with self._session() as db:
            return list(db.execute(stmt).scalars())

    def add_purchase(self, purchase: UserPurchase, now: datetime) -> User:
        with self._session() as db:
            user = db.execute(
                select(User).where(User.id == purchase.user_id).with_for_update()
            ).scalar_one_or_none()
            if user is None:
                raise NotFound("User not found")
            if db.get(SubscriptionPlan, purchase.plan_id) is None:
                raise NotFound("Plan not found")
            db.add(purchase)
            db.execute(
                update(User)
                .where(User.id == purchase.user_id)
                .values(
                    subscription_days=User.subscription_days + purchase.days_added,
                    updated_at=now,
                )
                .execution_options(synchronize_session=False)
            )
            db.commit()
            db.refresh(user)
            return user

    # -- whole store --------------------------------------------------------

    def dump(self) -> Snapshot:
        with self._session() as db:
            return {
                name: [to_row(obj) for obj in db.execute(select(MODELS[name])).scalars()]
                for name in COLLECTIONS
            }

    def load(self, snapshot: Snapshot) -> None:
        with self._session() as db:
            for name in _DELETE_ORDER:
                db.execute(delete(MODELS[name]))
            for name in reversed(_DELETE_ORDER):
                rows = snapshot.get(name, [])
                if name == "login_attempts":
                    # let the sequence assign ids, preserving log order
                    rows = [
                        {k: v for k, v in row.items() if k != "id"}
                        for row in sorted(rows, key=lambda r: (r["created_at"], r.get("id") or 0))
                    ]
                for row in rows:
                    db.add(from_row(MODELS[name], row))
                db.flush()
            db.commit()

    def ping(self) -> bool:
        return db_module.ping()

    def close(self) -> None:
        if db_module.engine is not None:
            db_module.engine.dispose()
