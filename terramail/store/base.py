"""Persistence port used by the services.

Both backends return instances of the declarative models in
``terramail.models``; the JSON backend builds them as transient objects.
Every method is one atomic unit against the backing store.
"""
from __future__ import annotations

import abc
from datetime import datetime
from typing import Any

from terramail.models import (
    LoginAttempt,
    ProcessingSession,
    SubscriptionPlan,
    User,
    UserPurchase,
)

COLLECTIONS = (
    "users",
    "login_attempts",
    "processing_sessions",
    "subscription_plans",
    "user_purchases",
)

Snapshot = dict[str, list[dict[str, Any]]]


class Store(abc.ABC):
    # users
    @abc.abstractmethod
    def get_user(self, user_id: str) -> User | None: ...

    @abc.abstractmethod
    def get_user_by_email(self, email: str) -> User | None: ...

    @abc.abstractmethod
    def list_users(self) -> list[User]:
        """Return all accounts, newest first."""

    @abc.abstractmethod
    def add_user(self, user: User) -> User:
        """Insert ``user``; raise ``Conflict`` when the email is taken."""

    @abc.abstractmethod
    def update_user(self, user_id: str, changes: dict[str, Any]) -> User | None:
        """Apply ``changes``; ``None`` when absent, ``Conflict`` on email clash."""

    @abc.abstractmethod
    def delete_user(self, user_id: str) -> bool:
        """Delete the account with its sessions and purchases."""

    # login audit
    @abc.abstractmethod
    def add_login_attempt(self, attempt: LoginAttempt, keep: int) -> None:
        """Append ``attempt`` and prune the log to the newest ``keep`` rows."""

    @abc.abstractmethod
    def count_failed_attempts(self, ip_address: str, since: datetime) -> int: ...

    @abc.abstractmethod
    def list_login_attempts(self) -> list[LoginAttempt]:
        """Return the audit log, newest first."""

    # processing sessions
    @abc.abstractmethod
    def ensure_current_session(
        self, user_id: str, candidate: ProcessingSession
    ) -> ProcessingSession:
        """Return the newest session of ``user_id`` or insert ``candidate``."""

    @abc.abstractmethod
    def get_session(self, session_id: str) -> ProcessingSession | None: ...

    @abc.abstractmethod
    def update_session(
        self, session_id: str, changes: dict[str, Any]
    ) -> ProcessingSession | None: ...

    @abc.abstractmethod
    def list_sessions(self, user_id: str | None = None) -> list[ProcessingSession]: ...

    # plans
    @abc.abstractmethod
    def list_plans(self, active_only: bool) -> list[SubscriptionPlan]:
        """Return plans ordered by ascending price."""

    @abc.abstractmethod
    def get_plan(self, plan_id: str) -> SubscriptionPlan | None: ...

    @abc.abstractmethod
    def add_plan(self, plan: SubscriptionPlan) -> SubscriptionPlan: ...

    @abc.abstractmethod
    def update_plan(
        self, plan_id: str, changes: dict[str, Any]
    ) -> SubscriptionPlan | None: ...

    @abc.abstractmethod
    def delete_plan(self, plan_id: str) -> bool: ...

    # purchases
    @abc.abstractmethod
    def list_purchases(self, user_id: str | None = None) -> list[UserPurchase]:
        """Return purchases, newest first."""

    @abc.abstractmethod
    def add_purchase(self, purchase: UserPurchase, now: datetime) -> User:
        """Insert ``purchase`` and credit its days to the account atomically.

        Raises ``NotFound`` when the account or the plan does not exist; in
        that case nothing is written.
        """

    # whole store
    @abc.abstractmethod
    def dump(self) -> Snapshot: ...

    @abc.abstractmethod
    def load(self, snapshot: Snapshot) -> None:
        """Replace the whole content of the store with ``snapshot``."""

    @abc.abstractmethod
    def ping(self) -> bool: ...

    def close(self) -> None:
        return None
