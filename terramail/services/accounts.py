"""Account management and authentication."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from terramail.errors import (
    Forbidden,
    NotFound,
    RateLimited,
    Unauthorized,
    ValidationFailure,
)
from terramail.metrics import accounts_created_total
from terramail.models import User
from terramail.models.user import ROLES
from terramail.services import throttle
from terramail.services.passwords import hash_password, verify_password
from terramail.store import Store

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset(
    {"email", "password", "role", "subscription_days", "allowed_ips", "is_banned"}
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def _checked_email(email: str | None) -> str:
    normalized = normalize_email(email)
    if not normalized or "@" not in normalized:
        raise ValidationFailure("A valid email is required")
    return normalized


def _checked_role(role: str) -> str:
    if role not in ROLES:
        raise ValidationFailure(f"Role must be one of: {', '.join(ROLES)}")
    return role


def _checked_days(days: Any) -> int:
    if isinstance(days, bool) or not isinstance(days, int) or days < 0:
        raise ValidationFailure("subscription_days must be a non-negative integer")
    return days


def _checked_flag(name: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise ValidationFailure(f"{name} must be true or false")
    return value


def _checked_ips(ips: Any) -> list[str]:
    if ips is None:
        return []
    if not isinstance(ips, list) or not all(isinstance(ip, str) for ip in ips):
        raise ValidationFailure("allowed_ips must be a list of strings")
    return [ip.strip() for ip in ips if ip.strip()]


def create_account(
    store: Store,
    *,
    email: str,
    password: str,
    role: str = "user",
    subscription_days: int = 0,
    allowed_ips: list[str] | None = None,
) -> User:
    if not password:
        raise ValidationFailure("Password is required")
    now = _now()
    user = User(
        id=str(uuid4()),
        email=_checked_email(email),
        password_hash=hash_password(password),
        role=_checked_role(role),
        subscription_days=_checked_days(subscription_days),
        allowed_ips=_checked_ips(allowed_ips),
        is_banned=False,
        created_at=now,
        updated_at=now,
    )
    created = store.add_user(user)
    accounts_created_total.labels(role=created.role).inc()
    logger.info("account created id=%s role=%s", created.id, created.role)
    return created


def get_account(store: Store, user_id: str) -> User:
    user = store.get_user(user_id)
    if user is None:
        raise NotFound("User not found")
    return user


def get_account_by_email(store: Store, email: str) -> User:
    user = store.get_user_by_email(normalize_email(email))
    if user is None:
        raise NotFound("User not found")
    return user


def list_accounts(store: Store) -> list[User]:
    return store.list_users()


def update_account(store: Store, user_id: str, changes: dict[str, Any]) -> User:
    """Apply a partial patch and touch ``updated_at``."""
    unknown = set(changes) - UPDATABLE_FIELDS
    if unknown:
        raise ValidationFailure(f"Unknown fields: {', '.join(sorted(unknown))}")

    patch: dict[str, Any] = {}
    if "email" in changes:
        patch["email"] = _checked_email(changes["email"])
    if "password" in changes:
        if not changes["password"]:
            raise ValidationFailure("Password is required")
        patch["password_hash"] = hash_password(changes["password"])
    if "role" in changes:
        patch["role"] = _checked_role(changes["role"])
    if "subscription_days" in changes:
        patch["subscription_days"] = _checked_days(changes["subscription_days"])
    if "allowed_ips" in changes:
        patch["allowed_ips"] = _checked_ips(changes["allowed_ips"])
    if "is_banned" in changes:
        patch["is_banned"] = _checked_flag("is_banned", changes["is_banned"])
    patch["updated_at"] = _now()

    updated = store.update_user(user_id, patch)
    if updated is None:
        raise NotFound("User not found")
    return updated


def delete_account(store: Store, user_id: str) -> None:
    """Delete the account together with its sessions and purchases."""
    if not store.delete_user(user_id):
        raise NotFound("User not found")
    logger.info("account deleted id=%s", user_id)


def set_ban(store: Store, user_id: str, banned: bool | None = None) -> User:
    """Set ``is_banned``; flip the current value when ``banned`` is None."""
    if banned is None:
        banned = not get_account(store, user_id).is_banned
    user = update_account(store, user_id, {"is_banned": banned})
    logger.warning(
        "audit: account %s %s",
        user_id,
        "banned" if banned else "unbanned",
        extra={"event": "ban", "user_id": user_id, "banned": banned},
    )
    return user


def authenticate(store: Store, *, email: str, password: str, ip_address: str) -> User:
    """Check the throttle, then credentials, then the ban flag.

    Every call appends exactly one login-attempt record. Attempts from one
    origin are serialized so the lock sees every earlier failure.
    """
    with throttle.origin_lock(ip_address):
        return _authenticate(store, email, password, ip_address)


def _authenticate(store: Store, email: str, password: str, ip_address: str) -> User:
    normalized = normalize_email(email)
    attempted = normalized or None
    audit = {"event": "login", "ip": ip_address, "email": attempted}

    if throttle.is_blocked(store, ip_address):
        logger.warning(
            "audit: login throttled for ip %s",
            ip_address,
            extra={**audit, "outcome": "throttled"},
        )
        throttle.record_attempt(store, ip_address, attempted, False, "throttled")
        raise RateLimited()

    user = store.get_user_by_email(normalized) if normalized else None
    if user is None:
        throttle.record_attempt(store, ip_address, attempted, False, "unknown_email")
        raise Unauthorized("Email not found")

    if not verify_password(password, user.password_hash):
        throttle.record_attempt(store, ip_address, attempted, False, "bad_password")
        raise Unauthorized("Incorrect password")

    if user.is_banned:
        logger.warning(
            "audit: banned account %s tried to log in",
            user.id,
            extra={**audit, "user_id": user.id, "outcome": "banned"},
        )
        throttle.record_attempt(store, ip_address, attempted, False, "banned")
        raise Forbidden("Account is banned")

    throttle.record_attempt(store, ip_address, attempted, True, "success")
    return user


__all__ = [
    "UPDATABLE_FIELDS",
    "normalize_email",
    "create_account",
    "get_account",
    "get_account_by_email",
    "list_accounts",
    "update_account",
    "delete_account",
    "set_ban",
    "authenticate",
]
