"""Failed-login throttle keyed by client IP.

The lock state is derived from the login-attempt log on every check: an IP is
blocked while it has ``login_max_failures`` or more failed attempts inside the
trailing ``login_window_minutes``. Blocked attempts are logged as failures too,
so an origin that keeps retrying stays blocked and a quiet one clears itself.
"""
from __future__ import annotations

import logging
import threading
import zlib
from datetime import datetime, timedelta, timezone

from terramail.config import Settings
from terramail.errors import StoreUnavailable
from terramail.metrics import login_attempts_total
from terramail.models import LoginAttempt
from terramail.store import Store

settings = Settings()
logger = logging.getLogger(__name__)

# fixed stripe count; unrelated origins may share a lock
_ORIGIN_LOCKS = tuple(threading.Lock() for _ in range(64))


def _now() -> datetime:
    return datetime.now(timezone.utc)


def origin_lock(ip_address: str) -> threading.Lock:
    """Lock that serializes check-verify-record for one origin in this process."""
    return _ORIGIN_LOCKS[zlib.crc32(ip_address.encode()) % len(_ORIGIN_LOCKS)]


def window_start(now: datetime | None = None) -> datetime:
    return (now or _now()) - timedelta(minutes=settings.login_window_minutes)


def recent_failures(store: Store, ip_address: str) -> int:
    return store.count_failed_attempts(ip_address, window_start())


def is_blocked(store: Store, ip_address: str) -> bool:
    return recent_failures(store, ip_address) >= settings.login_max_failures


def record_attempt(
    store: Store,
    ip_address: str,
    email: str | None,
    success: bool,
    outcome: str,
) -> None:
    """Append one audit row; storage failures are logged, never raised."""
    login_attempts_total.labels(outcome=outcome).inc()
    attempt = LoginAttempt(
        ip_address=ip_address,
        user_email=email,
        success=success,
        created_at=_now(),
    )
    try:
        store.add_login_attempt(attempt, keep=settings.login_attempts_retention)
    except StoreUnavailable:
        logger.exception("Failed to record login attempt from %s", ip_address)


__all__ = ["is_blocked", "origin_lock", "recent_failures", "record_attempt", "window_start"]
