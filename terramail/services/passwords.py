"""Password hashing with bcrypt via passlib."""
from __future__ import annotations

import logging

from passlib.context import CryptContext

from terramail.config import Settings

settings = Settings()
logger = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)

BCRYPT_MAX_BYTES = 72


def _clip(password: str) -> str:
    # bcrypt only looks at the first 72 bytes
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES].decode("utf-8", "ignore")


def hash_password(password: str) -> str:
    """Return a salted bcrypt hash. Errors propagate to the caller."""
    return pwd_context.hash(_clip(password))


def verify_password(password: str, password_hash: str | None) -> bool:
    """Return ``True`` if ``password`` matches ``password_hash``.

    A malformed or unknown hash is treated as a mismatch.
    """
    if not password_hash:
        logger.warning("verify_password called without a stored hash")
        return False
    try:
        return pwd_context.verify(_clip(password), password_hash)
    except (ValueError, TypeError) as exc:
        logger.warning("Password hash could not be verified: %s", exc)
        return False
