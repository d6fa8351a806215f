"""Short-lived signed access tokens issued at login."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt

from terramail.config import Settings
from terramail.errors import Unauthorized
from terramail.models import User

settings = Settings()


def issue_token(user: User, now: datetime | None = None) -> str:
    issued = now or datetime.now(timezone.utc)
    payload = {
        "sub": user.id,
        "role": user.role,
        "iat": issued,
        "exp": issued + timedelta(minutes=settings.jwt_exp_minutes),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict:
    """Return the token payload or raise ``Unauthorized``."""
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"verify_exp": True, "require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise Unauthorized("Expired token") from exc
    except jwt.PyJWTError as exc:
        raise Unauthorized("Invalid token") from exc
    return payload
