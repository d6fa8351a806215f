from __future__ import annotations

import asyncio
import logging

from fastapi import Depends, Header, Request
from pydantic import BaseModel

from terramail.config import Settings
from terramail.errors import Forbidden, Unauthorized
from terramail.models import ErrorCode, User
from terramail.services.tokens import decode_token
from terramail.store import Store

settings = Settings()

logger = logging.getLogger(__name__)


class ErrorResponse(BaseModel):
    error: str
    code: ErrorCode


def get_store(request: Request) -> Store:
    return request.app.state.store


def client_ip(request: Request) -> str:
    """Origin address; ``X-Forwarded-For`` is honoured only via trusted proxies."""
    client_host = request.client.host if request.client else ""
    ip = client_host
    xff = request.headers.get("X-Forwarded-For")
    if xff and client_host in settings.trusted_proxies:
        forwarded = [h.strip() for h in xff.split(",") if h.strip()]
        proxies = forwarded[1:] + [client_host]
        if forwarded and all(p in settings.trusted_proxies for p in proxies):
            ip = forwarded[0]
    return ip or "unknown"


async def current_account(
    authorization: str | None = Header(None, alias="Authorization"),
    store: Store = Depends(get_store),
) -> User:
    """Resolve the bearer token to a live, unbanned account."""
    if not authorization:
        raise Unauthorized("Missing bearer token")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise Unauthorized("Missing bearer token")

    payload = decode_token(token.strip())
    user = await asyncio.to_thread(store.get_user, payload["sub"])
    if user is None:
        raise Unauthorized("Invalid token")
    if user.is_banned:
        logger.warning("audit: banned account %s presented a token", user.id)
        raise Forbidden("Account is banned")
    return user


async def require_admin(user: User = Depends(current_account)) -> User:
    if user.role != "admin":
        raise Forbidden("Admin access required")
    return user


def ensure_owner_or_admin(user: User, owner_id: str) -> None:
    if user.role != "admin" and user.id != owner_id:
        raise Forbidden("Cannot access other user")


__all__ = [
    "ErrorResponse",
    "get_store",
    "client_ip",
    "current_account",
    "require_admin",
    "ensure_owner_or_admin",
]
