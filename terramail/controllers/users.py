from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Literal

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, ConfigDict, Field

from terramail.dependencies import ErrorResponse, get_store, require_admin
from terramail.models import User
from terramail.services import accounts
from terramail.store import Store

router = APIRouter(prefix="/users", tags=["users"])

_ADMIN_ERRORS = {
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
}


class UserResponse(BaseModel):
    """Account as returned to clients; the password hash never leaves the store."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    role: str
    subscription_days: int
    allowed_ips: list[str] = Field(default_factory=list)
    is_banned: bool
    created_at: datetime
    updated_at: datetime


class UserCreateRequest(BaseModel):
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)
    role: Literal["user", "admin"] = "user"
    subscription_days: int = Field(0, ge=0)
    allowed_ips: list[str] = Field(default_factory=list)


class UserUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email: str | None = None
    password: str | None = Field(None, min_length=1)
    role: Literal["user", "admin"] | None = None
    subscription_days: int | None = Field(None, ge=0)
    allowed_ips: list[str] | None = None
    is_banned: bool | None = None


class BanRequest(BaseModel):
    is_banned: bool | None = None


def serialize_user(user: User) -> UserResponse:
    return UserResponse.model_validate(user)


@router.get("", response_model=list[UserResponse], responses=_ADMIN_ERRORS)
async def list_users(
    store: Store = Depends(get_store),
    _admin: User = Depends(require_admin),
):
    users = await asyncio.to_thread(accounts.list_accounts, store)
    return [serialize_user(u) for u in users]


@router.post(
    "",
    response_model=UserResponse,
    status_code=201,
    responses={**_ADMIN_ERRORS, 409: {"model": ErrorResponse}},
)
async def create_user(
    body: UserCreateRequest,
    store: Store = Depends(get_store),
    _admin: User = Depends(require_admin),
):
    user = await asyncio.to_thread(
        accounts.create_account, store, **body.model_dump()
    )
    return serialize_user(user)


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    responses={**_ADMIN_ERRORS, 404: {"model": ErrorResponse}},
)
async def get_user(
    user_id: str,
    store: Store = Depends(get_store),
    _admin: User = Depends(require_admin),
):
    user = await asyncio.to_thread(accounts.get_account, store, user_id)
    return serialize_user(user)


@router.put(
    "/{user_id}",
    response_model=UserResponse,
    responses={
        **_ADMIN_ERRORS,
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def update_user(
    user_id: str,
    body: UserUpdateRequest,
    store: Store = Depends(get_store),
    _admin: User = Depends(require_admin),
):
    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    user = await asyncio.to_thread(accounts.update_account, store, user_id, changes)
    return serialize_user(user)


@router.delete(
    "/{user_id}",
    status_code=204,
    responses={**_ADMIN_ERRORS, 404: {"model": ErrorResponse}},
)
async def delete_user(
    user_id: str,
    store: Store = Depends(get_store),
    _admin: User = Depends(require_admin),
):
    await asyncio.to_thread(accounts.delete_account, store, user_id)
    return Response(status_code=204)


@router.post(
    "/{user_id}/toggle-ban",
    response_model=UserResponse,
    responses={**_ADMIN_ERRORS, 404: {"model": ErrorResponse}},
)
async def toggle_ban(
    user_id: str,
    body: BanRequest | None = None,
    store: Store = Depends(get_store),
    _admin: User = Depends(require_admin),
):
    banned = body.is_banned if body is not None else None
    user = await asyncio.to_thread(accounts.set_ban, store, user_id, banned)
    return serialize_user(user)
