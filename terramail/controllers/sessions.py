from __future__ import annotations

import asyncio
from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from terramail.dependencies import (
    ErrorResponse,
    current_account,
    ensure_owner_or_admin,
    get_store,
)
from terramail.models import User
from terramail.services import sessions
from terramail.store import Store

router = APIRouter(prefix="/sessions", tags=["sessions"])


class SessionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    approved_count: int
    rejected_count: int
    loaded_count: int
    tested_count: int
    is_active: bool
    created_at: datetime
    updated_at: datetime


class SessionUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    approved_count: int | None = Field(None, ge=0)
    rejected_count: int | None = Field(None, ge=0)
    loaded_count: int | None = Field(None, ge=0)
    tested_count: int | None = Field(None, ge=0)
    is_active: bool | None = None


@router.get(
    "/{user_id}",
    response_model=SessionResponse,
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def current_session(
    user_id: str,
    store: Store = Depends(get_store),
    user: User = Depends(current_account),
):
    ensure_owner_or_admin(user, user_id)
    record = await asyncio.to_thread(
        sessions.get_or_create_current_session, store, user_id
    )
    return SessionResponse.model_validate(record)


@router.put(
    "/{session_id}",
    response_model=SessionResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def update_session(
    session_id: str,
    body: SessionUpdateRequest,
    store: Store = Depends(get_store),
    user: User = Depends(current_account),
):
    existing = await asyncio.to_thread(sessions.get_session, store, session_id)
    ensure_owner_or_admin(user, existing.user_id)
    changes = {k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None}
    record = await asyncio.to_thread(
        sessions.update_session, store, session_id, changes
    )
    return SessionResponse.model_validate(record)
