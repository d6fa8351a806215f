from __future__ import annotations

import asyncio
from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from terramail.dependencies import ErrorResponse, get_store, require_admin
from terramail.models import User
from terramail.services.stats import system_stats
from terramail.store import Store

router = APIRouter(prefix="/stats", tags=["stats"])


class StatsResponse(BaseModel):
    total_users: int
    admin_users: int
    banned_users: int
    active_users: int
    total_processed: int
    total_approved: int
    total_rejected: int
    total_loaded: int
    total_revenue: float
    monthly_revenue: float
    generated_at: datetime


@router.get(
    "",
    response_model=StatsResponse,
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def get_stats(
    store: Store = Depends(get_store),
    _admin: User = Depends(require_admin),
):
    stats = await asyncio.to_thread(system_stats, store)
    return StatsResponse(**stats._asdict())
