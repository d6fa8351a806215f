from __future__ import annotations

import asyncio
from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from terramail.controllers.plans import PlanResponse
from terramail.controllers.users import UserResponse, serialize_user
from terramail.dependencies import (
    ErrorResponse,
    current_account,
    ensure_owner_or_admin,
    get_store,
    require_admin,
)
from terramail.models import User
from terramail.services import purchases
from terramail.services.purchases import PurchaseView
from terramail.store import Store

router = APIRouter(prefix="/purchases", tags=["purchases"])


class PurchaseRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    plan_id: str
    days_added: int
    amount_paid: float
    payment_method: str
    created_at: datetime


class PurchaseWithPlan(PurchaseRecord):
    plan: PlanResponse | None = None


class PurchaseCreateRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    plan_id: str = Field(..., min_length=1)
    days_added: int | None = Field(None, gt=0)
    amount_paid: float | None = Field(None, ge=0)
    payment_method: str = Field("manual", min_length=1, max_length=32)


class PurchaseCreatedResponse(BaseModel):
    purchase: PurchaseRecord
    user: UserResponse


def _with_plan(view: PurchaseView) -> PurchaseWithPlan:
    record = PurchaseRecord.model_validate(view.purchase)
    plan = PlanResponse.model_validate(view.plan) if view.plan is not None else None
    return PurchaseWithPlan(**record.model_dump(), plan=plan)


@router.get(
    "/{user_id}",
    response_model=list[PurchaseWithPlan],
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def list_purchases(
    user_id: str,
    store: Store = Depends(get_store),
    user: User = Depends(current_account),
):
    ensure_owner_or_admin(user, user_id)
    views = await asyncio.to_thread(purchases.list_purchases, store, user_id)
    return [_with_plan(v) for v in views]


@router.post(
    "",
    response_model=PurchaseCreatedResponse,
    status_code=201,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def create_purchase(
    body: PurchaseCreateRequest,
    store: Store = Depends(get_store),
    _admin: User = Depends(require_admin),
):
    result = await asyncio.to_thread(
        purchases.add_purchase, store, **body.model_dump()
    )
    return PurchaseCreatedResponse(
        purchase=PurchaseRecord.model_validate(result.purchase),
        user=serialize_user(result.user),
    )
