from __future__ import annotations

import asyncio
from datetime import datetime

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, ConfigDict, Field

from terramail.dependencies import ErrorResponse, get_store, require_admin
from terramail.models import User
from terramail.services import plans
from terramail.store import Store

router = APIRouter(prefix="/plans", tags=["plans"])

_ADMIN_ERRORS = {
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
}


class PlanResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    days: int
    price: float
    description: str | None = None
    is_active: bool
    created_at: datetime | None = None


class PlanCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    days: int = Field(..., gt=0)
    price: float = Field(..., ge=0)
    description: str | None = ""
    is_active: bool = True


class PlanUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(None, min_length=1, max_length=128)
    days: int | None = Field(None, gt=0)
    price: float | None = Field(None, ge=0)
    description: str | None = None
    is_active: bool | None = None


@router.get("", response_model=list[PlanResponse])
async def list_active_plans(store: Store = Depends(get_store)):
    """Public catalogue: active plans, cheapest first."""
    records = await asyncio.to_thread(plans.list_plans, store, active_only=True)
    return [PlanResponse.model_validate(p) for p in records]


@router.get("/all", response_model=list[PlanResponse], responses=_ADMIN_ERRORS)
async def list_all_plans(
    store: Store = Depends(get_store),
    _admin: User = Depends(require_admin),
):
    records = await asyncio.to_thread(plans.list_plans, store, active_only=False)
    return [PlanResponse.model_validate(p) for p in records]


@router.post(
    "",
    response_model=PlanResponse,
    status_code=201,
    responses={**_ADMIN_ERRORS, 400: {"model": ErrorResponse}},
)
async def create_plan(
    body: PlanCreateRequest,
    store: Store = Depends(get_store),
    _admin: User = Depends(require_admin),
):
    plan = await asyncio.to_thread(plans.create_plan, store, **body.model_dump())
    return PlanResponse.model_validate(plan)


@router.put(
    "/{plan_id}",
    response_model=PlanResponse,
    responses={
        **_ADMIN_ERRORS,
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)
async def update_plan(
    plan_id: str,
    body: PlanUpdateRequest,
    store: Store = Depends(get_store),
    _admin: User = Depends(require_admin),
):
    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    plan = await asyncio.to_thread(plans.update_plan, store, plan_id, changes)
    return PlanResponse.model_validate(plan)


@router.delete(
    "/{plan_id}",
    status_code=204,
    responses={**_ADMIN_ERRORS, 404: {"model": ErrorResponse}},
)
async def delete_plan(
    plan_id: str,
    store: Store = Depends(get_store),
    _admin: User = Depends(require_admin),
):
    await asyncio.to_thread(plans.delete_plan, store, plan_id)
    return Response(status_code=204)
