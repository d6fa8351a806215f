from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from terramail.config import Settings
from terramail.controllers.users import UserResponse, serialize_user
from terramail.dependencies import ErrorResponse, client_ip, current_account, get_store
from terramail.models import User
from terramail.services import accounts
from terramail.services.tokens import issue_token
from terramail.store import Store

settings = Settings()

router = APIRouter(prefix="/auth", tags=["auth"])


class LoginRequest(BaseModel):
    # blank values still go through the throttle and are logged as failures
    email: str
    password: str


class LoginResponse(BaseModel):
    user: UserResponse
    access_token: str
    token_type: str = "bearer"
    expires_in: int


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
    },
)
async def login(
    body: LoginRequest,
    request: Request,
    store: Store = Depends(get_store),
):
    ip = client_ip(request)
    user = await asyncio.to_thread(
        accounts.authenticate,
        store,
        email=body.email,
        password=body.password,
        ip_address=ip,
    )
    return LoginResponse(
        user=serialize_user(user),
        access_token=issue_token(user),
        expires_in=settings.jwt_exp_minutes * 60,
    )


@router.get(
    "/me",
    response_model=UserResponse,
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def me(user: User = Depends(current_account)):
    return serialize_user(user)
