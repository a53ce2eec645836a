"""
Quotes API — Auth Route Handlers
==================================

What:  POST /auth/register and POST /auth/login.
How:   Delegates to UserService; both return the account and a bearer token.
Who:   Any client. These routes never require a token.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Body

from quotes_api.dependencies import UserServiceDep
from quotes_api.schemas.common import ApiResponse
from quotes_api.schemas.user import (
    LoginRequest,
    LoginResult,
    RegisterRequest,
    RegisterResult,
    UserPublic,
    UserSummary,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post(
    "/register",
    status_code=201,
    response_model=ApiResponse[RegisterResult],
    response_model_exclude_none=True,
    responses={400: {"description": "Missing fields or duplicate account", "model": ApiResponse[None]}},
    summary="Register a new account",
    description="`role` may be USER (default) or ADMIN; any other value registers a USER.",
)
async def register(
    users: UserServiceDep,
    payload: Optional[RegisterRequest] = Body(default=None),
) -> ApiResponse[RegisterResult]:
    payload = payload or RegisterRequest()
    user, token = await users.register(
        email=payload.email,
        username=payload.username,
        password=payload.password,
        role=payload.role,
    )
    result = RegisterResult(
        user=UserPublic(id=user.id, email=user.email, username=user.username, role=user.role),
        token=token,
    )
    return ApiResponse(status_code=201, message="User registered successfully", data=result)


@router.post(
    "/login",
    response_model=ApiResponse[LoginResult],
    response_model_exclude_none=True,
    responses={401: {"description": "Invalid email or password", "model": ApiResponse[None]}},
    summary="Exchange credentials for a bearer token",
)
async def login(
    users: UserServiceDep,
    payload: Optional[LoginRequest] = Body(default=None),
) -> ApiResponse[LoginResult]:
    payload = payload or LoginRequest()
    user, token = await users.login(email=payload.email, password=payload.password)
    result = LoginResult(
        user=UserSummary(id=user.id, email=user.email, username=user.username),
        token=token,
    )
    return ApiResponse(status_code=200, message="Login successful", data=result)
