"""
Quotes API — User Profile Routes
==================================

What:  GET /users/me and PUT /users/me for the authenticated account.
Who:   Any client holding a valid token, whatever AUTH_MODE says.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Body

from quotes_api.dependencies import CurrentUser, UserServiceDep
from quotes_api.schemas.common import ApiResponse
from quotes_api.schemas.user import User, UserUpdateRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])

_auth_responses = {
    401: {"description": "Missing or invalid token", "model": ApiResponse[None]},
}


@router.get(
    "/me",
    response_model=ApiResponse[User],
    response_model_exclude_none=True,
    responses=_auth_responses,
    summary="Current account profile",
)
async def get_profile(user: CurrentUser) -> ApiResponse[User]:
    return ApiResponse(status_code=200, message="User profile retrieved successfully", data=user)


@router.put(
    "/me",
    response_model=ApiResponse[User],
    response_model_exclude_none=True,
    responses={**_auth_responses, 400: {"description": "Blank field or duplicate value", "model": ApiResponse[None]}},
    summary="Update the current account",
    description="Any of email, username and password; omitted fields keep their value.",
)
async def update_profile(
    user: CurrentUser,
    users: UserServiceDep,
    payload: Optional[UserUpdateRequest] = Body(default=None),
) -> ApiResponse[User]:
    payload = payload or UserUpdateRequest()
    updated = await users.update_user(
        user.id,
        email=payload.email,
        username=payload.username,
        password=payload.password,
    )
    return ApiResponse(status_code=200, message="User profile updated successfully", data=updated)
