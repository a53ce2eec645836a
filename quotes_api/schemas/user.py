"""
Quotes API — User and Auth Schemas
====================================

What:  The `User` record returned by UserService, its public projections,
       and the auth request/response bodies.

No schema here has a password field on the output side: the hash stays in
the ORM row and never reaches a response.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from quotes_api.schemas.common import CamelModel


class UserRole(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class UserSummary(CamelModel):
    """Identity fields, as returned by POST /auth/login."""

    id: str
    email: str
    username: str


class UserPublic(UserSummary):
    """Identity plus role, as returned by POST /auth/register."""

    role: UserRole


class User(UserPublic):
    """Full account record (GET /users/me)."""

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class RegisterRequest(CamelModel):
    """Body of POST /auth/register. `role` defaults to USER."""

    email: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = None


class LoginRequest(CamelModel):
    """Body of POST /auth/login."""

    email: Optional[str] = None
    password: Optional[str] = None


class UserUpdateRequest(CamelModel):
    """Body of PUT /users/me. Omitted fields keep their value."""

    email: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None


class RegisterResult(CamelModel):
    user: UserPublic
    token: str = Field(description="Bearer token, valid for 24 hours by default")


class LoginResult(CamelModel):
    user: UserSummary
    token: str = Field(description="Bearer token, valid for 24 hours by default")
