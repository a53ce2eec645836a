"""
Quotes API — Request Dependencies
===================================

What:  FastAPI dependencies that hand route handlers their collaborators
       (settings, quote store, user service) and enforce authentication.
How:   Collaborators are read from `request.app.state`, where `create_app()`
       put them. The auth dependencies read `Authorization: Bearer <token>`,
       verify it with the TokenService, and load the account it names.

Auth gates:
    get_current_user      valid token for an existing account
    require_admin         as above, and role == ADMIN
    authorize_quote_read  depends on AUTH_MODE (none: open)
    authorize_quote_admin depends on AUTH_MODE (none: open, user: token,
                          admin: token + ADMIN role)

Failure messages (all 401 except the role check):
    header absent                 "No authorization header"
    header without a bearer token "No token provided"
    bad/expired token             "Invalid token"
    account no longer exists      "User not found"
    role is not ADMIN (403)       "Access denied. Admin role required."
"""

import logging
from typing import Annotated, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from quotes_api.config import AUTH_MODE_ADMIN, AUTH_MODE_NONE, Settings
from quotes_api.exceptions import AuthError, ForbiddenError
from quotes_api.middleware.request_id import request_id_var
from quotes_api.schemas.user import User, UserRole
from quotes_api.services.quote_store import QuoteStore
from quotes_api.services.security import TokenService
from quotes_api.services.user_service import UserService

logger = logging.getLogger(__name__)

# auto_error=False: the messages above replace FastAPI's generic 403
bearer_scheme = HTTPBearer(auto_error=False)


# ── Collaborators ─────────────────────────────────────────────────────────


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_quote_store(request: Request) -> QuoteStore:
    return request.app.state.quote_store


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


SettingsDep = Annotated[Settings, Depends(get_settings)]
QuoteStoreDep = Annotated[QuoteStore, Depends(get_quote_store)]
UserServiceDep = Annotated[UserService, Depends(get_user_service)]
TokenServiceDep = Annotated[TokenService, Depends(get_token_service)]
CredentialsDep = Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)]


# ── Authentication ────────────────────────────────────────────────────────


async def _resolve_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials],
    token_service: TokenService,
    user_service: UserService,
) -> User:
    """Turn the Authorization header into the account it belongs to."""
    if not request.headers.get("Authorization"):
        raise AuthError("No authorization header")
    # HTTPBearer yields None for other schemes and for a bare "Bearer"
    if credentials is None or not credentials.credentials:
        raise AuthError("No token provided")

    claims = token_service.verify_token(credentials.credentials)
    user = await user_service.get_user(str(claims["id"]))
    if user is None:
        logger.info("[%s] Token for missing user %s", request_id_var.get(""), claims["id"])
        raise AuthError("User not found")
    return user


async def get_current_user(
    request: Request,
    credentials: CredentialsDep,
    token_service: TokenServiceDep,
    user_service: UserServiceDep,
) -> User:
    """Authenticated account, or AuthError."""
    return await _resolve_user(request, credentials, token_service, user_service)


async def require_admin(user: Annotated[User, Depends(get_current_user)]) -> User:
    """Authenticated ADMIN account, or AuthError / ForbiddenError."""
    if user.role != UserRole.ADMIN:
        logger.info("[%s] Admin route refused for user %s", request_id_var.get(""), user.id)
        raise ForbiddenError()
    return user


async def authorize_quote_read(
    request: Request,
    settings: SettingsDep,
    credentials: CredentialsDep,
    token_service: TokenServiceDep,
    user_service: UserServiceDep,
) -> Optional[User]:
    """Gate for listing, reading and creating quotes."""
    if settings.auth_mode == AUTH_MODE_NONE:
        return None
    return await _resolve_user(request, credentials, token_service, user_service)


async def authorize_quote_admin(
    request: Request,
    settings: SettingsDep,
    credentials: CredentialsDep,
    token_service: TokenServiceDep,
    user_service: UserServiceDep,
) -> Optional[User]:
    """Gate for updating and deleting quotes."""
    if settings.auth_mode == AUTH_MODE_NONE:
        return None
    user = await _resolve_user(request, credentials, token_service, user_service)
    if settings.auth_mode == AUTH_MODE_ADMIN:
        return await require_admin(user)
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]
QuoteReader = Annotated[Optional[User], Depends(authorize_quote_read)]
QuoteAdmin = Annotated[Optional[User], Depends(authorize_quote_admin)]
