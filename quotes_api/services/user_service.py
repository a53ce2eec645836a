"""
Quotes API — User Service
===========================

What:  Account registration, credential checks, and profile management.
How:   Accounts live in the `users` table (async SQLAlchemy). Passwords are
       hashed with bcrypt in Starlette's threadpool so the event loop keeps
       serving other requests while a hash is computed.
Who:   /auth/register, /auth/login, /users/me, and the auth dependencies that
       turn a token into a `User`.

Uniqueness:
    Email and username are each unique. register() and update_user() check
    first so the common case gets a clean ConflictError; the unique
    constraints catch the race where two requests claim the same value at
    once (IntegrityError on commit → ConflictError).

Normalization:
    Emails are stripped and lower-cased before storage and lookup.
    Usernames are stripped; case is kept.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.concurrency import run_in_threadpool

from quotes_api.database import session_scope
from quotes_api.exceptions import AuthError, ConflictError, NotFoundError, ValidationError
from quotes_api.models.user import UserModel
from quotes_api.schemas.user import User, UserRole
from quotes_api.services.security import TokenService, hash_password, verify_password
from quotes_api.timestamps import as_utc, next_timestamp, utcnow

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"


def _normalize_email(email: Optional[str]) -> Optional[str]:
    return email.strip().lower() if email is not None else None


def _normalize_username(username: Optional[str]) -> Optional[str]:
    return username.strip() if username is not None else None


def _resolve_role(requested: Optional[str]) -> UserRole:
    """Only an explicit ADMIN request yields ADMIN; anything else is USER."""
    if requested is not None and requested.strip().upper() == UserRole.ADMIN.value:
        return UserRole.ADMIN
    return UserRole.USER


def _to_record(row: UserModel) -> User:
    """Map an ORM row to the User record. The password hash stays behind."""
    return User(
        id=row.id,
        email=row.email,
        username=row.username,
        role=_resolve_role(row.role),
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
    )


class UserService:
    """
    Account operations on top of a session factory.

    Args:
        session_factory: Shared async session factory.
        token_service:   Signs the tokens handed out by register/login.
        bcrypt_rounds:   Cost factor for new password hashes.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        token_service: TokenService,
        bcrypt_rounds: int = 10,
    ):
        self._session_factory = session_factory
        self.token_service = token_service
        self.bcrypt_rounds = bcrypt_rounds

    async def _hash(self, password: str) -> str:
        return await run_in_threadpool(hash_password, password, self.bcrypt_rounds)

    # ── Registration & Login ──────────────────────────────────────────────

    async def register(
        self,
        email: Optional[str],
        username: Optional[str],
        password: Optional[str],
        role: Optional[str] = None,
    ) -> Tuple[User, str]:
        """
        Create an account and sign a token for it.

        Returns:
            (user, token)

        Raises:
            ValidationError: email, username or password missing/blank.
            ConflictError: email or username already taken.
        """
        email = _normalize_email(email)
        username = _normalize_username(username)
        if not email or not username or not password:
            raise ValidationError(
                message="Email, username and password are required",
                context={"has_email": bool(email), "has_username": bool(username)},
            )

        async with session_scope(self._session_factory, "Failed to register user") as session:
            existing = await session.scalar(
                select(UserModel.id).where(
                    or_(UserModel.email == email, UserModel.username == username)
                )
            )
        if existing is not None:
            logger.info("Registration rejected, email or username taken: %s", username)
            raise ConflictError()

        password_hash = await self._hash(password)
        now = utcnow()
        row = UserModel(
            email=email,
            username=username,
            password_hash=password_hash,
            role=_resolve_role(role).value,
            created_at=now,
            updated_at=now,
        )

        async with session_scope(self._session_factory, "Failed to register user") as session:
            session.add(row)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                logger.info("Registration lost a uniqueness race for %s", username)
                raise ConflictError() from e

        user = _to_record(row)
        logger.info("User registered: %s (%s)", user.id, user.role.value)
        return user, self.token_service.issue_token(user)

    async def login(self, email: Optional[str], password: Optional[str]) -> Tuple[User, str]:
        """
        Check credentials and sign a token.

        Unknown email and wrong password fail with the same AuthError, so a
        caller cannot probe which emails are registered.
        """
        email = _normalize_email(email)
        if not email or not password:
            raise ValidationError(message="Email and password are required")

        async with session_scope(self._session_factory, "Failed to log in") as session:
            row = await session.scalar(select(UserModel).where(UserModel.email == email))

        if row is None:
            raise AuthError(INVALID_CREDENTIALS_MESSAGE)
        if not await run_in_threadpool(verify_password, password, row.password_hash):
            raise AuthError(INVALID_CREDENTIALS_MESSAGE)

        user = _to_record(row)
        logger.info("User logged in: %s", user.id)
        return user, self.token_service.issue_token(user)

    # ── Profile ───────────────────────────────────────────────────────────

    async def get_user(self, user_id: str) -> Optional[User]:
        async with session_scope(self._session_factory, "Failed to load user") as session:
            row = await session.get(UserModel, user_id)
            return _to_record(row) if row is not None else None

    async def update_user(
        self,
        user_id: str,
        email: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ) -> User:
        """
        Change any of email, username and password for an existing account.

        Omitted (None) fields keep their value. The password is re-hashed
        only when a new one is supplied.

        Raises:
            ValidationError: a supplied field is blank.
            ConflictError: the new email/username belongs to another account.
            NotFoundError: no account with this id.
        """
        email = _normalize_email(email)
        username = _normalize_username(username)
        if email is not None and not email:
            raise ValidationError(message="Email cannot be empty", field="email")
        if username is not None and not username:
            raise ValidationError(message="Username cannot be empty", field="username")
        if password is not None and not password:
            raise ValidationError(message="Password cannot be empty", field="password")

        password_hash = await self._hash(password) if password is not None else None

        async with session_scope(self._session_factory, "Failed to update user") as session:
            row = await session.get(UserModel, user_id)
            if row is None:
                raise NotFoundError(resource="User", resource_id=user_id)

            clauses: List = []
            if email is not None and email != row.email:
                clauses.append(UserModel.email == email)
            if username is not None and username != row.username:
                clauses.append(UserModel.username == username)
            if clauses:
                taken = await session.scalar(
                    select(UserModel.id).where(or_(*clauses), UserModel.id != user_id)
                )
                if taken is not None:
                    raise ConflictError()

            if email is not None:
                row.email = email
            if username is not None:
                row.username = username
            if password_hash is not None:
                row.password_hash = password_hash
            row.updated_at = next_timestamp(row.updated_at)

            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise ConflictError() from e

        logger.info("User updated: %s", user_id)
        return _to_record(row)

    async def delete_user(self, user_id: str) -> None:
        async with session_scope(self._session_factory, "Failed to delete user") as session:
            row = await session.get(UserModel, user_id)
            if row is None:
                raise NotFoundError(resource="User", resource_id=user_id)
            await session.delete(row)
            await session.commit()

        logger.info("User deleted: %s", user_id)
