"""
Quotes API — Database Engine and Session Management
=====================================================

What:  Async SQLAlchemy engine construction, session factory, declarative
       base, and lifecycle helpers.
How:   `create_app()` calls `build_engine()` once per application and hands
       the resulting session factory to the stores. Each store operation opens
       its own session from that factory and commits before returning.
Who:   Used by main.py (wiring, lifespan), the SQL-backed stores, and Alembic.

Connection Pooling:
    pool_size / max_overflow / pool_pre_ping come from Settings for server
    databases. SQLite URLs get the driver's default pool, which rejects the
    sizing arguments.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from quotes_api.config import Settings
from quotes_api.exceptions import InternalError

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    All models inherit from this class so they register with one shared
    metadata object, which Alembic and `init_models()` read.
    """
    pass


def build_engine(settings: Settings) -> AsyncEngine:
    """
    Create the async engine for the configured database URL.

    Echoes SQL when the log level is DEBUG.
    """
    options = {
        "echo": settings.log_level == "DEBUG",
    }
    if not settings.is_sqlite:
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return create_async_engine(settings.database_url, **options)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Session factory shared by every store built on this engine.

    expire_on_commit=False keeps loaded attributes readable after commit, so
    stores can map rows to records once the transaction is closed.
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@asynccontextmanager
async def session_scope(
    session_factory: async_sessionmaker[AsyncSession],
    failure_message: str,
) -> AsyncIterator[AsyncSession]:
    """
    Open a session for one store operation.

    How it works:
        1. Creates a session from the factory and yields it
        2. The caller commits explicitly; leaving the block without a commit
           rolls the transaction back when the session closes
        3. Any SQLAlchemyError is logged with its context and re-raised as
           InternalError carrying `failure_message`
        4. Application errors (NotFoundError, ConflictError, ...) pass
           through untouched

    Example:
        async with session_scope(factory, "Could not create quote") as session:
            session.add(row)
            await session.commit()
    """
    try:
        async with session_factory() as session:
            yield session
    except SQLAlchemyError as e:
        logger.error("%s: %s", failure_message, str(e), exc_info=True)
        raise InternalError(
            message=failure_message,
            context={"error_type": type(e).__name__},
        ) from e


async def init_models(engine: AsyncEngine) -> None:
    """
    Create any missing tables for the registered models.

    Runs at startup when DB_AUTO_CREATE is true. Existing tables are left
    untouched; schema changes go through Alembic.
    """
    # Model modules must be imported so their tables are on Base.metadata
    from quotes_api.models import quote, user  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def ping(engine: AsyncEngine) -> bool:
    """Returns True when `SELECT 1` succeeds on a fresh connection."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    return True


async def dispose_engine(engine: AsyncEngine) -> None:
    """Closes all pooled connections. Called from the lifespan shutdown."""
    await engine.dispose()
