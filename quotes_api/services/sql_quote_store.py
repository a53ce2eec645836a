"""
Quotes API — Relational Quote Store
=====================================

What:  QuoteStore backed by the `quotes` table through async SQLAlchemy.
How:   Every operation opens its own session via `session_scope()` and
       commits before returning. Each call touches at most one row, so the
       engine's single-row atomicity is all the coordination required.
Who:   Selected when QUOTE_BACKEND=database (the default).

Query plans:
    list_all:   SELECT ... ORDER BY created_at, id
    get_by_id:  primary key lookup
    get_random: SELECT count(*) then SELECT ... ORDER BY created_at, id
                OFFSET :index LIMIT 1 with index drawn from [0, count).
                If deletes shrank the table in between, the first row in
                order is returned instead.
"""

import logging
import random
from typing import List, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from quotes_api.database import session_scope
from quotes_api.exceptions import NotFoundError
from quotes_api.models.quote import QuoteModel
from quotes_api.schemas.quote import Quote
from quotes_api.services.quote_store import (
    QuoteStore,
    new_quote_id,
    validate_changes,
    validate_new_quote,
)
from quotes_api.timestamps import as_utc, next_timestamp, utcnow

logger = logging.getLogger(__name__)


def _to_record(row: QuoteModel) -> Quote:
    """Map an ORM row to the Quote record returned to callers."""
    return Quote(
        id=row.id,
        text=row.text,
        author=row.author,
        tags=list(row.tags or []),
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
    )


class SqlQuoteStore(QuoteStore):
    """Quote store persisted one row per quote in a relational database."""

    backend_name = "database"

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    def _ordered(self):
        return select(QuoteModel).order_by(QuoteModel.created_at, QuoteModel.id)

    async def list_all(self) -> List[Quote]:
        async with session_scope(self._session_factory, "Could not retrieve quotes") as session:
            result = await session.execute(self._ordered())
            return [_to_record(row) for row in result.scalars().all()]

    async def get_by_id(self, quote_id: str) -> Optional[Quote]:
        async with session_scope(self._session_factory, "Could not retrieve the quote") as session:
            row = await session.get(QuoteModel, quote_id)
            return _to_record(row) if row is not None else None

    async def get_random(self) -> Optional[Quote]:
        async with session_scope(self._session_factory, "Could not retrieve a random quote") as session:
            total = await session.scalar(select(func.count()).select_from(QuoteModel))
            if not total:
                return None
            index = random.randrange(total)
            row = await session.scalar(self._ordered().offset(index).limit(1))
            if row is None:
                # Rows deleted since the count; take the first one left
                row = await session.scalar(self._ordered().limit(1))
            return _to_record(row) if row is not None else None

    async def count(self) -> int:
        async with session_scope(self._session_factory, "Could not count quotes") as session:
            total = await session.scalar(select(func.count()).select_from(QuoteModel))
            return total or 0

    async def create(
        self,
        text: Optional[str],
        author: Optional[str],
        tags: Optional[Sequence[str]] = None,
    ) -> Quote:
        text, author = validate_new_quote(text, author)
        now = utcnow()
        row = QuoteModel(
            id=new_quote_id(),
            text=text,
            author=author,
            tags=list(tags or []),
            created_at=now,
            updated_at=now,
        )

        async with session_scope(self._session_factory, "Failed to create quote") as session:
            session.add(row)
            await session.commit()

        logger.info("Quote created: %s", row.id)
        return _to_record(row)

    async def update(
        self,
        quote_id: str,
        text: Optional[str] = None,
        author: Optional[str] = None,
        tags: Optional[Sequence[str]] = None,
    ) -> Quote:
        validate_changes(text, author)

        async with session_scope(self._session_factory, "Failed to update quote") as session:
            row = await session.get(QuoteModel, quote_id)
            if row is None:
                raise NotFoundError(resource="Quote", resource_id=quote_id)

            if text is not None:
                row.text = text
            if author is not None:
                row.author = author
            if tags is not None:
                row.tags = list(tags)
            row.updated_at = next_timestamp(row.updated_at)
            await session.commit()

        logger.info("Quote updated: %s", quote_id)
        return _to_record(row)

    async def delete(self, quote_id: str) -> None:
        async with session_scope(self._session_factory, "Failed to delete quote") as session:
            row = await session.get(QuoteModel, quote_id)
            if row is None:
                raise NotFoundError(resource="Quote", resource_id=quote_id)
            await session.delete(row)
            await session.commit()

        logger.info("Quote deleted: %s", quote_id)
