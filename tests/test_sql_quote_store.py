"""
Quotes API — SQL Quote Store Tests
====================================

What:  SqlQuoteStore against a throwaway SQLite database (aiosqlite).
"""

import asyncio
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from quotes_api.exceptions import InternalError, NotFoundError, ValidationError
from quotes_api.services.sql_quote_store import SqlQuoteStore


class TestSqlQuoteStore:

    @pytest.mark.asyncio
    async def test_empty_table(self, sql_store):
        assert await sql_store.list_all() == []
        assert await sql_store.get_random() is None
        assert await sql_store.count() == 0

    @pytest.mark.asyncio
    async def test_create_and_read_back(self, sql_store):
        quote = await sql_store.create("Carpe diem", "Horace", ["latin", "poetry"])

        loaded = await sql_store.get_by_id(quote.id)

        assert loaded.text == "Carpe diem"
        assert loaded.author == "Horace"
        assert loaded.tags == ["latin", "poetry"]
        assert loaded.created_at == loaded.updated_at
        assert loaded.created_at.tzinfo is not None

    @pytest.mark.asyncio
    async def test_create_requires_text_and_author(self, sql_store):
        with pytest.raises(ValidationError, match="Quote must have text and author"):
            await sql_store.create("Carpe diem", "")
        assert await sql_store.count() == 0

    @pytest.mark.asyncio
    async def test_list_orders_by_creation(self, sql_store):
        created = [await sql_store.create(f"Quote {n}", "A") for n in range(4)]

        assert [q.id for q in await sql_store.list_all()] == [q.id for q in created]

    @pytest.mark.asyncio
    async def test_get_unknown_id(self, sql_store):
        assert await sql_store.get_by_id("does-not-exist") is None

    @pytest.mark.asyncio
    async def test_update_merges_and_bumps_timestamp(self, sql_store):
        quote = await sql_store.create("Carpe diem", "Horace", ["latin"])

        first = await sql_store.update(quote.id, text="Seize the day")
        second = await sql_store.update(quote.id, tags=["english"])

        assert second.text == "Seize the day"
        assert second.author == "Horace"
        assert second.tags == ["english"]
        assert quote.updated_at < first.updated_at < second.updated_at
        assert (await sql_store.get_by_id(quote.id)).tags == ["english"]

    @pytest.mark.asyncio
    async def test_update_unknown_id(self, sql_store):
        with pytest.raises(NotFoundError, match="Quote with ID nope not found"):
            await sql_store.update("nope", author="Someone")

    @pytest.mark.asyncio
    async def test_delete(self, sql_store):
        quote = await sql_store.create("Carpe diem", "Horace")

        await sql_store.delete(quote.id)

        assert await sql_store.get_by_id(quote.id) is None
        with pytest.raises(NotFoundError):
            await sql_store.delete(quote.id)

    @pytest.mark.asyncio
    async def test_random_covers_every_row(self, sql_store):
        created = [await sql_store.create(f"Quote {n}", "A") for n in range(3)]

        seen = set()
        for _ in range(200):
            seen.add((await sql_store.get_random()).id)

        assert seen == {q.id for q in created}

    @pytest.mark.asyncio
    async def test_random_survives_rows_deleted_after_count(self, sql_store):
        """An index past the end (rows gone since the count) falls back to the first row."""
        await sql_store.create("First", "A")
        await sql_store.create("Second", "B")

        with patch("quotes_api.services.sql_quote_store.random.randrange", return_value=5):
            quote = await sql_store.get_random()

        assert quote is not None
        assert quote.id == (await sql_store.list_all())[0].id

    @pytest.mark.asyncio
    async def test_concurrent_creates_get_distinct_ids(self, sql_store):
        created = await asyncio.gather(
            *(sql_store.create(f"Quote {n}", "A") for n in range(10))
        )

        assert len({q.id for q in created}) == 10
        assert await sql_store.count() == 10

    @pytest.mark.asyncio
    async def test_database_errors_become_internal_errors(self, session_factory):
        store = SqlQuoteStore(session_factory)
        failure = OperationalError("SELECT", {}, Exception("database is locked"))

        with patch("sqlalchemy.ext.asyncio.AsyncSession.execute", side_effect=failure):
            with pytest.raises(InternalError, match="Could not retrieve quotes"):
                await store.list_all()
