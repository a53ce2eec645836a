"""
Quotes API — File Quote Store Tests
=====================================

What:  FileQuoteStore CRUD, document format, failure handling and the
       concurrency guarantee of its write lock.
How:   Real files under pytest's tmp_path; no mocks.
"""

import asyncio
import json

import pytest

from quotes_api.exceptions import InternalError, NotFoundError, ValidationError
from quotes_api.services.file_quote_store import FileQuoteStore


def _read_document(store: FileQuoteStore):
    return json.loads(store.file_path.read_text(encoding="utf-8"))


class TestFileQuoteStoreCrud:
    """Create / read / update / delete against a fresh file."""

    @pytest.mark.asyncio
    async def test_missing_file_is_empty(self, file_store):
        assert await file_store.list_all() == []
        assert await file_store.get_random() is None
        assert await file_store.count() == 0

    @pytest.mark.asyncio
    async def test_create_persists_and_creates_parent_dir(self, file_store):
        quote = await file_store.create("Carpe diem", "Horace", ["latin"])

        assert quote.id
        assert quote.created_at == quote.updated_at
        assert file_store.file_path.exists()

        document = _read_document(file_store)
        assert document == [
            {
                "id": quote.id,
                "text": "Carpe diem",
                "author": "Horace",
                "tags": ["latin"],
                "createdAt": quote.created_at.isoformat(),
                "updatedAt": quote.updated_at.isoformat(),
            }
        ]

    @pytest.mark.asyncio
    async def test_document_is_pretty_printed(self, file_store):
        await file_store.create("Carpe diem", "Horace")
        raw = file_store.file_path.read_text(encoding="utf-8")
        assert raw.startswith("[\n  {")

    @pytest.mark.asyncio
    async def test_create_defaults_tags_to_empty_list(self, file_store):
        quote = await file_store.create("Know thyself", "Socrates")
        assert quote.tags == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "text,author",
        [(None, "Horace"), ("Carpe diem", None), ("", "Horace"), ("Carpe diem", "   ")],
    )
    async def test_create_requires_text_and_author(self, file_store, text, author):
        with pytest.raises(ValidationError, match="Quote must have text and author"):
            await file_store.create(text, author)
        assert not file_store.file_path.exists()

    @pytest.mark.asyncio
    async def test_list_keeps_document_order(self, file_store):
        first = await file_store.create("One", "A")
        second = await file_store.create("Two", "B")
        third = await file_store.create("Three", "C")

        assert [q.id for q in await file_store.list_all()] == [first.id, second.id, third.id]

    @pytest.mark.asyncio
    async def test_get_by_id(self, file_store):
        quote = await file_store.create("Carpe diem", "Horace")

        assert await file_store.get_by_id(quote.id) == quote
        assert await file_store.get_by_id("no-such-id") is None

    @pytest.mark.asyncio
    async def test_update_merges_supplied_fields_only(self, file_store):
        quote = await file_store.create("Carpe diem", "Horace", ["latin"])

        updated = await file_store.update(quote.id, author="Quintus Horatius Flaccus")

        assert updated.id == quote.id
        assert updated.text == "Carpe diem"
        assert updated.author == "Quintus Horatius Flaccus"
        assert updated.tags == ["latin"]
        assert updated.created_at == quote.created_at
        assert (await file_store.get_by_id(quote.id)).author == "Quintus Horatius Flaccus"

    @pytest.mark.asyncio
    async def test_update_can_clear_tags(self, file_store):
        quote = await file_store.create("Carpe diem", "Horace", ["latin"])
        updated = await file_store.update(quote.id, tags=[])
        assert updated.tags == []

    @pytest.mark.asyncio
    async def test_updated_at_strictly_increases(self, file_store):
        quote = await file_store.create("Carpe diem", "Horace")

        first = await file_store.update(quote.id, text="Seize the day")
        second = await file_store.update(quote.id, text="Pluck the day")

        assert quote.updated_at < first.updated_at < second.updated_at

    @pytest.mark.asyncio
    async def test_update_rejects_blank_text(self, file_store):
        quote = await file_store.create("Carpe diem", "Horace")
        with pytest.raises(ValidationError, match="text cannot be empty"):
            await file_store.update(quote.id, text="  ")

    @pytest.mark.asyncio
    async def test_update_unknown_id(self, file_store):
        with pytest.raises(NotFoundError, match="Quote with ID missing not found"):
            await file_store.update("missing", text="x")

    @pytest.mark.asyncio
    async def test_delete_then_delete_again(self, file_store):
        keep = await file_store.create("Keep", "A")
        drop = await file_store.create("Drop", "B")

        await file_store.delete(drop.id)

        assert [q.id for q in await file_store.list_all()] == [keep.id]
        with pytest.raises(NotFoundError):
            await file_store.delete(drop.id)


class TestFileQuoteStoreFailures:
    """Unreadable documents: reads degrade, writes refuse."""

    @pytest.mark.asyncio
    async def test_malformed_json_reads_as_empty(self, file_store):
        file_store.file_path.parent.mkdir(parents=True)
        file_store.file_path.write_text("{not json", encoding="utf-8")

        assert await file_store.list_all() == []
        assert await file_store.get_by_id("anything") is None
        assert await file_store.get_random() is None

    @pytest.mark.asyncio
    async def test_invalid_utf8_reads_as_empty(self, file_store):
        file_store.file_path.parent.mkdir(parents=True)
        file_store.file_path.write_bytes(b'[{"id":"1","text":"\xff\xfe","author":"A"}]')

        assert await file_store.list_all() == []
        assert await file_store.get_by_id("1") is None
        assert await file_store.get_random() is None
        assert await file_store.count() == 0

    @pytest.mark.asyncio
    async def test_write_refuses_invalid_utf8_file(self, file_store):
        file_store.file_path.parent.mkdir(parents=True)
        file_store.file_path.write_bytes(b"[\xff]")

        with pytest.raises(InternalError, match="Failed to create quote"):
            await file_store.create("Carpe diem", "Horace")

        assert file_store.file_path.read_bytes() == b"[\xff]"

    @pytest.mark.asyncio
    async def test_non_array_document_reads_as_empty(self, file_store):
        file_store.file_path.parent.mkdir(parents=True)
        file_store.file_path.write_text('{"id": "1"}', encoding="utf-8")

        assert await file_store.list_all() == []

    @pytest.mark.asyncio
    async def test_write_refuses_to_overwrite_unreadable_file(self, file_store):
        file_store.file_path.parent.mkdir(parents=True)
        file_store.file_path.write_text("{not json", encoding="utf-8")

        with pytest.raises(InternalError, match="Failed to create quote"):
            await file_store.create("Carpe diem", "Horace")

        assert file_store.file_path.read_text(encoding="utf-8") == "{not json"

    @pytest.mark.asyncio
    async def test_malformed_entries_are_skipped(self, file_store):
        file_store.file_path.parent.mkdir(parents=True)
        file_store.file_path.write_text(
            json.dumps([
                {"id": "1", "text": "Good", "author": "A", "tags": []},
                {"id": "2", "author": "No text"},
                "not an object",
            ]),
            encoding="utf-8",
        )

        quotes = await file_store.list_all()

        assert [q.id for q in quotes] == ["1"]

    @pytest.mark.asyncio
    async def test_legacy_entries_load(self, file_store):
        """Comma-joined tags and missing timestamps from older files."""
        file_store.file_path.parent.mkdir(parents=True)
        file_store.file_path.write_text(
            json.dumps([{"id": "7", "text": "Old", "author": "A", "tags": "x, y"}]),
            encoding="utf-8",
        )

        quote = await file_store.get_by_id("7")

        assert quote.tags == ["x", "y"]
        assert quote.created_at is None
        updated = await file_store.update("7", text="Newer")
        assert updated.updated_at is not None
        assert _read_document(file_store)[0]["tags"] == ["x", "y"]


class TestFileQuoteStoreConcurrency:

    @pytest.mark.asyncio
    async def test_concurrent_creates_keep_every_record(self, file_store):
        created = await asyncio.gather(
            *(file_store.create(f"Quote {n}", f"Author {n}") for n in range(25))
        )

        ids = {quote.id for quote in created}
        assert len(ids) == 25
        assert {entry["id"] for entry in _read_document(file_store)} == ids

    @pytest.mark.asyncio
    async def test_random_eventually_returns_every_quote(self, file_store):
        created = [await file_store.create(f"Quote {n}", "A") for n in range(3)]

        seen = set()
        for _ in range(200):
            seen.add((await file_store.get_random()).id)

        assert seen == {quote.id for quote in created}
