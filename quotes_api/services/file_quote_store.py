"""
Quotes API — JSON File Quote Store
====================================

What:  QuoteStore backed by one JSON document holding the whole collection.
How:   Reads and writes the file with aiofiles. Every mutation is a full
       read-modify-write of the document, serialized behind one asyncio.Lock.
Who:   Selected when QUOTE_BACKEND=file.

File Layout:
    [
      {
        "id": "3f0c...",
        "text": "Carpe diem",
        "author": "Horace",
        "tags": ["latin"],
        "createdAt": "2024-01-15T12:00:00+00:00",
        "updatedAt": "2024-01-15T12:00:00+00:00"
      }
    ]

Failure Handling:
    Read paths: a missing, unreadable or malformed file is logged and reads
    as an empty collection. A single malformed entry is skipped.
    Write paths: the current document must parse (a missing file counts as
    empty); otherwise the mutation fails with InternalError rather than
    overwriting data it could not read.

Durability:
    The new document is written to `<name>.tmp` next to the target and moved
    into place with os.replace, so readers see either the old or the new
    file, never a partial one.
"""

import asyncio
import json
import logging
import os
import random
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import aiofiles

from quotes_api.exceptions import InternalError, NotFoundError
from quotes_api.schemas.quote import Quote
from quotes_api.services.quote_store import (
    QuoteStore,
    new_quote_id,
    validate_changes,
    validate_new_quote,
)
from quotes_api.timestamps import as_utc, next_timestamp, utcnow

logger = logging.getLogger(__name__)


class _UnreadableDocument(Exception):
    """The quotes file exists but does not hold a JSON array."""


# ── Document mapping ──────────────────────────────────────────────────────


def _from_document(document: Any) -> Quote:
    """Convert one stored JSON object into a Quote record."""
    if not isinstance(document, dict):
        raise TypeError(f"quote entry must be an object, got {type(document).__name__}")

    tags = document.get("tags") or []
    if isinstance(tags, str):
        # Older files stored tags comma-joined
        tags = [tag.strip() for tag in tags.split(",") if tag.strip()]

    quote = Quote(
        id=str(document["id"]),
        text=document["text"],
        author=document["author"],
        tags=list(tags),
        created_at=document.get("createdAt"),
        updated_at=document.get("updatedAt"),
    )
    quote.created_at = as_utc(quote.created_at)
    quote.updated_at = as_utc(quote.updated_at)
    return quote


def _to_document(quote: Quote) -> Dict[str, Any]:
    """Convert a Quote record into the stored JSON object."""
    document: Dict[str, Any] = {
        "id": quote.id,
        "text": quote.text,
        "author": quote.author,
        "tags": list(quote.tags),
    }
    if quote.created_at is not None:
        document["createdAt"] = quote.created_at.isoformat()
    if quote.updated_at is not None:
        document["updatedAt"] = quote.updated_at.isoformat()
    return document


class FileQuoteStore(QuoteStore):
    """
    Quote store persisted as a single JSON array file.

    Concurrency:
        create/update/delete hold `self._lock` across read, modify and write,
        so concurrent creates never see the same snapshot and never drop each
        other's records. Reads take no lock; os.replace keeps them consistent.
        The lock only covers this process. Two processes sharing the file are
        not supported.
    """

    backend_name = "file"

    def __init__(self, file_path: str):
        self.file_path = Path(file_path)
        self._lock = asyncio.Lock()
        logger.info("FileQuoteStore initialized with file_path=%s", self.file_path)

    # ── Raw document I/O ──────────────────────────────────────────────────

    async def _load(self) -> List[Quote]:
        """
        Parse the quotes file.

        Returns an empty list when the file does not exist.

        Raises:
            _UnreadableDocument: file unreadable, not UTF-8, not JSON, or not
            an array.
        """
        try:
            async with aiofiles.open(self.file_path, "r", encoding="utf-8") as f:
                raw = await f.read()
        except FileNotFoundError:
            return []
        except OSError as e:
            raise _UnreadableDocument(f"cannot read {self.file_path}: {e}") from e
        except UnicodeDecodeError as e:
            raise _UnreadableDocument(f"{self.file_path} is not valid UTF-8: {e}") from e

        if not raw.strip():
            return []

        try:
            documents = json.loads(raw)
        except ValueError as e:
            raise _UnreadableDocument(f"invalid JSON in {self.file_path}: {e}") from e

        if not isinstance(documents, list):
            raise _UnreadableDocument(
                f"{self.file_path} holds a {type(documents).__name__}, expected an array"
            )

        quotes = []
        for position, document in enumerate(documents):
            try:
                quotes.append(_from_document(document))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed quote entry #%d: %s", position, str(e))
        return quotes

    async def _read_quotes(self) -> List[Quote]:
        """Read path: failures degrade to an empty collection."""
        try:
            return await self._load()
        except _UnreadableDocument as e:
            logger.error("Error reading quotes file: %s", str(e))
            return []

    async def _read_for_write(self, action: str) -> List[Quote]:
        """Write path: an unreadable document aborts the mutation."""
        try:
            return await self._load()
        except _UnreadableDocument as e:
            logger.error("Refusing to %s quote, quotes file is unreadable: %s", action, str(e))
            raise InternalError(
                message=f"Failed to {action} quote",
                context={"path": str(self.file_path), "reason": str(e)},
            ) from e

    async def _write_quotes(self, quotes: List[Quote], action: str) -> None:
        payload = json.dumps(
            [_to_document(quote) for quote in quotes],
            indent=2,
            ensure_ascii=False,
        )
        tmp_path = self.file_path.with_name(self.file_path.name + ".tmp")
        try:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                await f.write(payload)
            os.replace(tmp_path, self.file_path)
        except OSError as e:
            logger.error("Error writing quotes file %s: %s", self.file_path, str(e))
            raise InternalError(
                message=f"Failed to {action} quote",
                context={"path": str(self.file_path), "os_error": str(e)},
            ) from e

    # ── QuoteStore operations ─────────────────────────────────────────────

    async def list_all(self) -> List[Quote]:
        return await self._read_quotes()

    async def get_by_id(self, quote_id: str) -> Optional[Quote]:
        for quote in await self._read_quotes():
            if quote.id == quote_id:
                return quote
        return None

    async def get_random(self) -> Optional[Quote]:
        quotes = await self._read_quotes()
        if not quotes:
            return None
        return quotes[random.randrange(len(quotes))]

    async def count(self) -> int:
        return len(await self._read_quotes())

    async def create(
        self,
        text: Optional[str],
        author: Optional[str],
        tags: Optional[Sequence[str]] = None,
    ) -> Quote:
        text, author = validate_new_quote(text, author)

        async with self._lock:
            quotes = await self._read_for_write("create")
            taken = {quote.id for quote in quotes}
            quote_id = new_quote_id()
            while quote_id in taken:
                quote_id = new_quote_id()

            now = utcnow()
            quote = Quote(
                id=quote_id,
                text=text,
                author=author,
                tags=list(tags or []),
                created_at=now,
                updated_at=now,
            )
            quotes.append(quote)
            await self._write_quotes(quotes, "create")

        logger.info("Quote created: %s", quote.id)
        return quote

    async def update(
        self,
        quote_id: str,
        text: Optional[str] = None,
        author: Optional[str] = None,
        tags: Optional[Sequence[str]] = None,
    ) -> Quote:
        validate_changes(text, author)

        async with self._lock:
            quotes = await self._read_for_write("update")
            for index, existing in enumerate(quotes):
                if existing.id == quote_id:
                    break
            else:
                raise NotFoundError(resource="Quote", resource_id=quote_id)

            changes: Dict[str, Any] = {"updated_at": next_timestamp(existing.updated_at)}
            if text is not None:
                changes["text"] = text
            if author is not None:
                changes["author"] = author
            if tags is not None:
                changes["tags"] = list(tags)

            updated = existing.model_copy(update=changes)
            quotes[index] = updated
            await self._write_quotes(quotes, "update")

        logger.info("Quote updated: %s (%s)", quote_id, ", ".join(sorted(changes)))
        return updated

    async def delete(self, quote_id: str) -> None:
        async with self._lock:
            quotes = await self._read_for_write("delete")
            remaining = [quote for quote in quotes if quote.id != quote_id]
            if len(remaining) == len(quotes):
                raise NotFoundError(resource="Quote", resource_id=quote_id)
            await self._write_quotes(remaining, "delete")

        logger.info("Quote deleted: %s", quote_id)
