"""
Quotes API — Abstract Quote Store Interface
=============================================

What:  Abstract base class defining the contract every quote backend meets,
       plus the validation and id rules both backends share.
How:   Concrete stores inherit from QuoteStore and implement the async
       operations. Routes only ever see a QuoteStore.
Who:   Implemented by FileQuoteStore (JSON document) and SqlQuoteStore
       (relational table); selected by the QUOTE_BACKEND setting.

Contract shared by all implementations:
    - Lookups (list_all, get_by_id, get_random, count) never raise for
      absent data: an empty store is an empty list / None / 0
    - create() rejects a missing or blank text/author with ValidationError
    - update() and delete() raise NotFoundError for unknown ids
    - Every mutation is durable before the call returns
    - Ids are random UUID4 strings and never change after creation
    - updated_at strictly increases on every update
"""

import uuid
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple

from quotes_api.exceptions import ValidationError
from quotes_api.schemas.quote import Quote

MISSING_FIELDS_MESSAGE = "Quote must have text and author"


def new_quote_id() -> str:
    return str(uuid.uuid4())


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def validate_new_quote(text: Optional[str], author: Optional[str]) -> Tuple[str, str]:
    """Returns (text, author) or raises ValidationError when either is blank."""
    if _is_blank(text) or _is_blank(author):
        raise ValidationError(
            message=MISSING_FIELDS_MESSAGE,
            context={"has_text": not _is_blank(text), "has_author": not _is_blank(author)},
        )
    return text, author


def validate_changes(text: Optional[str], author: Optional[str]) -> None:
    """An update may omit text/author, but may not blank them out."""
    if text is not None and _is_blank(text):
        raise ValidationError(message="Quote text cannot be empty", field="text")
    if author is not None and _is_blank(author):
        raise ValidationError(message="Quote author cannot be empty", field="author")


class QuoteStore(ABC):
    """
    Abstract persistence interface for quote records.

    Implementations:
        - FileQuoteStore: whole collection in one JSON array file
        - SqlQuoteStore: one row per quote via async SQLAlchemy
    """

    # Reported by GET /health
    backend_name: str = "abstract"

    @abstractmethod
    async def list_all(self) -> List[Quote]:
        """All quotes, in an order that is stable for the backend."""
        ...

    @abstractmethod
    async def get_by_id(self, quote_id: str) -> Optional[Quote]:
        """The quote with this id, or None."""
        ...

    @abstractmethod
    async def get_random(self) -> Optional[Quote]:
        """
        One quote drawn uniformly from the current set, or None when empty.

        The index is drawn from [0, count) with `random.randrange`.
        """
        ...

    @abstractmethod
    async def create(
        self,
        text: Optional[str],
        author: Optional[str],
        tags: Optional[Sequence[str]] = None,
    ) -> Quote:
        """
        Store a new quote.

        Returns:
            The new record with a fresh id and created_at == updated_at.

        Raises:
            ValidationError: text or author missing/blank.
            InternalError: the backend could not persist the record.
        """
        ...

    @abstractmethod
    async def update(
        self,
        quote_id: str,
        text: Optional[str] = None,
        author: Optional[str] = None,
        tags: Optional[Sequence[str]] = None,
    ) -> Quote:
        """
        Merge the supplied (non-None) fields into an existing quote.

        Raises:
            NotFoundError: no quote with this id.
            ValidationError: text or author supplied but blank.
            InternalError: the backend could not persist the change.
        """
        ...

    @abstractmethod
    async def delete(self, quote_id: str) -> None:
        """
        Remove a quote permanently.

        Raises:
            NotFoundError: no quote with this id (also on a repeated delete).
        """
        ...

    @abstractmethod
    async def count(self) -> int:
        ...
