"""
Quotes API — Quote Schemas
============================

What:  The `Quote` record shared by both store backends, and the request
       bodies for create/update.

Request bodies keep every field optional so that a missing `text` or
`author` reaches the store and is reported as "Quote must have text and
author" (400) instead of a generic parser error. Wrong types (a number for
`text`, a string for `tags`) still fail parsing and become
"Invalid request body".
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from quotes_api.schemas.common import CamelModel


class Quote(CamelModel):
    """
    A stored quote.

    JSON shape: {"id", "text", "author", "tags", "createdAt"?, "updatedAt"?}
    Timestamps are absent only for legacy file documents written without them.
    """

    id: str = Field(description="Unique identifier (UUID4 string)")
    text: str = Field(description="Quote body")
    author: str = Field(description="Attributed author")
    tags: List[str] = Field(default_factory=list, description="Ordered tags")
    created_at: Optional[datetime] = Field(default=None, description="Creation time (UTC)")
    updated_at: Optional[datetime] = Field(default=None, description="Last mutation time (UTC)")


class QuoteCreate(CamelModel):
    """Body of POST /quotes."""

    text: Optional[str] = None
    author: Optional[str] = None
    tags: Optional[List[str]] = None


class QuoteUpdate(CamelModel):
    """Body of PUT /quotes/{id}. Omitted or null fields keep their value."""

    text: Optional[str] = None
    author: Optional[str] = None
    tags: Optional[List[str]] = None
