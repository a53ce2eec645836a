"""
Quotes API — Quote SQLAlchemy Model
=====================================

What:  ORM model for the `quotes` table.
Who:   Used by SqlQuoteStore for CRUD and by Alembic for schema management.

Table Design:
    - id: UUID4 rendered as a 36-char string, generated in Python so the
      same column type works on PostgreSQL and SQLite
    - tags: JSON array of strings (one representation everywhere)
    - created_at / updated_at: TIMESTAMP WITH TIME ZONE, always written in UTC
"""

import uuid
from datetime import datetime, timezone
from typing import List

from sqlalchemy import JSON, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from quotes_api.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class QuoteModel(Base):
    """A stored quote row. Mapped to the `Quote` record by SqlQuoteStore."""

    __tablename__ = "quotes"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        comment="Random UUID4, immutable after creation",
    )

    text: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Quote body",
    )

    author: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Person the quote is attributed to",
    )

    tags: Mapped[List[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Ordered list of tag strings",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        comment="When the quote was created (UTC)",
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        comment="Last mutation time (UTC)",
    )

    # list_all() orders by creation time
    __table_args__ = (
        Index("idx_quotes_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<QuoteModel(id={self.id}, author='{self.author}')>"
