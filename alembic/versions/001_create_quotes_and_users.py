"""Create quotes and users tables

Revision ID: 001
Revises: None
Create Date: 2024-03-01 00:00:00.000000+00:00

What:  Creates `quotes` and `users`, then seeds five starter quotes.
How:   Portable column types only (String ids, JSON tags, timezone-aware
       timestamps) so the same migration runs on PostgreSQL and SQLite.

Rollback: downgrade() drops both tables (all data lost).
"""

import uuid
from datetime import datetime, timezone
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

SEED_QUOTES = [
    ("The best way to predict the future is to invent it.", "Alan Kay", ["inspiration", "future"]),
    ("The only way to do great work is to love what you do.", "Steve Jobs", ["work", "passion"]),
    ("Life is what happens when you're busy making other plans.", "John Lennon", ["life", "planning"]),
    ("The journey of a thousand miles begins with one step.", "Lao Tzu", ["journey", "perseverance"]),
    ("It always seems impossible until it's done.", "Nelson Mandela", ["motivation", "achievement"]),
]


def upgrade() -> None:
    quotes = op.create_table(
        "quotes",
        sa.Column("id", sa.String(36), nullable=False, comment="Random UUID4, immutable after creation"),
        sa.Column("text", sa.Text(), nullable=False, comment="Quote body"),
        sa.Column("author", sa.String(255), nullable=False, comment="Person the quote is attributed to"),
        sa.Column("tags", sa.JSON(), nullable=False, comment="Ordered list of tag strings"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
            comment="When the quote was created (UTC)",
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
            comment="Last mutation time (UTC)",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_quotes_created_at", "quotes", ["created_at"])

    op.create_table(
        "users",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("username", sa.String(100), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column(
            "role",
            sa.String(20),
            server_default=sa.text("'USER'"),
            nullable=False,
            comment="USER or ADMIN",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    now = datetime.now(timezone.utc)
    op.bulk_insert(
        quotes,
        [
            {
                "id": str(uuid.uuid4()),
                "text": text,
                "author": author,
                "tags": tags,
                "created_at": now,
                "updated_at": now,
            }
            for text, author, tags in SEED_QUOTES
        ],
    )


def downgrade() -> None:
    op.drop_index("ix_users_username", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
    op.drop_index("idx_quotes_created_at", table_name="quotes")
    op.drop_table("quotes")
