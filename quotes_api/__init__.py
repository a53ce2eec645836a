"""
Quotes API — Application Package
=================================

What:  CRUD service for quotes (text, author, tags) with optional
       bearer-token authentication gating the write routes.
Who:   Imported by uvicorn (`quotes_api.main:app`), Alembic and pytest.

Architecture Note:
    The package follows a layered layout:

    ┌─────────────────────────────────────┐
    │        Routes + Dependencies        │  ← HTTP, envelope, auth gate
    ├─────────────────────────────────────┤
    │   Services (stores, users, tokens)  │  ← validation, persistence rules
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │   Storage (JSON file | SQL tables)  │  ← aiofiles / async SQLAlchemy
    └─────────────────────────────────────┘

    Routes never touch storage directly; they receive store handles that
    `create_app()` builds once and attaches to `app.state`.
"""

__version__ = "1.0.0"
