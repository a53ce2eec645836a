"""
Quotes API — Test Configuration (conftest.py)
===============================================

What:  Shared pytest fixtures for the whole suite.
How:   Each test gets its own SQLite database and quotes file under
       `tmp_path`. App fixtures build a fresh FastAPI app per test with
       `create_app(settings)` and enter its lifespan manually, so tables
       exist before the first request.

Fixture Hierarchy:
    make_settings ─┬─ sql_store / user_service (service-level tests)
                   ├─ file_store
                   └─ open_app / file_app / admin_app / user_mode_app
                        └─ *_client (httpx AsyncClient over ASGITransport)
"""

import os

# Environment overrides must land before quotes_api.config is imported
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test_quotes.db"
os.environ["JWT_SECRET"] = "test-secret-not-for-production"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["DB_AUTO_CREATE"] = "true"

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from quotes_api.config import Settings
from quotes_api.database import build_engine, build_session_factory, init_models
from quotes_api.main import create_app
from quotes_api.services.file_quote_store import FileQuoteStore
from quotes_api.services.security import TokenService
from quotes_api.services.sql_quote_store import SqlQuoteStore
from quotes_api.services.user_service import UserService

TEST_SECRET = "test-secret-not-for-production"


# ══════════════════════════════════════════════════════════════════════════
# Helpers
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def running_client(app) -> AsyncIterator[AsyncClient]:
    """Run the app's lifespan and yield a client bound to it."""
    async with app.router.lifespan_context(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client


async def register(
    client: AsyncClient,
    username: str,
    role: Optional[str] = None,
    password: str = "s3cret-pass",
) -> str:
    """Register `username` through the API and return its bearer token."""
    body = {"email": f"{username}@example.com", "username": username, "password": password}
    if role is not None:
        body["role"] = role
    response = await client.post("/auth/register", json=body)
    assert response.status_code == 201, response.text
    return response.json()["data"]["token"]


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


# ══════════════════════════════════════════════════════════════════════════
# Settings & Services
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def make_settings(tmp_path):
    """Settings factory pointing every backend into `tmp_path`."""

    def _make(**overrides) -> Settings:
        values = {
            "database_url": f"sqlite+aiosqlite:///{tmp_path / 'quotes.db'}",
            "quotes_file": str(tmp_path / "quotes" / "quotes.json"),
            "jwt_secret": TEST_SECRET,
            "bcrypt_rounds": 4,
            "log_level": "WARNING",
            "db_auto_create": True,
        }
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest_asyncio.fixture
async def session_factory(make_settings):
    engine = build_engine(make_settings())
    await init_models(engine)
    yield build_session_factory(engine)
    await engine.dispose()


@pytest_asyncio.fixture
async def sql_store(session_factory):
    return SqlQuoteStore(session_factory)


@pytest.fixture
def file_store(tmp_path):
    return FileQuoteStore(str(tmp_path / "data" / "quotes.json"))


@pytest.fixture
def token_service():
    return TokenService(secret=TEST_SECRET)


@pytest_asyncio.fixture
async def user_service(session_factory, token_service):
    return UserService(session_factory, token_service, bcrypt_rounds=4)


# ══════════════════════════════════════════════════════════════════════════
# Applications & Clients
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def open_app(make_settings):
    """Database backend, no auth on quote routes."""
    return create_app(make_settings(auth_mode="none", quote_backend="database"))


@pytest.fixture
def file_app(make_settings):
    """File backend, no auth on quote routes."""
    return create_app(make_settings(auth_mode="none", quote_backend="file"))


@pytest.fixture
def user_mode_app(make_settings):
    """Database backend, token required, any role may mutate."""
    return create_app(make_settings(auth_mode="user", quote_backend="database"))


@pytest.fixture
def admin_app(make_settings):
    """Database backend, token required, ADMIN required for PUT/DELETE."""
    return create_app(make_settings(auth_mode="admin", quote_backend="database"))


@pytest_asyncio.fixture
async def open_client(open_app):
    async with running_client(open_app) as client:
        yield client


@pytest_asyncio.fixture
async def file_client(file_app):
    async with running_client(file_app) as client:
        yield client


@pytest_asyncio.fixture
async def user_mode_client(user_mode_app):
    async with running_client(user_mode_app) as client:
        yield client


@pytest_asyncio.fixture
async def admin_client(admin_app):
    async with running_client(admin_app) as client:
        yield client
