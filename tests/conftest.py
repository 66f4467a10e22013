"""Test fixtures — a fresh in-memory database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own SQLite in-memory engine (aiosqlite). StaticPool
   keeps the single connection alive so every session sees the same
   database, and the whole thing vanishes when the engine is disposed.
2. The schema is created from the models (Base.metadata.create_all).
3. The app's get_db is overridden to yield the test session, so API calls
   and direct DB assertions share one view of the data.

Auth is NOT mocked: tests register and log in for real, so the identity
resolver, bearer tokens and cookies are all exercised end to end.
"""

import os

# Must be set before taskboard.config is imported anywhere.
os.environ.setdefault("TASKBOARD_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("TASKBOARD_BCRYPT_ROUNDS", "4")

import uuid
from http.cookiejar import CookieJar, DefaultCookiePolicy

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from taskboard.db.engine import get_db
from taskboard.db.models import Base
from taskboard.main import app

from helpers import anon_headers

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture()
async def db_session():
    """Per-test session on a throwaway in-memory database."""
    engine = create_async_engine(
        TEST_DB_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session = AsyncSession(bind=engine, expire_on_commit=False)
    try:
        yield session
    finally:
        await session.close()
        await engine.dispose()


@pytest_asyncio.fixture()
async def client(db_session):
    """HTTP client with the app's get_db pointed at the test database."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    # Nothing is remembered between requests: every test sends its cookies
    # explicitly, exactly as the scenario under test requires.
    jar = CookieJar(policy=DefaultCookiePolicy(allowed_domains=[]))
    async with AsyncClient(
        transport=transport, base_url="http://test", cookies=jar
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def make_user(client):
    """Register (and optionally log in) a fresh user.

    Returns an async function: (password, anonymous_id, login) → dict with
    email, password and — when login=True — token.
    """

    async def _make_user(
        password: str = "password_123",
        anonymous_id: str | None = None,
        login: bool = True,
    ) -> dict:
        email = f"user-{uuid.uuid4().hex[:8]}@example.com"
        headers = anon_headers(anonymous_id) if anonymous_id else {}
        r = await client.post(
            "/api/users/register",
            json={"email": email, "password": password},
            headers=headers,
        )
        assert r.status_code == 201, r.text
        user = {"email": email, "password": password}
        if login:
            r = await client.post(
                "/api/users/login",
                json={"email": email, "password": password},
            )
            assert r.status_code == 200, r.text
            user["token"] = r.json()["token"]
        return user

    return _make_user


