"""Pytest fixtures for the league discipline stack.

Tests run against an in-memory SQLite database unless TEST_DATABASE_URL points
at a Postgres instance and PYTEST_ALLOW_DB=1 confirms it is safe to mutate.
"""

import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio

from httpx import AsyncClient, ASGITransport
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from dotenv import load_dotenv

load_dotenv()

SQLITE_MEMORY_URL = "sqlite+aiosqlite://"


def _load_database_url() -> str:
    """Resolve the database URL for tests, enforcing an explicit opt-in for real databases."""
    test_db_url = os.getenv("TEST_DATABASE_URL")
    if not test_db_url:
        return SQLITE_MEMORY_URL
    if int(os.getenv("PYTEST_ALLOW_DB", "0")) != 1:
        raise RuntimeError(
            "Running tests against TEST_DATABASE_URL requires setting PYTEST_ALLOW_DB=1 to"
            " confirm the configured database is safe to mutate."
        )
    return test_db_url


@pytest.fixture(scope="session")
def database_url() -> str:
    return _load_database_url()


@pytest_asyncio.fixture()
async def async_engine(database_url: str) -> AsyncGenerator[AsyncEngine, None]:
    """Yield an engine with a freshly created schema."""
    from league.utils.db_async import load_schema_modules

    load_schema_modules()

    if database_url == SQLITE_MEMORY_URL:
        # One shared connection, otherwise every checkout sees an empty database
        engine = create_async_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_async_engine(database_url, echo=False, pool_pre_ping=True)

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
        await conn.run_sync(SQLModel.metadata.create_all)
    try:
        yield engine
    finally:
        async with engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.drop_all)
        await engine.dispose()


@pytest_asyncio.fixture()
async def db_session(async_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Session with no open transaction; each store call begins its own."""
    session_factory = async_sessionmaker(
        async_engine, expire_on_commit=False, class_=AsyncSession
    )
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.rollback()


@pytest_asyncio.fixture()
async def ctx(db_session: AsyncSession):
    from league.services.league_context import LeagueContext

    return LeagueContext.from_session(db_session)


@pytest_asyncio.fixture()
async def app_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Provide an HTTP client with the application wired to the test session."""
    try:
        from league.main import app
    except ValidationError as exc:  # pragma: no cover - guard for misconfigured env
        pytest.skip(f"App configuration failed: {exc}")

    from league.services.suspension_cache import SuspensionCache
    from league.utils.db_async import get_session

    # Fresh process-wide cache so entries never leak between tests
    app.state.suspension_cache = SuspensionCache()

    async def _get_session_override() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_session] = _get_session_override
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
    finally:
        app.dependency_overrides.pop(get_session, None)
