"""Shared test fixtures.

Database-backed tests run against a throwaway SQLite file per test, so
no PostgreSQL or Redis server is needed.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from skillbank.database import close_db, get_engine, init_db, init_schema
from skillbank.db.base import Base
from skillbank.main import create_app


def _sqlite_url(tmp_path: Path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'skillbank.db'}"


@pytest_asyncio.fixture
async def db_session(tmp_path: Path) -> AsyncGenerator[AsyncSession, None]:
    """Standalone session on a fresh SQLite schema."""
    import skillbank.db.models  # noqa: F401

    engine = create_async_engine(_sqlite_url(tmp_path))
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session
    await engine.dispose()


@pytest_asyncio.fixture
async def app_db(tmp_path: Path) -> AsyncGenerator[None, None]:
    """Initialize the application's global engine on a fresh SQLite schema."""
    await init_db(_sqlite_url(tmp_path))
    await init_schema()
    yield
    await close_db()


@pytest_asyncio.fixture
async def client(app_db: None) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client against the app.

    ASGITransport does not run the lifespan, so Redis is never initialized
    and notifications are only persisted.
    """
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def app_session(app_db: None) -> AsyncGenerator[AsyncSession, None]:
    """Session on the application's global engine, for arranging data."""
    factory = async_sessionmaker(get_engine(), class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session

