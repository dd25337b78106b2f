import asyncio
from collections.abc import AsyncGenerator, Iterator
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession
from starlette.testclient import TestClient

from stock_service.common.config import Settings
from stock_service.database.connection import (
    create_engine,
    create_schema,
    create_session_factory,
    get_db,
    get_settings,
)
from stock_service.gateway.app import create_app


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Creates settings pointing at a throwaway SQLite database."""
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'stocks.db'}",
        pool_size=2,
        max_overflow=0,
        query_timeout=5,
        create_schema=True,
    )


@pytest.fixture
async def engine(settings: Settings) -> AsyncGenerator[AsyncEngine, None]:
    """Creates an engine with the stocks table already in place."""
    engine = create_engine(settings)
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = create_session_factory(engine)
    async with session_factory() as session:
        yield session


@pytest.fixture
def failing_session() -> AsyncMock:
    """Creates a mock database session whose statements always fail."""
    session = AsyncMock(spec=AsyncSession)
    session.execute = AsyncMock(
        side_effect=OperationalError(
            "SELECT", {}, Exception("connection refused by 10.0.0.5")
        )
    )
    return session


@pytest.fixture
def app(settings: Settings) -> FastAPI:
    return create_app(settings)


@pytest.fixture
def test_client(app: FastAPI) -> Iterator[TestClient]:
    """Creates a test client; entering it runs the application lifespan."""
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def acme_payload() -> dict:
    """A request body for the create and update endpoints."""
    return {"name": "Acme", "price": 10.5, "company": "Acme Corp"}


@pytest.fixture
def refused_session() -> AsyncMock:
    """Creates a mock database session for a server that refuses connections."""
    session = AsyncMock(spec=AsyncSession)
    session.execute = AsyncMock(
        side_effect=ConnectionRefusedError(111, "Connect call failed")
    )
    session.rollback = AsyncMock(side_effect=OSError("connection is closed"))
    return session


@pytest.fixture
def slow_session() -> AsyncMock:
    """Creates a mock database session whose statements never finish in time."""
    session = AsyncMock(spec=AsyncSession)

    async def slow_execute(*args, **kwargs):
        await asyncio.sleep(5)

    session.execute = slow_execute
    return session


@pytest.fixture
def use_session(app: FastAPI):
    """Makes every request in a test use the given database session."""

    def override(session: AsyncMock, query_timeout: float = 5) -> None:
        async def override_get_db():
            yield session

        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_settings] = lambda: Settings(
            query_timeout=query_timeout
        )

    return override
