import asyncio
import logging
from collections.abc import AsyncGenerator

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from stock_service.common.config import Settings
from stock_service.database.db_models import Base

logger = logging.getLogger(__name__)


def create_engine(settings: Settings) -> AsyncEngine:
    """
    Creates the process-wide engine. Its connection pool is shared by every
    request and bounded by the pool settings.

    Args:
        settings: The service settings.

    Returns:
        The async engine.
    """
    engine = create_async_engine(
        settings.url,
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
        pool_timeout=settings.pool_timeout,
        pool_pre_ping=True,  # Check connection health
        echo=False,
    )
    logger.info(f"Created database engine for {engine.url.render_as_string()}")
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def create_schema(engine: AsyncEngine) -> None:
    """Creates the stocks table if it does not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Ensured database schema exists")


async def check_connection(db: AsyncSession, timeout: float | None = None) -> bool:
    """
    Runs a trivial query to check the database is reachable.

    Args:
        db: The database session.
        timeout: Seconds to wait for an answer before giving up.

    Returns:
        True if the database answered, otherwise False.
    """
    try:
        await asyncio.wait_for(db.execute(text("SELECT 1")), timeout=timeout)
        return True
    except Exception as e:
        logger.error(f"Database health check failed: {e!r}")
        return False


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency that borrows a session from the application's pool for the
    duration of a request.

    Yields:
        AsyncSession: A database session for handling the request.
    """
    session_factory: async_sessionmaker[AsyncSession] = (
        request.app.state.session_factory
    )
    async with session_factory() as session:
        yield session


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
