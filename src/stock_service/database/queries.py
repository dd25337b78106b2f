import asyncio
import logging
from collections.abc import Awaitable
from typing import TypeVar

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from stock_service.common.errors import (
    StockNotFoundError,
    StorageError,
    StorageTimeoutError,
)
from stock_service.common.models import Stock, StockIn
from stock_service.database.db_models import Stock as StockRow

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _run(
    operation: str, db: AsyncSession, work: Awaitable[T], timeout: float | None
) -> T:
    """
    Awaits a unit of database work under an optional deadline, rolling the
    session back and translating driver errors on failure.

    Args:
        operation: A short description of the work, used for logging.
        db: The database session the work runs on.
        work: The awaitable performing the statement.
        timeout: Seconds before the work is cancelled, or None for no limit.

    Raises:
        StorageTimeoutError: If the deadline passed before the work finished.
        StorageError: If the database raised an error.

    Returns:
        The result of the work.
    """
    try:
        return await asyncio.wait_for(work, timeout=timeout)
    except asyncio.TimeoutError as e:
        logger.error(f"Timed out after {timeout}s while trying to {operation}")
        await _rollback(db)
        raise StorageTimeoutError(timeout or 0) from e
    except (SQLAlchemyError, OSError) as e:
        # Drivers raise bare OSErrors when the server can't be reached.
        logger.error(f"Database error while trying to {operation}: {e!r}")
        await _rollback(db)
        raise StorageError() from e


async def _rollback(db: AsyncSession) -> None:
    """Rolls back a failed session without masking the original failure."""
    try:
        await db.rollback()
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"Rollback failed: {e!r}")


async def create_stock(
    stock: StockIn, db: AsyncSession, timeout: float | None = None
) -> int:
    """
    Inserts a new stock.

    Args:
        stock: The stock to insert.
        db: The database session.
        timeout: Seconds before the statement is cancelled.

    Returns:
        The ID the database assigned to the stock.
    """

    async def work() -> int:
        result = await db.execute(
            insert(StockRow)
            .values(name=stock.name, price=stock.price, company=stock.company)
            .returning(StockRow.id)
        )
        stock_id = result.scalar_one()
        await db.commit()
        return stock_id

    stock_id = await _run("insert stock", db, work(), timeout)
    logger.info(f"Inserted stock {stock_id}")
    return stock_id


async def get_stock_by_id(
    stock_id: int, db: AsyncSession, timeout: float | None = None
) -> Stock:
    """
    Gets a stock by its ID.

    Args:
        stock_id: The ID of the stock to get.
        db: The database session.
        timeout: Seconds before the statement is cancelled.

    Raises:
        StockNotFoundError: If no stock has the given ID.

    Returns:
        The stock with the given ID.
    """

    async def work() -> StockRow | None:
        result = await db.execute(select(StockRow).where(StockRow.id == stock_id))
        return result.scalar_one_or_none()

    row = await _run(f"get stock {stock_id}", db, work(), timeout)
    if row is None:
        raise StockNotFoundError(stock_id)
    return Stock.model_validate(row)


async def get_all_stocks(db: AsyncSession, timeout: float | None = None) -> list[Stock]:
    """
    Gets every stock in the table, in whatever order the database returns
    them.

    Args:
        db: The database session.
        timeout: Seconds before the statement is cancelled.

    Returns:
        A list of stocks, empty if there are none.
    """

    async def work() -> list[StockRow]:
        result = await db.execute(select(StockRow))
        return list(result.scalars().all())

    rows = await _run("get all stocks", db, work(), timeout)
    return [Stock.model_validate(row) for row in rows]


async def update_stock(
    stock_id: int, stock: StockIn, db: AsyncSession, timeout: float | None = None
) -> int:
    """
    Overwrites every field of an existing stock.

    Args:
        stock_id: The ID of the stock to update.
        stock: The new values for the stock.
        db: The database session.
        timeout: Seconds before the statement is cancelled.

    Returns:
        The number of rows affected, 0 if no stock has the given ID.
    """

    async def work() -> int:
        result = await db.execute(
            update(StockRow)
            .where(StockRow.id == stock_id)
            .values(name=stock.name, price=stock.price, company=stock.company)
        )
        await db.commit()
        return result.rowcount

    rows_affected = await _run(f"update stock {stock_id}", db, work(), timeout)
    logger.info(f"Updated stock {stock_id}, {rows_affected} row(s) affected")
    return rows_affected


async def delete_stock(
    stock_id: int, db: AsyncSession, timeout: float | None = None
) -> int:
    """
    Deletes a stock.

    Args:
        stock_id: The ID of the stock to delete.
        db: The database session.
        timeout: Seconds before the statement is cancelled.

    Returns:
        The number of rows affected, 0 if no stock has the given ID.
    """

    async def work() -> int:
        result = await db.execute(delete(StockRow).where(StockRow.id == stock_id))
        await db.commit()
        return result.rowcount

    rows_affected = await _run(f"delete stock {stock_id}", db, work(), timeout)
    logger.info(f"Deleted stock {stock_id}, {rows_affected} row(s) affected")
    return rows_affected
