from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from stock_service.common.config import Settings
from stock_service.common.models import (
    Stock,
    StockCreated,
    StockIn,
    StockModified,
    SuccessResponse,
)
from stock_service.database.connection import get_db, get_settings
from stock_service.database.queries import (
    create_stock,
    delete_stock,
    get_all_stocks,
    get_stock_by_id,
    update_stock,
)

router = APIRouter(prefix="/stock", tags=["stock"])


@router.post(
    "",
    response_model=SuccessResponse[StockCreated],
    status_code=status.HTTP_201_CREATED,
)
async def create_stock_endpoint(
    stock: StockIn,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Creates a new stock.

    Args:
        stock: The stock to create. Any ID in the body is ignored.
        db: The database session.
        settings: The service settings.

    Returns:
        The ID assigned to the new stock.
    """
    stock_id = await create_stock(stock, db, timeout=settings.statement_timeout)
    return SuccessResponse(
        data=StockCreated(id=stock_id, message="Stock created successfully")
    )


@router.get("/{stock_id}", response_model=SuccessResponse[Stock])
async def get_stock_endpoint(
    stock_id: int,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Returns the stock with the given ID, or 404 if it doesn't exist."""
    stock = await get_stock_by_id(stock_id, db, timeout=settings.statement_timeout)
    return SuccessResponse(data=stock)


@router.get("", response_model=SuccessResponse[list[Stock]])
async def get_all_stocks_endpoint(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Returns every stock."""
    stocks = await get_all_stocks(db, timeout=settings.statement_timeout)
    return SuccessResponse(data=stocks)


@router.put("/{stock_id}", response_model=SuccessResponse[StockModified])
async def update_stock_endpoint(
    stock_id: int,
    stock: StockIn,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Replaces every field of a stock. Updating a missing stock is not an
    error; the response reports 0 rows affected.
    """
    rows_affected = await update_stock(
        stock_id, stock, db, timeout=settings.statement_timeout
    )
    return SuccessResponse(
        data=StockModified(
            id=stock_id,
            rows_affected=rows_affected,
            message=f"Stock updated successfully. {rows_affected} row(s) affected",
        )
    )


@router.delete("/{stock_id}", response_model=SuccessResponse[StockModified])
async def delete_stock_endpoint(
    stock_id: int,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    rows_affected = await delete_stock(
        stock_id, db, timeout=settings.statement_timeout
    )
    return SuccessResponse(
        data=StockModified(
            id=stock_id,
            rows_affected=rows_affected,
            message=f"Stock deleted successfully. {rows_affected} row(s) affected",
        )
    )
