from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from stock_service.common.config import Settings
from stock_service.database.connection import check_connection, get_db, get_settings

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health_check(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> dict[str, str]:
    """Checks the service is up and the database is reachable."""
    status = {
        "status": "unhealthy",
        "database": "unreachable",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "stock-service",
    }

    if not await check_connection(db, timeout=settings.statement_timeout):
        raise HTTPException(status_code=503, detail=status)

    status["status"] = "healthy"
    status["database"] = "reachable"
    return status
