from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict

from stock_service.common.errors import ErrorKind

T = TypeVar("T")


class StockIn(BaseModel):
    """Request body for creating or replacing a stock. Any `id` is ignored."""

    model_config = ConfigDict(extra="ignore")

    name: str
    price: float
    company: str


class Stock(StockIn):
    model_config = ConfigDict(from_attributes=True)

    id: int


class StockCreated(BaseModel):
    id: int
    message: str


class StockModified(BaseModel):
    id: int
    rows_affected: int
    message: str


class SuccessResponse(BaseModel, Generic[T]):
    ok: bool = True
    data: T


class ErrorResponse(BaseModel):
    ok: bool = False
    error: str
    code: ErrorKind


def error_body(message: str, code: ErrorKind) -> dict[str, Any]:
    """
    Builds the JSON body for a failed request.

    Args:
        message: A client-safe description of the failure.
        code: The kind of failure.

    Returns:
        The serialised error envelope.
    """
    return ErrorResponse(error=message, code=code).model_dump(mode="json")
