from enum import Enum


class ErrorKind(str, Enum):
    INVALID_REQUEST = "invalid_request"
    NOT_FOUND = "not_found"
    STORAGE_ERROR = "storage_error"
    STORAGE_TIMEOUT = "storage_timeout"


class StockServiceError(Exception):
    """Base class for failures that are reported back to the client."""

    kind: ErrorKind = ErrorKind.STORAGE_ERROR
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidRequestError(StockServiceError):
    kind = ErrorKind.INVALID_REQUEST
    status_code = 400


class StockNotFoundError(StockServiceError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404

    def __init__(self, stock_id: int):
        super().__init__(f"Stock {stock_id} not found")
        self.stock_id = stock_id


class StorageError(StockServiceError):
    """
    Raised when the database connection or a statement fails. The message is
    safe to show to clients; the underlying driver error is kept as the cause.
    """

    kind = ErrorKind.STORAGE_ERROR
    status_code = 500

    def __init__(self, message: str = "Internal storage error"):
        super().__init__(message)


class StorageTimeoutError(StorageError):
    kind = ErrorKind.STORAGE_TIMEOUT
    status_code = 504

    def __init__(self, timeout: float):
        super().__init__(f"Storage operation timed out after {timeout:g}s")
        self.timeout = timeout
