import logging
from contextlib import asynccontextmanager
from importlib.metadata import version

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from stock_service.common.config import Settings
from stock_service.common.errors import ErrorKind, StockServiceError
from stock_service.common.models import error_body
from stock_service.database.connection import (
    create_engine,
    create_schema,
    create_session_factory,
)
from stock_service.gateway.routers import health, stocks

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    engine = create_engine(settings)
    try:
        if settings.create_schema:
            await create_schema(engine)
        app.state.engine = engine
        app.state.session_factory = create_session_factory(engine)
        yield
    except Exception as e:
        logger.error(f"Error during startup: {e}")
        raise
    finally:
        # Release every pooled connection once we're done.
        await engine.dispose()
        logger.info("Database engine disposed")


async def handle_service_error(
    request: Request, exc: StockServiceError
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code, content=error_body(exc.message, exc.kind)
    )


async def handle_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Reports bad IDs, malformed JSON and uncoercible bodies as client errors."""
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        problems.append(f"{location}: {error.get('msg')}")
    message = "Invalid request: " + "; ".join(problems)
    logger.debug(f"{request.method} {request.url.path} rejected: {message}")
    return JSONResponse(
        status_code=400, content=error_body(message, ErrorKind.INVALID_REQUEST)
    )


async def handle_unexpected_error(
    request: Request, exc: Exception
) -> JSONResponse:
    """Keeps the error envelope for failures no other handler recognised."""
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc!r}")
    return JSONResponse(
        status_code=500,
        content=error_body("Internal storage error", ErrorKind.STORAGE_ERROR),
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Creates the stock service application.

    Args:
        settings: The settings to run with. Read from the environment if not
            given.

    Returns:
        The FastAPI application.
    """
    app = FastAPI(
        title="Stock Service",
        version=version("stock-service"),
        lifespan=lifespan,
    )
    app.state.settings = settings or Settings.from_env()

    app.add_exception_handler(StockServiceError, handle_service_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    # We have separate routers for each of the resources.
    app.include_router(health.router)
    app.include_router(stocks.router)
    return app


def main() -> None:
    """Runs the stock service with uvicorn."""
    settings = Settings.from_env()
    logging.basicConfig(level=settings.log_level)
    logger.info(f"Starting stock service on {settings.host}:{settings.port}")
    # uvicorn builds the app itself from the factory.
    uvicorn.run(
        "stock_service.gateway.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
    )


if __name__ == "__main__":
    main()
