"""
FastAPI application for the callback engine.

Run with: uvicorn callback_engine.main:app
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import callback_engine.history.models  # noqa: F401  (registers ORM tables)
from callback_engine import __version__
from callback_engine.api.router import router as callbacks_router
from callback_engine.config import get_settings
from callback_engine.shared.correlation import CorrelationIdMiddleware
from callback_engine.shared.database import get_database_manager
from callback_engine.shared.exceptions import (
    AppError,
    ConflictError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from callback_engine.shared.logging import get_logger, log_with_context, setup_logging

logger = get_logger(__name__)

# Most specific first; the first isinstance match wins.
ERROR_STATUS: tuple[tuple[type[AppError], int], ...] = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (ConflictError, status.HTTP_409_CONFLICT),
    (StorageError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    settings = get_settings()
    database = get_database_manager()

    logger.info(
        "Callback engine starting",
        extra={"env": settings.app_env, "version": __version__},
    )
    if settings.auto_create_schema:
        await database.create_all()
        logger.info("History schema created")

    yield

    await database.close()
    logger.info("Callback engine stopped")


def status_for(exc: AppError) -> int:
    for error_type, code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render a domain error as {"detail": message, "details": {...}}."""
    code = status_for(exc)
    if code >= 500:
        log_with_context(
            logger,
            logging.ERROR,
            "Request failed on the history store",
            path=request.url.path,
            error=str(exc),
        )

    content: dict[str, object] = {"detail": exc.message}
    if exc.details:
        content["details"] = exc.details
    return JSONResponse(status_code=code, content=content)


async def request_validation_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(part) for part in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=422,
        content={
            "detail": {
                "code": "VALIDATION_ERROR",
                "message": "Request validation failed",
                "errors": errors,
            }
        },
    )


def create_app() -> FastAPI:
    """Build the application: routes, error mapping and middleware."""
    settings = get_settings()

    app = FastAPI(
        title="Smart Callback Engine API",
        description="Predictive callback scheduling for outbound contact attempts",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationIdMiddleware)

    app.include_router(callbacks_router)

    @app.get("/health", tags=["health"])
    async def health_check() -> dict[str, str]:
        return {"status": "healthy", "version": __version__}

    return app


app = create_app()
