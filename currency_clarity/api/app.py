"""
FastAPI application factory.

DESIGN DECISION: Domain errors are mapped to HTTP statuses in ONE place
(the exception handlers below), so routes stay thin and the flows never
know they are behind HTTP:

    InvalidInputError / ValidationError  -> 422
    NotFoundError                        -> 404
    StoreUnavailableError                -> 503 (retryable)
    any other StorageError               -> 500
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from currency_clarity import __version__
from currency_clarity.api.routes import router
from currency_clarity.models.errors import InvalidInputError
from currency_clarity.orchestrator import ExpenseFlow, create_app_components
from currency_clarity.services.heartbeat import HeartbeatService
from currency_clarity.services.storage import (
    NotFoundError,
    StorageError,
    StoreUnavailableError,
)


logger = structlog.get_logger(__name__)


async def _invalid_input(request: Request, exc: Exception) -> JSONResponse:
    logger.warning("invalid_input", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=422, content={"detail": str(exc)})


async def _not_found(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


async def _store_unavailable(request: Request, exc: Exception) -> JSONResponse:
    logger.error("store_unavailable", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=503,
        content={
            "detail": "The expense store is temporarily unavailable. Please try again.",
            "retryable": True,
        },
    )


async def _storage_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("storage_error", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=500, content={"detail": "Storage operation failed."})


def create_app(
    flow: Optional[ExpenseFlow] = None,
    heartbeat: Optional[HeartbeatService] = None,
) -> FastAPI:
    """
    Build the API.

    Args:
        flow: Pre-built flow (tests pass one over an in-memory store).
            When None, components are created from settings at startup.
        heartbeat: Keep-alive pinger started with the app, if enabled.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.flow is None:
            app.state.flow, app.state.heartbeat, _ = create_app_components()
            logger.info("components_created")

        if app.state.heartbeat is not None:
            app.state.heartbeat.start()

        yield

        if app.state.heartbeat is not None:
            await app.state.heartbeat.stop()

    app = FastAPI(
        title="Currency Clarity API",
        description="Expense tracking in FMG and Ariary.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.flow = flow
    app.state.heartbeat = heartbeat

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(InvalidInputError, _invalid_input)
    app.add_exception_handler(ValidationError, _invalid_input)
    app.add_exception_handler(NotFoundError, _not_found)
    app.add_exception_handler(StoreUnavailableError, _store_unavailable)
    app.add_exception_handler(StorageError, _storage_error)

    app.include_router(router, prefix="/api", tags=["api"])

    return app
