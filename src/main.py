"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config.settings import settings
from src.pm_admin.api.router import router as admin_router
from src.pm_collateral.api.router import router as collateral_router
from src.pm_common.database import dispose_engine, get_session_factory
from src.pm_common.errors import AppError
from src.pm_common.response import error_response
from src.pm_engine.api.router import router as market_router
from src.pm_engine.application.container import get_engine
from src.pm_gateway.middleware.request_log import RequestLogMiddleware
from src.pm_indexer.infrastructure.persistence import EventIndexer, run_indexer

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: build the engine, start the event indexer if enabled. Shutdown: stop it."""
    engine = get_engine()
    stop = asyncio.Event()
    task: asyncio.Task[None] | None = None
    if settings.INDEXER_ENABLED:
        indexer = EventIndexer(engine.events, batch_size=settings.INDEXER_BATCH_SIZE)
        task = asyncio.create_task(
            run_indexer(
                indexer, get_session_factory(), settings.INDEXER_INTERVAL_SECONDS, stop
            )
        )
        logger.info("Event indexer started (interval=%.1fs)", settings.INDEXER_INTERVAL_SECONDS)
    yield
    stop.set()
    if task is not None:
        await task
        await dispose_engine()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message, request)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(market_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")
app.include_router(collateral_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
