"""
FastAPI application entry point.

Run with: uvicorn backend.app:app --reload
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from backend.config import get_settings
from backend.dependencies import get_readiness, get_storage_service
from backend.errors import StorageError
from backend.routes import router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialize storage before serving; failures keep data routes closed."""
    get_readiness().ensure_ready(get_storage_service())
    yield


async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    logger.error("Storage error on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": str(exc)})


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="TeacherConnect Backend", version="0.1.0", lifespan=lifespan)
    app.add_exception_handler(StorageError, storage_error_handler)
    app.include_router(router, prefix=settings.api_prefix)
    return app


app = create_app()
