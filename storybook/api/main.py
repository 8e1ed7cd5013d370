"""FastAPI application for the Children's Storybook Generator."""

import logging
from contextlib import asynccontextmanager

from arq import create_pool
from arq.connections import RedisSettings
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storybook.core.errors import (
    ConfigurationError,
    GenerationLimitError,
    JobStateError,
    NotFoundError,
    ProviderError,
    StorageError,
)

from . import arq_pool
from .config import DATABASE_URL, LOG_FORMAT, LOG_LEVEL, configure_logging
from .database import pool as db_pool
from .routes import images, pages, stories

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    configure_logging(json_format=LOG_FORMAT == "json", level=LOG_LEVEL)

    # Startup: Initialize database (only if DATABASE_URL is configured)
    if DATABASE_URL:
        from .database.db import init_db

        await init_db()
        db_pool.set_pool(await db_pool.create_db_pool())
        logger.info("Database initialized")
    else:
        logger.warning("DATABASE_URL not set - database not initialized")

    arq_pool.set_pool(await create_pool(RedisSettings()))

    yield

    await arq_pool.close_pool()
    await db_pool.close_pool()
    if DATABASE_URL:
        from .database.db import dispose_db

        await dispose_db()


app = FastAPI(
    title="Children's Storybook Generator API",
    description="""
Turn a story idea into an illustrated children's picture book.

## Workflow
1. POST `/stories` with your idea to start text generation
2. Poll GET `/stories/{id}/status` until status is `COMPLETED` or `FAILED`
3. POST `/stories/{id}/pages/{n}/image` per page (or `/stories/{id}/images` for all)
4. GET `/stories/{id}/export/pdf` to download the book

Each page allows 2 illustrations per UTC day, at least 15 minutes apart.
    """,
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware for web frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(stories.router, prefix="/stories", tags=["Stories"])
app.include_router(pages.router, prefix="/stories", tags=["Pages"])
app.include_router(images.router, prefix="/images", tags=["Images"])


@app.exception_handler(GenerationLimitError)
async def generation_limit_handler(request: Request, exc: GenerationLimitError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(JobStateError)
async def job_state_handler(request: Request, exc: JobStateError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(ProviderError)
async def provider_error_handler(request: Request, exc: ProviderError):
    logger.error(f"Provider error on {request.url.path}: {exc}")
    return JSONResponse(status_code=502, content={"detail": str(exc)})


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    logger.error(f"Storage error on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": str(exc)})


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    logger.error(f"Configuration error on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": str(exc)})


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
