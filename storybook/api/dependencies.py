"""FastAPI dependency injection for services and repositories."""

from functools import lru_cache
from typing import Annotated, AsyncGenerator

import asyncpg
from fastapi import Depends

from storybook.core.modules.page_illustrator import PageIllustrator

from .database.pool import get_pool
from .database.repository import PageRepository, StoryRepository
from .services.blob_store import S3BlobStore
from .services.story_service import StoryService


# Database pool - the image services acquire their own connections
def get_db_pool() -> asyncpg.Pool:
    """Get the API's asyncpg pool."""
    return get_pool()


# Connection scoped to one request
async def get_connection(
    pool: Annotated[asyncpg.Pool, Depends(get_db_pool)]
) -> AsyncGenerator[asyncpg.Connection, None]:
    """Acquire a pooled connection for the request."""
    async with pool.acquire() as conn:
        yield conn


def get_repository(
    conn: Annotated[asyncpg.Connection, Depends(get_connection)]
) -> StoryRepository:
    """Get a StoryRepository instance with injected connection."""
    return StoryRepository(conn)


def get_page_repository(
    conn: Annotated[asyncpg.Connection, Depends(get_connection)]
) -> PageRepository:
    """Get a PageRepository instance with injected connection."""
    return PageRepository(conn)


# Service - depends on repositories
def get_story_service(
    repo: Annotated[StoryRepository, Depends(get_repository)],
    pages: Annotated[PageRepository, Depends(get_page_repository)],
) -> StoryService:
    """Get a StoryService instance with injected repositories."""
    return StoryService(repo, pages)


@lru_cache
def get_blob_store() -> S3BlobStore:
    """Shared S3 blob store (boto3 clients are thread-safe)."""
    return S3BlobStore()


@lru_cache
def get_illustrator() -> PageIllustrator:
    """Shared illustrator for in-process batch generation."""
    return PageIllustrator.with_sessions()


# Type aliases for cleaner route signatures
DbPool = Annotated[asyncpg.Pool, Depends(get_db_pool)]
Repository = Annotated[StoryRepository, Depends(get_repository)]
Pages = Annotated[PageRepository, Depends(get_page_repository)]
Service = Annotated[StoryService, Depends(get_story_service)]
BlobStore = Annotated[S3BlobStore, Depends(get_blob_store)]
Illustrator = Annotated[PageIllustrator, Depends(get_illustrator)]
