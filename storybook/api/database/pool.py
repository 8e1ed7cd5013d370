"""asyncpg connection pool for the API process.

Set during API start-up; the worker builds its own pool in its start-up hook.
"""

from typing import Optional

import asyncpg

from storybook.core.errors import ConfigurationError

from ..config import get_database_dsn

_pool: Optional[asyncpg.Pool] = None


async def create_db_pool(min_size: int = 1, max_size: int = 5) -> asyncpg.Pool:
    """Create an asyncpg pool from DATABASE_URL."""
    dsn = get_database_dsn()
    if not dsn:
        raise ConfigurationError("DATABASE_URL environment variable is not configured")
    return await asyncpg.create_pool(dsn, min_size=min_size, max_size=max_size)


def set_pool(pool: asyncpg.Pool) -> None:
    """Set the database pool. Called during API startup."""
    global _pool
    _pool = pool


def get_pool() -> asyncpg.Pool:
    """Get the database pool. Raises if not initialized."""
    if _pool is None:
        raise ConfigurationError(
            "Database pool not initialized. Set DATABASE_URL and start the API server."
        )
    return _pool


async def close_pool() -> None:
    """Close the database pool. Called during API shutdown."""
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None
