"""PostgreSQL schema bootstrap using SQLAlchemy async.

Queries go through raw asyncpg in the repositories; SQLAlchemy only owns
the table definitions and creates them at start-up.
"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from storybook.core.errors import ConfigurationError

from ..config import DATABASE_URL


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all models."""

    pass


engine: Optional[AsyncEngine] = None

if DATABASE_URL:
    engine = create_async_engine(
        DATABASE_URL,
        echo=False,
        pool_size=2,
        max_overflow=0,
        pool_pre_ping=True,
    )


def _check_configured():
    """Raise an error if the database is not configured."""
    if engine is None:
        raise ConfigurationError(
            "Database not configured. Set DATABASE_URL environment variable "
            "to a PostgreSQL connection string."
        )


async def init_db() -> None:
    """Initialize database - create all tables."""
    # Register models on Base.metadata
    from . import models  # noqa: F401

    _check_configured()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_db() -> None:
    """Release the schema engine's connections."""
    if engine is not None:
        await engine.dispose()
