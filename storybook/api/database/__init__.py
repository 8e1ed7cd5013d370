"""Database layer: asyncpg repositories and the SQLAlchemy schema."""

from .repository import PageRepository, StoryRepository

__all__ = ["PageRepository", "StoryRepository"]
