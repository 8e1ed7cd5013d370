"""API configuration constants.

Single source of truth for settings used across the API layer and worker.
"""

import logging
import os

from dotenv import find_dotenv, load_dotenv

from .logging import (  # noqa: F401
    JSONFormatter,
    PageImageLogger,
    StoryLogger,
    configure_logging,
    page_image_logger,
    story_logger,
)

# Load .env from project root (find_dotenv searches parent directories)
load_dotenv(find_dotenv())

# Database (SQLAlchemy-style URL, e.g. postgresql+asyncpg://...)
DATABASE_URL = os.getenv("DATABASE_URL", "")

# Logging
LOG_FORMAT = os.getenv("LOG_FORMAT", "json")
LOG_LEVEL = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)

# Worker settings
MAX_CONCURRENT_JOBS = 2
JOB_TIMEOUT_SECONDS = 600

# PENDING records older than this are considered abandoned by a crashed worker
STALE_PENDING_MINUTES = 15


def get_database_dsn() -> str:
    """PostgreSQL DSN in asyncpg format."""
    # Convert SQLAlchemy-style URL to asyncpg format
    return DATABASE_URL.replace("+asyncpg", "")
