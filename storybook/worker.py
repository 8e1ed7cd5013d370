"""
ARQ worker for background story and illustration generation.

Run with: arq storybook.worker.WorkerSettings
"""

import logging
from typing import Any, Optional

import asyncpg
from arq import cron
from arq.connections import RedisSettings
from dotenv import load_dotenv

# Load environment variables before importing app modules
load_dotenv()

from storybook.api.config import (  # noqa: E402
    JOB_TIMEOUT_SECONDS,
    LOG_FORMAT,
    LOG_LEVEL,
    MAX_CONCURRENT_JOBS,
    STALE_PENDING_MINUTES,
    configure_logging,
)
from storybook.api.database.pool import create_db_pool  # noqa: E402
from storybook.api.database.repository import PageRepository, StoryRepository  # noqa: E402
from storybook.api.services.blob_store import S3BlobStore  # noqa: E402
from storybook.api.services.image_generation import generate_page_image  # noqa: E402
from storybook.api.services.story_generation import generate_story  # noqa: E402
from storybook.core.modules.page_illustrator import PageIllustrator  # noqa: E402

logger = logging.getLogger(__name__)


async def generate_story_task(
    ctx: dict[str, Any],
    story_id: str,
    prompt: str,
    total_pages: int,
    target_age: Optional[str] = None,
) -> dict[str, Any]:
    """
    ARQ task for writing a story.

    Thin wrapper around generate_story, which owns the story's status.
    """
    job_id = ctx.get("job_id", "unknown")
    logger.info(f"Starting story generation job {job_id} for story {story_id}")

    try:
        await generate_story(
            ctx["db_pool"],
            story_id=story_id,
            prompt=prompt,
            total_pages=total_pages,
            target_age=target_age,
        )
        logger.info(f"Completed story generation job {job_id} for story {story_id}")
        return {"story_id": story_id, "status": "COMPLETED"}

    except Exception as e:
        logger.error(f"Failed story generation job {job_id} for story {story_id}: {e}")
        # Re-raise so ARQ marks the job as failed
        raise


async def generate_page_image_task(
    ctx: dict[str, Any],
    story_id: str,
    page_number: int,
    job_id: str,
    custom_prompt: Optional[str] = None,
    enhance: bool = True,
    use_prior_pages: bool = True,
    session_id: Optional[str] = None,
) -> dict[str, Any]:
    """
    ARQ task for one page illustration.

    Resumes the PENDING job the API created; the job always ends COMPLETED
    or FAILED in the page record.
    """
    logger.info(f"Starting image job {job_id} for story {story_id} page {page_number}")

    try:
        image_key = await generate_page_image(
            ctx["db_pool"],
            ctx["illustrator"],
            ctx["blob_store"],
            story_id,
            page_number,
            job_id=job_id,
            custom_prompt=custom_prompt,
            enhance=enhance,
            use_prior_pages=use_prior_pages,
            session_id=session_id,
        )
        return {"job_id": job_id, "status": "COMPLETED", "image_key": image_key}

    except Exception as e:
        logger.error(f"Failed image job {job_id} for story {story_id} page {page_number}: {e}")
        raise


async def cleanup_stale_jobs_task(ctx: dict[str, Any]) -> dict[str, Any]:
    """
    Cron task for housekeeping.

    Marks stories and page image jobs that stayed PENDING too long as FAILED,
    and drops expired image chat sessions.
    """
    sessions_removed = 0
    store = getattr(ctx.get("illustrator"), "session_store", None)
    if store is not None:
        sessions_removed = store.sweep_expired()

    try:
        async with ctx["db_pool"].acquire() as conn:
            story_count = await StoryRepository(conn).cleanup_stale_stories(STALE_PENDING_MINUTES)
            image_count = await PageRepository(conn).cleanup_stale_image_jobs(STALE_PENDING_MINUTES)
    except Exception as e:
        logger.error(f"Failed to cleanup stale jobs: {e}")
        return {"cleaned_stories": 0, "cleaned_images": 0, "sessions_removed": sessions_removed, "error": str(e)}

    if story_count or image_count:
        logger.info(f"Cleaned up {story_count} stale story job(s) and {image_count} stale image job(s)")
    return {
        "cleaned_stories": story_count,
        "cleaned_images": image_count,
        "sessions_removed": sessions_removed,
    }


async def startup(ctx: dict[str, Any]) -> None:
    """Called when worker starts up."""
    configure_logging(json_format=LOG_FORMAT == "json", level=LOG_LEVEL)
    logger.info("ARQ worker starting up")

    ctx["db_pool"] = await create_db_pool(min_size=1, max_size=MAX_CONCURRENT_JOBS + 1)
    ctx["blob_store"] = S3BlobStore()
    ctx["illustrator"] = PageIllustrator.with_sessions()


async def shutdown(ctx: dict[str, Any]) -> None:
    """Called when worker shuts down."""
    logger.info("ARQ worker shutting down")
    pool: Optional[asyncpg.Pool] = ctx.get("db_pool")
    if pool is not None:
        await pool.close()


class WorkerSettings:
    """ARQ worker configuration."""

    functions = [generate_story_task, generate_page_image_task]

    cron_jobs = [
        cron(cleanup_stale_jobs_task, minute=set(range(0, 60, 5))),
    ]

    on_startup = startup
    on_shutdown = shutdown

    redis_settings = RedisSettings()

    max_jobs = MAX_CONCURRENT_JOBS
    job_timeout = JOB_TIMEOUT_SECONDS

    # No automatic retries: each job id resolves exactly once
    max_tries = 1

    health_check_interval = 30
