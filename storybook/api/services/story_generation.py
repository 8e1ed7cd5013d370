"""
Standalone story text generation.

Called from the ARQ worker with the worker's shared database pool. Every
path ends with the story either COMPLETED (pages saved) or FAILED.
"""

import asyncio
import time
from typing import Optional

import asyncpg

from storybook.core.modules.story_writer import StoryWriter

from ..logging import story_logger
from ..database.repository import StoryRepository
from ..models.enums import JobStatus


async def generate_story(
    pool: asyncpg.Pool,
    story_id: str,
    prompt: str,
    total_pages: int,
    target_age: Optional[str] = None,
    writer: Optional[StoryWriter] = None,
) -> None:
    """
    Write a story and save its pages.

    Args:
        pool: Database connection pool
        story_id: UUID of the story record (must already exist in DB)
        prompt: The reader's story idea
        total_pages: Number of pages to write
        target_age: Reader age range
        writer: Optional StoryWriter (defaults to one on the configured LM)
    """
    start_time = time.time()
    story_logger.generation_started(story_id, total_pages)

    try:
        if writer is None:
            # Import here to keep API start-up free of provider setup
            from storybook.config import get_inference_lm

            writer = StoryWriter(lm=get_inference_lm())

        # dspy calls block, keep them off the event loop
        story = await asyncio.to_thread(
            writer,
            prompt=prompt,
            total_pages=total_pages,
            target_age=target_age,
        )

        async with pool.acquire() as conn:
            await StoryRepository(conn).save_generated_story(story_id, story.title, story.pages)

        story_logger.generation_completed(story_id, time.time() - start_time)

    except Exception as e:
        story_logger.generation_failed(story_id, e)
        try:
            async with pool.acquire() as conn:
                await StoryRepository(conn).update_status(
                    story_id,
                    JobStatus.FAILED.value,
                    error_message=str(e),
                )
        except Exception as write_error:
            story_logger.logger.error(
                f"Could not mark story {story_id} as failed: {write_error}",
                extra={"story_id": story_id, "error_type": type(write_error).__name__},
            )
        raise
