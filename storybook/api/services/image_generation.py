"""
Page illustration generation.

`start_page_image_job` runs synchronously in the request: it writes PENDING,
checks the limiter and hands the job to the worker. `generate_page_image`
does the actual work (limit check against fresh metadata, prior-page
context, provider call, upload, COMPLETED write) and is used both by the
worker task and by batch generation. `generate_custom_image` serves one-off
prompts with no page behind them.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

import asyncpg

from storybook.core.errors import GenerationLimitError
from storybook.core.generation_limits import evaluate_generation_limit
from storybook.core.modules.page_context import build_prior_page_context
from storybook.core.modules.page_illustrator import PageIllustrator

from ..logging import page_image_logger
from ..database.repository import PageRepository
from .blob_store import S3BlobStore
from .image_jobs import ImageJob, image_generation_job

logger = logging.getLogger(__name__)


def _check_limit(job: ImageJob):
    """Evaluate the limiter for a job, logging rejections."""
    try:
        return evaluate_generation_limit(job.metadata)
    except GenerationLimitError as e:
        page_image_logger.limit_rejected(job.story_id, job.page_number, job.job_id, e.message)
        raise


async def start_page_image_job(
    pool: asyncpg.Pool,
    story_id: str,
    page_number: int,
    enqueue: Callable[[str], Awaitable[Any]],
) -> str:
    """
    Accept an image request and hand it to the background worker.

    Args:
        pool: Database pool
        story_id: Story ID
        page_number: Page to illustrate
        enqueue: Coroutine function taking the job id and queueing the work

    Returns:
        The new job id (status PENDING)

    Raises:
        NotFoundError: Unknown page
        GenerationLimitError: Page is over quota or cooling down (job left FAILED)
    """
    async with image_generation_job(pool, story_id, page_number) as job:
        _check_limit(job)
        await enqueue(job.job_id)
        job.hand_off()
    return job.job_id


async def generate_page_image(
    pool: asyncpg.Pool,
    illustrator: PageIllustrator,
    blob_store: S3BlobStore,
    story_id: str,
    page_number: int,
    job_id: Optional[str] = None,
    custom_prompt: Optional[str] = None,
    prompt_prefix: str = "",
    enhance: bool = True,
    use_prior_pages: bool = True,
    session_id: Optional[str] = None,
) -> str:
    """
    Generate, store and record one page illustration.

    Resumes `job_id` when given (worker path), otherwise starts a new job.

    Returns:
        The stored image key

    Raises:
        NotFoundError: Unknown page
        GenerationLimitError: Limit hit since the request was accepted
        ProviderError: Image model failed
        StorageError: Upload failed
    """
    async with image_generation_job(pool, story_id, page_number, job_id=job_id) as job:
        plan = _check_limit(job)

        scene = custom_prompt or job.page["image_prompt"] or job.page["text"]
        prompt = f"{prompt_prefix}{scene}"

        context = []
        if use_prior_pages:
            async with pool.acquire() as conn:
                pages = await PageRepository(conn).list_pages(story_id)
            context = await build_prior_page_context(pages, page_number, blob_store)

        image = await asyncio.to_thread(
            illustrator.generate_image,
            prompt,
            enhance=enhance,
            prior_page_context=context,
            session_id=session_id,
        )

        image_key = await blob_store.put_image(
            story_id,
            page_number,
            image.image_bytes,
            image.content_type,
            f"page-{page_number}.{image.extension}",
        )
        image_url = await blob_store.get_signed_url(image_key)

        await job.complete(image_url=image_url, image_key=image_key, plan=plan)
        return image_key


async def generate_custom_image(
    illustrator: PageIllustrator,
    blob_store: S3BlobStore,
    prompt: str,
    enhance: bool = True,
) -> tuple[str, str]:
    """
    Generate and store an illustration that is not tied to any page.

    No job record and no generation limits apply, since there is no page to
    attach them to.

    Returns:
        (image key, signed URL)

    Raises:
        ProviderError: Image model failed
        StorageError: Upload failed
    """
    image = await asyncio.to_thread(illustrator.generate_image, prompt, enhance=enhance)
    image_key = await blob_store.put_custom_image(
        image.image_bytes,
        image.content_type,
        f"image.{image.extension}",
    )
    logger.info(f"Stored custom image {image_key}")
    return image_key, await blob_store.get_signed_url(image_key)
