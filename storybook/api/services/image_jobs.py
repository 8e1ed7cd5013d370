"""
Page image job lifecycle.

A job moves PENDING -> COMPLETED or PENDING -> FAILED and never leaves a
terminal state. `image_generation_job` owns that lifecycle: whatever happens
inside the `async with` block, the job ends in a terminal write unless it
was explicitly handed off to a worker that resumes it by job id.
"""

import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import asyncpg

from storybook.core.errors import JobStateError, NotFoundError
from storybook.core.types import GenerationPlan, PageGenerationMetadata

from ..logging import page_image_logger
from ..database.repository import PageRepository
from ..models.enums import JobStatus

logger = logging.getLogger(__name__)


class ImageJob:
    """Handle for one page image job inside `image_generation_job`."""

    def __init__(
        self,
        pool: asyncpg.Pool,
        story_id: str,
        page_number: int,
        job_id: str,
        page: asyncpg.Record,
    ):
        self.pool = pool
        self.story_id = story_id
        self.page_number = page_number
        self.job_id = job_id
        self.page = page
        self.status = JobStatus.PENDING
        self.handed_off = False
        self.started_at = time.time()

    @property
    def metadata(self) -> PageGenerationMetadata:
        return PageGenerationMetadata.from_record(self.page)

    @property
    def is_resolved(self) -> bool:
        return self.status.is_terminal

    def hand_off(self) -> None:
        """Mark the job as owned by a background worker from here on."""
        self.handed_off = True

    async def complete(self, image_url: str, image_key: str, plan: GenerationPlan) -> None:
        """Write COMPLETED with the image and the new limit counters in one update.

        Raises:
            JobStateError: If the page no longer holds this job as pending
                (a newer job replaced it or stale cleanup failed it)
        """
        async with self.pool.acquire() as conn:
            updated = await PageRepository(conn).complete_image(
                self.story_id,
                self.page_number,
                self.job_id,
                image_url=image_url,
                image_key=image_key,
                plan=plan,
            )
        if not updated:
            raise JobStateError(
                f"Image job {self.job_id} is no longer pending for story {self.story_id} "
                f"page {self.page_number}; result discarded"
            )
        self.status = JobStatus.COMPLETED
        page_image_logger.job_completed(
            self.story_id,
            self.page_number,
            self.job_id,
            duration=time.time() - self.started_at,
        )

    async def fail(self, error: Optional[BaseException] = None) -> None:
        """Write FAILED. Best-effort: a failing write is logged, never raised."""
        self.status = JobStatus.FAILED
        try:
            async with self.pool.acquire() as conn:
                await PageRepository(conn).mark_image_failed(
                    self.story_id, self.page_number, self.job_id
                )
        except Exception as write_error:
            logger.error(
                f"Could not mark image job {self.job_id} as failed: {write_error}",
                extra={
                    "story_id": self.story_id,
                    "page_number": self.page_number,
                    "job_id": self.job_id,
                    "error_type": type(write_error).__name__,
                },
            )
        if error is not None:
            page_image_logger.job_failed(self.story_id, self.page_number, self.job_id, error)


async def _load_page(pool: asyncpg.Pool, story_id: str, page_number: int) -> asyncpg.Record:
    async with pool.acquire() as conn:
        page = await PageRepository(conn).get_page(story_id, page_number)
    if page is None:
        raise NotFoundError(f"Page {page_number} not found in story {story_id}")
    return page


@asynccontextmanager
async def image_generation_job(
    pool: asyncpg.Pool,
    story_id: str,
    page_number: int,
    job_id: Optional[str] = None,
) -> AsyncIterator[ImageJob]:
    """
    Run a block of work as one page image job.

    Without `job_id` a new job is started: a fresh id is assigned and PENDING
    is persisted before the block runs. With `job_id` an existing pending job
    (one handed off by the API) is resumed. Either way the page row is
    re-read so limit checks see current metadata.

    On exit:
    - an exception resolves the job to FAILED and propagates
    - a clean exit without `complete()` or `hand_off()` also resolves to FAILED

    Raises:
        NotFoundError: If the page does not exist (no job is started)
        JobStateError: If a resumed job is no longer the page's pending job
    """
    page = await _load_page(pool, story_id, page_number)

    if job_id is None:
        job_id = str(uuid.uuid4())
        async with pool.acquire() as conn:
            await PageRepository(conn).mark_image_pending(story_id, page_number, job_id)
        page_image_logger.job_started(story_id, page_number, job_id)
    elif (
        page["image_generation_job_id"] != job_id
        or page["image_generation_status"] != JobStatus.PENDING.value
    ):
        raise JobStateError(
            f"Image job {job_id} is no longer pending for story {story_id} page {page_number}"
        )

    job = ImageJob(pool, story_id, page_number, job_id, page)
    try:
        yield job
    except BaseException as e:
        if not job.is_resolved:
            await job.fail(e)
        raise
    else:
        if not job.is_resolved and not job.handed_off:
            logger.warning(f"Image job {job_id} exited without a result, marking failed")
            await job.fail()
