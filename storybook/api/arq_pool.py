"""ARQ Redis pool and the enqueue calls made by the API.

The pool is created in the API lifespan; routes and services only go
through the `enqueue_*` helpers so task names and arguments live in one
place, next to `storybook.worker`.
"""

from typing import Optional

from arq import ArqRedis
from arq.jobs import Job

# Global ARQ Redis pool (set during API startup)
_pool: Optional[ArqRedis] = None


def set_pool(pool: ArqRedis) -> None:
    global _pool
    _pool = pool


def get_pool() -> ArqRedis:
    """Get the ARQ Redis pool. Raises if the API lifespan has not run."""
    if _pool is None:
        raise RuntimeError("ARQ pool not initialized; is Redis configured for the API?")
    return _pool


async def close_pool() -> None:
    global _pool
    if _pool is not None:
        await _pool.aclose()
        _pool = None


async def enqueue_story_generation(
    story_id: str,
    prompt: str,
    total_pages: int,
    target_age: Optional[str],
) -> Optional[Job]:
    """Queue `generate_story_task` for a PENDING story."""
    return await get_pool().enqueue_job(
        "generate_story_task",
        story_id=story_id,
        prompt=prompt,
        total_pages=total_pages,
        target_age=target_age,
    )


async def enqueue_page_image(
    job_id: str,
    story_id: str,
    page_number: int,
    custom_prompt: Optional[str] = None,
    enhance: bool = True,
    use_prior_pages: bool = True,
    session_id: Optional[str] = None,
) -> Optional[Job]:
    """
    Queue `generate_page_image_task` for a PENDING page image job.

    The image job id doubles as the ARQ job id, so a job id is never queued twice.
    """
    return await get_pool().enqueue_job(
        "generate_page_image_task",
        story_id=story_id,
        page_number=page_number,
        job_id=job_id,
        custom_prompt=custom_prompt,
        enhance=enhance,
        use_prior_pages=use_prior_pages,
        session_id=session_id,
        _job_id=job_id,
    )
