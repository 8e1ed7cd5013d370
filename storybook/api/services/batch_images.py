"""Illustrate every page of a story in one pass."""

import logging
from dataclasses import dataclass, field
from typing import Optional

import asyncpg

from storybook.core.errors import NotFoundError
from storybook.core.modules.page_illustrator import PageIllustrator, build_consistency_prefix

from ..database.repository import PageRepository, StoryRepository
from .blob_store import S3BlobStore
from .image_generation import generate_page_image

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    """Outcome of a batch run: current page rows plus per-page tallies."""

    pages: list = field(default_factory=list)
    generated: list[int] = field(default_factory=list)
    failed: list[int] = field(default_factory=list)
    skipped: list[int] = field(default_factory=list)


async def generate_all_images(
    pool: asyncpg.Pool,
    illustrator: PageIllustrator,
    blob_store: S3BlobStore,
    story_id: str,
    character_description: Optional[str] = None,
) -> BatchResult:
    """
    Generate illustrations for all pages, one after another.

    Every page goes through its own limiter-gated job and shares a prompt
    prefix describing the main character. A failure on one page is logged
    and the loop moves on; failed pages come back unchanged.

    Raises:
        NotFoundError: Unknown story or a story without pages
    """
    async with pool.acquire() as conn:
        story = await StoryRepository(conn).get_story(story_id)
        if story is None:
            raise NotFoundError(f"Story {story_id} not found")
        pages = await PageRepository(conn).list_pages(story_id)
    if not pages:
        raise NotFoundError(f"No pages found for story {story_id}")

    prefix = build_consistency_prefix(story["title"] or "", character_description)
    result = BatchResult()

    for page in pages:
        page_number = page["page_number"]
        if not page["image_prompt"]:
            result.skipped.append(page_number)
            continue

        try:
            await generate_page_image(
                pool,
                illustrator,
                blob_store,
                story_id,
                page_number,
                custom_prompt=f"Scene: {page['image_prompt']}",
                prompt_prefix=prefix,
                enhance=False,
            )
            result.generated.append(page_number)
        except Exception as e:
            logger.warning(
                f"Batch image generation failed for page {page_number}: {e}",
                extra={"story_id": story_id, "page_number": page_number, "error_type": type(e).__name__},
            )
            result.failed.append(page_number)

    async with pool.acquire() as conn:
        result.pages = await PageRepository(conn).list_pages(story_id)

    logger.info(
        f"Batch images for story {story_id}: {len(result.generated)} generated, "
        f"{len(result.failed)} failed, {len(result.skipped)} skipped"
    )
    return result
