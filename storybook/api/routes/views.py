"""Record to response conversion shared by the route modules."""

import logging
from typing import Optional

import asyncpg

from storybook.core.errors import StorageError

from ..models.enums import JobStatus
from ..models.responses import ImageStatusResponse, PageResponse, StoryResponse
from ..services.blob_store import S3BlobStore

logger = logging.getLogger(__name__)


async def _signed_url(blob_store: S3BlobStore, key: Optional[str]) -> Optional[str]:
    if not key:
        return None
    try:
        return await blob_store.get_signed_url(key)
    except StorageError as e:
        logger.warning(f"Could not sign image URL for {key}: {e}")
        return None


async def page_response(page: asyncpg.Record, blob_store: S3BlobStore) -> PageResponse:
    """Page row to response, with a fresh signed URL for its current image."""
    status = page["image_generation_status"]
    return PageResponse(
        page_number=page["page_number"],
        text=page["text"],
        image_prompt=page["image_prompt"],
        image_url=await _signed_url(blob_store, page["image_key"]),
        image_generation_status=JobStatus(status) if status else None,
        image_generation_count=page["image_generation_count"] or 0,
        last_image_generated_at=page["last_image_generated_at"],
    )


async def story_response(
    story: asyncpg.Record,
    pages: list[asyncpg.Record],
    blob_store: S3BlobStore,
) -> StoryResponse:
    return StoryResponse(
        id=story["id"],
        status=JobStatus(story["status"]),
        prompt=story["prompt"],
        total_pages=story["total_pages"],
        target_age=story["target_age"],
        author=story["author"],
        title=story["title"],
        error_message=story["error_message"],
        created_at=story["created_at"],
        updated_at=story["updated_at"],
        pages=[await page_response(p, blob_store) for p in pages],
    )


async def image_status_response(page: asyncpg.Record, blob_store: S3BlobStore) -> ImageStatusResponse:
    """Polling view: the image URL is only exposed once the job is COMPLETED."""
    status = JobStatus(page["image_generation_status"]) if page["image_generation_status"] else None
    image_url = None
    if status == JobStatus.COMPLETED:
        image_url = await _signed_url(blob_store, page["image_key"])
    return ImageStatusResponse(
        status=status,
        job_id=page["image_generation_job_id"],
        image_url=image_url,
        image_generation_count=page["image_generation_count"] or 0,
        last_generated_at=page["last_image_generated_at"],
    )
