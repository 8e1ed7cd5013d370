"""Per-page endpoints: text rewrite, image generation and image status polling."""

from typing import Optional

from fastapi import APIRouter, HTTPException, status

from ..arq_pool import enqueue_page_image
from ..dependencies import BlobStore, DbPool, Pages, Service
from ..models.enums import JobStatus
from ..models.requests import GenerateImageRequest, RegeneratePageTextRequest
from ..models.responses import ImageJobResponse, ImageStatusResponse, PageResponse
from ..services.image_generation import start_page_image_job
from .views import image_status_response, page_response

router = APIRouter()


@router.post(
    "/{story_id}/pages/{page_number}/regenerate-text",
    response_model=PageResponse,
    summary="Rewrite a page's text",
)
async def regenerate_page_text(
    story_id: str,
    page_number: int,
    request: RegeneratePageTextRequest,
    service: Service,
    pages: Pages,
    blob_store: BlobStore,
):
    """Rewrite one page with the text model, keeping it consistent with the others."""
    await service.regenerate_page_text(story_id, page_number, request.custom_prompt)
    page = await pages.get_page(story_id, page_number)
    return await page_response(page, blob_store)


@router.post(
    "/{story_id}/pages/{page_number}/image",
    response_model=ImageJobResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Generate a page illustration",
    description=(
        "Start an image generation job. Returns a job handle immediately; poll "
        "the image-status endpoint. Each page allows 2 images per day, at least "
        "15 minutes apart (429 otherwise)."
    ),
    responses={
        404: {"description": "Page not found"},
        429: {"description": "Daily limit reached or cooldown active"},
    },
)
async def generate_page_image(
    story_id: str,
    page_number: int,
    pool: DbPool,
    request: Optional[GenerateImageRequest] = None,
):
    """Accept an image job for one page."""
    request = request or GenerateImageRequest()

    async def enqueue(job_id: str):
        await enqueue_page_image(
            job_id,
            story_id,
            page_number,
            custom_prompt=request.custom_prompt,
            enhance=request.enhance,
            use_prior_pages=request.use_prior_pages,
            session_id=request.session_id,
        )

    job_id = await start_page_image_job(pool, story_id, page_number, enqueue)

    return ImageJobResponse(
        job_id=job_id,
        status=JobStatus.PENDING,
        story_id=story_id,
        page_number=page_number,
    )


@router.get(
    "/{story_id}/pages/{page_number}/image-status",
    response_model=ImageStatusResponse,
    summary="Poll a page's image generation",
)
async def get_image_status(story_id: str, page_number: int, pages: Pages, blob_store: BlobStore):
    """Current image job state for a page."""
    page = await pages.get_page(story_id, page_number)
    if not page:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Page {page_number} not found in story {story_id}",
        )

    return await image_status_response(page, blob_store)
