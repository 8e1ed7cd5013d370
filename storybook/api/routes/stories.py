"""Story CRUD, batch illustration and PDF export endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Response, status

from storybook.core.errors import StorageError
from storybook.core.pdf_builder import build_story_pdf, pdf_filename

from ..dependencies import BlobStore, DbPool, Illustrator, Pages, Repository, Service
from ..models.enums import JobStatus
from ..models.requests import (
    BatchImagesRequest,
    CreateStoryRequest,
    EditStoryRequest,
    SaveStoryRequest,
)
from ..models.responses import (
    BatchImagesResponse,
    CreateStoryResponse,
    SaveStoryResponse,
    StoryListResponse,
    StoryResponse,
    StoryStatusResponse,
    StorySummaryResponse,
)
from ..services.batch_images import generate_all_images
from .views import page_response, story_response

logger = logging.getLogger(__name__)

router = APIRouter()


def _not_found(story_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Story {story_id} not found",
    )


@router.post(
    "/",
    response_model=CreateStoryResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Create a new story",
    description="Start a story generation job. Returns immediately with an ID that can be polled for status.",
)
async def create_story(request: CreateStoryRequest, service: Service):
    """Start a new story generation job."""
    story_id = await service.create_story_job(
        prompt=request.prompt,
        total_pages=request.total_pages,
        target_age=request.target_age,
        author=request.author,
    )

    return CreateStoryResponse(
        id=story_id,
        status=JobStatus.PENDING,
    )


@router.post(
    "/saved",
    response_model=SaveStoryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Save a finished story",
    description="Store a story the client already has (title and pages) without generating text.",
)
async def save_story(request: SaveStoryRequest, service: Service):
    """Store a client-supplied story."""
    story_id = await service.save_story(request)
    return SaveStoryResponse(id=story_id, status=JobStatus.COMPLETED)


@router.get(
    "/",
    response_model=StoryListResponse,
    summary="List all stories",
    description="Get a paginated list of stories, optionally filtered by status.",
)
async def list_stories(
    repo: Repository,
    limit: int = Query(default=20, ge=1, le=100, description="Maximum number of stories to return"),
    offset: int = Query(default=0, ge=0, description="Number of stories to skip"),
    status: Optional[JobStatus] = Query(default=None, description="Filter by status"),
):
    """List stories with pagination and optional status filter."""
    stories, total = await repo.list_stories(
        limit=limit,
        offset=offset,
        status=status.value if status else None,
    )

    return StoryListResponse(
        stories=[
            StorySummaryResponse(
                id=s["id"],
                status=JobStatus(s["status"]),
                prompt=s["prompt"],
                total_pages=s["total_pages"],
                title=s["title"],
                created_at=s["created_at"],
            )
            for s in stories
        ],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get(
    "/{story_id}",
    response_model=StoryResponse,
    summary="Get a story",
    description="Get a story with its pages. Image URLs are freshly signed on every call.",
)
async def get_story(story_id: str, repo: Repository, pages: Pages, blob_store: BlobStore):
    """Get a story by ID."""
    story = await repo.get_story(story_id)
    if not story:
        raise _not_found(story_id)

    return await story_response(story, await pages.list_pages(story_id), blob_store)


@router.get(
    "/{story_id}/status",
    response_model=StoryStatusResponse,
    summary="Get story generation status",
)
async def get_story_status(story_id: str, repo: Repository):
    """Poll story text generation."""
    story = await repo.get_story(story_id)
    if not story:
        raise _not_found(story_id)

    return StoryStatusResponse(
        id=story["id"],
        status=JobStatus(story["status"]),
        title=story["title"],
        error_message=story["error_message"],
    )


@router.patch(
    "/{story_id}",
    response_model=StoryResponse,
    summary="Edit a story",
    description="Change the title and/or the text and image prompt of individual pages.",
)
async def edit_story(
    story_id: str,
    request: EditStoryRequest,
    service: Service,
    repo: Repository,
    pages: Pages,
    blob_store: BlobStore,
):
    """Edit a story's title or pages."""
    await service.edit_story(story_id, request)

    story = await repo.get_story(story_id)
    return await story_response(story, await pages.list_pages(story_id), blob_store)


@router.delete(
    "/{story_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a story",
    description="Delete a story, its pages and its stored illustrations.",
)
async def delete_story(story_id: str, repo: Repository, pages: Pages, blob_store: BlobStore):
    """Delete a story and its images."""
    image_keys = [p["image_key"] for p in await pages.list_pages(story_id) if p["image_key"]]

    deleted = await repo.delete_story(story_id)
    if not deleted:
        raise _not_found(story_id)

    for key in image_keys:
        try:
            await blob_store.delete_object(key)
        except StorageError as e:
            logger.warning(f"Could not delete image {key} of story {story_id}: {e}")

    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{story_id}/images",
    response_model=BatchImagesResponse,
    summary="Illustrate every page",
    description=(
        "Generate illustrations for all pages, one after another, with a shared "
        "character description. Pages that fail or are rate limited come back unchanged."
    ),
)
async def generate_story_images(
    story_id: str,
    pool: DbPool,
    illustrator: Illustrator,
    blob_store: BlobStore,
    request: Optional[BatchImagesRequest] = None,
):
    """Generate all illustrations for a story."""
    request = request or BatchImagesRequest()
    result = await generate_all_images(
        pool,
        illustrator,
        blob_store,
        story_id,
        character_description=request.character_description,
    )

    return BatchImagesResponse(
        story_id=story_id,
        pages=[await page_response(p, blob_store) for p in result.pages],
        generated=len(result.generated),
        failed=len(result.failed),
    )


@router.get(
    "/{story_id}/export/pdf",
    summary="Export a story as PDF",
    responses={
        200: {"content": {"application/pdf": {}}},
        404: {"description": "Story not found or has no pages"},
    },
)
async def export_pdf(story_id: str, repo: Repository, pages: Pages, blob_store: BlobStore):
    """Render the story and its illustrations to a PDF download."""
    story = await repo.get_story(story_id)
    if not story:
        raise _not_found(story_id)

    rows = await pages.list_pages(story_id)
    if not rows:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Story {story_id} has no pages",
        )

    images = {}
    for page in rows:
        if not page["image_key"]:
            continue
        try:
            images[page["page_number"]], _ = await blob_store.get_object(page["image_key"])
        except StorageError as e:
            logger.warning(f"Exporting page {page['page_number']} without image: {e}")

    title = story["title"] or "Untitled Story"
    pdf = build_story_pdf(
        title,
        [{"page_number": p["page_number"], "text": p["text"]} for p in rows],
        images,
        author=story["author"],
    )

    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{pdf_filename(title)}"'},
    )
