"""Pydantic models for API responses."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, computed_field

from .enums import JobStatus


class PageResponse(BaseModel):
    """A single page of a story."""

    page_number: int
    text: str
    image_prompt: Optional[str] = None
    image_url: Optional[str] = None  # Signed URL, short-lived
    image_generation_status: Optional[JobStatus] = None
    image_generation_count: int = 0
    last_image_generated_at: Optional[str] = None

    @computed_field
    @property
    def word_count(self) -> int:
        return len(self.text.split())


class StoryResponse(BaseModel):
    """Full story response with pages."""

    id: str
    status: JobStatus
    prompt: str
    total_pages: int
    target_age: str
    author: str
    title: Optional[str] = None
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    pages: list[PageResponse] = Field(default_factory=list)


class StorySummaryResponse(BaseModel):
    """Story row as shown in listings (no pages)."""

    id: str
    status: JobStatus
    prompt: str
    total_pages: int
    title: Optional[str] = None
    created_at: Optional[datetime] = None


class StoryListResponse(BaseModel):
    """Paginated list of stories."""

    stories: list[StorySummaryResponse]
    total: int
    limit: int
    offset: int


class CreateStoryResponse(BaseModel):
    """Response when creating a new story job."""

    id: str
    status: JobStatus
    message: str = Field(
        default="Story generation started. Poll GET /stories/{id}/status for progress."
    )


class StoryStatusResponse(BaseModel):
    """Story text generation status."""

    id: str
    status: JobStatus
    title: Optional[str] = None
    error_message: Optional[str] = None

    @computed_field
    @property
    def is_complete(self) -> bool:
        return self.status == JobStatus.COMPLETED


class ImageJobResponse(BaseModel):
    """Handle returned when a page image job is accepted."""

    job_id: str
    status: JobStatus
    story_id: str
    page_number: int


class ImageStatusResponse(BaseModel):
    """Polling surface for a page's image generation."""

    status: Optional[JobStatus] = None
    job_id: Optional[str] = None
    image_url: Optional[str] = None  # Only set once COMPLETED
    image_generation_count: int = 0
    last_generated_at: Optional[str] = None


class BatchImagesResponse(BaseModel):
    """Result of illustrating every page of a story."""

    story_id: str
    pages: list[PageResponse]
    generated: int
    failed: int


class SaveStoryResponse(BaseModel):
    """Response when a client-supplied story is stored."""

    id: str
    status: JobStatus
    message: str = "Story saved"


class CustomImageResponse(BaseModel):
    """A one-off illustration."""

    image_key: str
    image_url: str  # Signed URL, short-lived
