"""Pydantic models for API requests and responses."""

from .enums import JobStatus
from .requests import (
    BatchImagesRequest,
    CreateStoryRequest,
    CustomImageRequest,
    EditStoryRequest,
    GenerateImageRequest,
    PageEdit,
    RegeneratePageTextRequest,
    SavedPage,
    SaveStoryRequest,
)
from .responses import (
    BatchImagesResponse,
    CreateStoryResponse,
    CustomImageResponse,
    ImageJobResponse,
    ImageStatusResponse,
    PageResponse,
    SaveStoryResponse,
    StoryListResponse,
    StoryResponse,
    StoryStatusResponse,
    StorySummaryResponse,
)

__all__ = [
    "JobStatus",
    "BatchImagesRequest",
    "CreateStoryRequest",
    "CustomImageRequest",
    "EditStoryRequest",
    "GenerateImageRequest",
    "PageEdit",
    "RegeneratePageTextRequest",
    "SavedPage",
    "SaveStoryRequest",
    "BatchImagesResponse",
    "CreateStoryResponse",
    "CustomImageResponse",
    "ImageJobResponse",
    "ImageStatusResponse",
    "PageResponse",
    "SaveStoryResponse",
    "StoryListResponse",
    "StoryResponse",
    "StoryStatusResponse",
    "StorySummaryResponse",
]
