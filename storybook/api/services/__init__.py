"""Services for story and illustration generation."""

from .batch_images import BatchResult, generate_all_images
from .blob_store import S3BlobStore
from .image_generation import generate_custom_image, generate_page_image, start_page_image_job
from .image_jobs import ImageJob, image_generation_job
from .story_generation import generate_story
from .story_service import StoryService

__all__ = [
    "BatchResult",
    "generate_all_images",
    "S3BlobStore",
    "generate_custom_image",
    "generate_page_image",
    "start_page_image_job",
    "ImageJob",
    "image_generation_job",
    "generate_story",
    "StoryService",
]
