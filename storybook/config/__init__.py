"""
Configuration module for the storybook generator.

Re-exports the provider, story and storage settings.
"""

from .llm import get_inference_lm, llm_retry
from .story import STORY_CONSTANTS
from .image import (
    IMAGE_CONSTANTS,
    get_image_client,
    get_image_model,
    get_image_config,
    extract_image_from_response,
)
from .storage import STORAGE_CONSTANTS, get_bucket_name, get_s3_client

__all__ = [
    # LLM
    "get_inference_lm",
    "llm_retry",
    # Story
    "STORY_CONSTANTS",
    # Image
    "IMAGE_CONSTANTS",
    "get_image_client",
    "get_image_model",
    "get_image_config",
    "extract_image_from_response",
    # Storage
    "STORAGE_CONSTANTS",
    "get_bucket_name",
    "get_s3_client",
]
