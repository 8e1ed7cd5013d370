"""
Blob storage configuration (S3) for generated illustrations.
"""

import os
import time

import boto3
from dotenv import load_dotenv

from storybook.core.errors import ConfigurationError

load_dotenv()

STORAGE_CONSTANTS = {
    "signed_url_expiration": 60 * 60,  # seconds
    "max_file_size": 10 * 1024 * 1024,
    "allowed_image_types": ("image/jpeg", "image/png", "image/webp"),
}


def get_region() -> str:
    return os.getenv("AWS_REGION", "us-east-1")


def get_bucket_name() -> str:
    """Get the story assets bucket. Raises if not configured."""
    bucket = os.getenv("STORY_ASSETS_BUCKET")
    if not bucket:
        raise ConfigurationError("STORY_ASSETS_BUCKET environment variable is not configured")
    return bucket


def get_s3_client():
    """Create an S3 client. Credentials come from the standard AWS chain."""
    return boto3.client("s3", region_name=get_region())


def generate_image_key(story_id: str, page_number: int, file_name: str) -> str:
    """Object key for a page illustration."""
    timestamp = int(time.time() * 1000)
    return f"stories/{story_id}/pages/page-{page_number}/{timestamp}-{file_name}"


def generate_custom_image_key(file_name: str) -> str:
    """Object key for a free-standing illustration not tied to a page."""
    timestamp = int(time.time() * 1000)
    return f"custom/{timestamp}-{file_name}"


def is_allowed_image_type(content_type: str) -> bool:
    return content_type in STORAGE_CONSTANTS["allowed_image_types"]
