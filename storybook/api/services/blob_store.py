"""S3 blob store for page illustrations.

boto3 is synchronous, so every call runs in a worker thread to keep the
event loop free.
"""

import asyncio
import logging
from typing import Optional

from botocore.exceptions import BotoCoreError, ClientError

from storybook.config import STORAGE_CONSTANTS, get_bucket_name, get_s3_client
from storybook.config.storage import (
    generate_custom_image_key,
    generate_image_key,
    is_allowed_image_type,
)
from storybook.core.errors import StorageError

logger = logging.getLogger(__name__)


class S3BlobStore:
    """
    Store, sign and fetch page images in S3.

    Args:
        client: Optional boto3 S3 client (defaults to one for AWS_REGION)
        bucket: Optional bucket name (defaults to STORY_ASSETS_BUCKET)
    """

    def __init__(self, client=None, bucket: Optional[str] = None):
        self.bucket = bucket or get_bucket_name()
        self.client = client or get_s3_client()

    async def put_image(
        self,
        story_id: str,
        page_number: int,
        data: bytes,
        content_type: str,
        file_name: str,
    ) -> str:
        """
        Upload an illustration.

        Returns:
            The object key

        Raises:
            StorageError: On a disallowed type, oversize payload or S3 failure
        """
        return await self._upload(
            generate_image_key(story_id, page_number, file_name), data, content_type
        )

    async def put_custom_image(self, data: bytes, content_type: str, file_name: str) -> str:
        """Upload an image that belongs to no story page. Returns the object key."""
        return await self._upload(generate_custom_image_key(file_name), data, content_type)

    async def _upload(self, key: str, data: bytes, content_type: str) -> str:
        if not is_allowed_image_type(content_type):
            raise StorageError(f"Unsupported image type: {content_type}")
        if len(data) > STORAGE_CONSTANTS["max_file_size"]:
            raise StorageError(
                f"Image is {len(data)} bytes, limit is {STORAGE_CONSTANTS['max_file_size']}"
            )

        try:
            await asyncio.to_thread(
                self.client.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to upload {key}: {e}")
            raise StorageError(f"Failed to upload image: {e}") from e

        logger.info(f"Uploaded {len(data)} bytes to s3://{self.bucket}/{key}")
        return key

    async def get_signed_url(self, key: str) -> str:
        """Presigned GET URL for a key."""
        try:
            return await asyncio.to_thread(
                self.client.generate_presigned_url,
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=STORAGE_CONSTANTS["signed_url_expiration"],
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to sign URL for {key}: {e}") from e

    async def get_object(self, key: str) -> tuple[bytes, str]:
        """Download an object. Returns (bytes, content_type)."""
        try:
            response = await asyncio.to_thread(
                self.client.get_object,
                Bucket=self.bucket,
                Key=key,
            )
            body = await asyncio.to_thread(response["Body"].read)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to read {key}: {e}") from e
        return body, response.get("ContentType", "image/png")

    async def delete_object(self, key: str) -> None:
        try:
            await asyncio.to_thread(
                self.client.delete_object,
                Bucket=self.bucket,
                Key=key,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to delete {key}: {e}") from e
