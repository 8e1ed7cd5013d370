"""Tests for the S3 blob store with a mocked boto3 client."""

from io import BytesIO
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from storybook.api.services.blob_store import S3BlobStore
from storybook.core.errors import StorageError


@pytest.fixture
def s3():
    client = MagicMock()
    client.generate_presigned_url.return_value = "https://signed.example/url"
    client.get_object.return_value = {"Body": BytesIO(b"png-bytes"), "ContentType": "image/png"}
    return client


@pytest.fixture
def store(s3):
    return S3BlobStore(client=s3, bucket="story-assets")


def _client_error(operation):
    return ClientError({"Error": {"Code": "AccessDenied", "Message": "denied"}}, operation)


class TestPutImage:
    @pytest.mark.asyncio
    async def test_uploads_with_content_type_and_key_layout(self, store, s3):
        key = await store.put_image("story-1", 3, b"png", "image/png", "page-3.png")

        assert key.startswith("stories/story-1/pages/page-3/")
        assert key.endswith("-page-3.png")
        s3.put_object.assert_called_once_with(
            Bucket="story-assets",
            Key=key,
            Body=b"png",
            ContentType="image/png",
        )

    @pytest.mark.asyncio
    async def test_rejects_disallowed_type(self, store, s3):
        with pytest.raises(StorageError, match="Unsupported image type"):
            await store.put_image("story-1", 1, b"gif", "image/gif", "page-1.gif")

        s3.put_object.assert_not_called()

    @pytest.mark.asyncio
    async def test_rejects_oversized_payload(self, store, s3):
        with pytest.raises(StorageError):
            await store.put_image("story-1", 1, b"x" * (10 * 1024 * 1024 + 1), "image/png", "p.png")

    @pytest.mark.asyncio
    async def test_s3_failure_is_storage_error(self, store, s3):
        s3.put_object.side_effect = _client_error("PutObject")

        with pytest.raises(StorageError, match="Failed to upload"):
            await store.put_image("story-1", 1, b"png", "image/png", "page-1.png")


class TestReadOperations:
    @pytest.mark.asyncio
    async def test_signed_url_uses_one_hour_expiry(self, store, s3):
        url = await store.get_signed_url("stories/story-1/pages/page-1/1-page-1.png")

        assert url == "https://signed.example/url"
        s3.generate_presigned_url.assert_called_once_with(
            "get_object",
            Params={"Bucket": "story-assets", "Key": "stories/story-1/pages/page-1/1-page-1.png"},
            ExpiresIn=3600,
        )

    @pytest.mark.asyncio
    async def test_get_object_returns_bytes_and_type(self, store):
        data, content_type = await store.get_object("some/key")

        assert data == b"png-bytes"
        assert content_type == "image/png"

    @pytest.mark.asyncio
    async def test_get_object_failure(self, store, s3):
        s3.get_object.side_effect = _client_error("GetObject")

        with pytest.raises(StorageError):
            await store.get_object("some/key")

    @pytest.mark.asyncio
    async def test_delete_object(self, store, s3):
        await store.delete_object("some/key")

        s3.delete_object.assert_called_once_with(Bucket="story-assets", Key="some/key")


class TestConfiguration:
    def test_missing_bucket_is_configuration_error(self, monkeypatch):
        from storybook.core.errors import ConfigurationError

        monkeypatch.delenv("STORY_ASSETS_BUCKET", raising=False)

        with pytest.raises(ConfigurationError):
            S3BlobStore(client=MagicMock())


class TestPutCustomImage:
    @pytest.mark.asyncio
    async def test_custom_image_key_layout(self, store, s3):
        key = await store.put_custom_image(b"png", "image/png", "image.png")

        assert key.startswith("custom/")
        assert key.endswith("-image.png")
        assert s3.put_object.call_args.kwargs["Key"] == key

    @pytest.mark.asyncio
    async def test_custom_image_type_is_validated(self, store, s3):
        with pytest.raises(StorageError):
            await store.put_custom_image(b"gif", "image/gif", "image.gif")

        s3.put_object.assert_not_called()
