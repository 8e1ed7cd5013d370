"""Tests for illustrating a whole story in one pass."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from storybook.api.services.batch_images import generate_all_images
from storybook.core.errors import NotFoundError, ProviderError
from storybook.core.types import GeneratedImage

from tests.unit.conftest import TEST_STORY_ID


@pytest.fixture
def story_repo():
    repo = AsyncMock()
    repo.get_story.return_value = {"id": TEST_STORY_ID, "title": "The Brave Bunny"}
    with patch("storybook.api.services.batch_images.StoryRepository", lambda conn: repo):
        yield repo


def _illustrate(prompt, **kwargs):
    if "Scene 2" in prompt:
        raise ProviderError("model refused")
    return GeneratedImage(b"img", "image/png")


@pytest.fixture
def illustrator():
    mock = MagicMock()
    mock.generate_image.side_effect = _illustrate
    return mock


class TestGenerateAllImages:

    @pytest.mark.asyncio
    async def test_one_failing_page_does_not_stop_the_batch(
        self, pool, page_repo, story_repo, blob_store, illustrator
    ):
        result = await generate_all_images(pool, illustrator, blob_store, TEST_STORY_ID)

        assert result.generated == [1, 3]
        assert result.failed == [2]

        by_number = {p["page_number"]: p for p in result.pages}
        assert by_number[1]["image_key"] is not None
        assert by_number[3]["image_key"] is not None
        assert by_number[2]["image_key"] is None
        assert by_number[2]["image_generation_count"] == 0

    @pytest.mark.asyncio
    async def test_prompts_share_consistency_prefix(
        self, pool, page_repo, story_repo, blob_store, illustrator
    ):
        await generate_all_images(
            pool, illustrator, blob_store, TEST_STORY_ID,
            character_description="a small grey bunny with a red scarf",
        )

        prompts = [c.args[0] for c in illustrator.generate_image.call_args_list]
        assert len(prompts) == 3
        for n, prompt in enumerate(prompts, start=1):
            assert '"The Brave Bunny"' in prompt
            assert "a small grey bunny with a red scarf" in prompt
            assert prompt.endswith(f"Scene: Scene {n}")
        assert all(c.kwargs["enhance"] is False for c in illustrator.generate_image.call_args_list)

    @pytest.mark.asyncio
    async def test_pages_without_image_prompt_are_skipped(
        self, pool, page_repo, story_repo, blob_store, illustrator
    ):
        page_repo.rows[2]["image_prompt"] = None

        result = await generate_all_images(pool, illustrator, blob_store, TEST_STORY_ID)

        assert result.skipped == [2]
        assert result.generated == [1, 3]
        assert page_repo.rows[2]["image_generation_status"] is None

    @pytest.mark.asyncio
    async def test_rate_limited_page_counts_as_failed(
        self, pool, page_repo, story_repo, blob_store
    ):
        today = datetime.now(timezone.utc).date().isoformat()
        page_repo.rows[1].update(image_generation_count=2, image_generation_date=today)
        illustrator = MagicMock()
        illustrator.generate_image.return_value = GeneratedImage(b"img", "image/png")

        result = await generate_all_images(pool, illustrator, blob_store, TEST_STORY_ID)

        assert result.failed == [1]
        assert result.generated == [2, 3]
        assert page_repo.rows[1]["image_generation_status"] == "FAILED"

    @pytest.mark.asyncio
    async def test_unknown_story(self, pool, page_repo, story_repo, blob_store, illustrator):
        story_repo.get_story.return_value = None

        with pytest.raises(NotFoundError):
            await generate_all_images(pool, illustrator, blob_store, TEST_STORY_ID)

    @pytest.mark.asyncio
    async def test_story_without_pages(self, pool, page_repo, story_repo, blob_store, illustrator):
        page_repo.rows.clear()

        with pytest.raises(NotFoundError, match="No pages"):
            await generate_all_images(pool, illustrator, blob_store, TEST_STORY_ID)
