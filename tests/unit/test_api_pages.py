"""Tests for per-page API endpoints."""

from unittest.mock import AsyncMock, MagicMock, patch

from storybook.core.errors import GenerationLimitError, NotFoundError

from tests.unit.conftest import TEST_STORY_ID, make_page


class TestGeneratePageImage:
    """Tests for POST /stories/{id}/pages/{n}/image."""

    def test_accepted_job_is_enqueued(self, client_with_mocks):
        client, _, _, _ = client_with_mocks
        arq = MagicMock()
        arq.enqueue_job = AsyncMock()

        async def start(pool, story_id, page_number, enqueue):
            await enqueue("job-123")
            return "job-123"

        with patch("storybook.api.routes.pages.start_page_image_job", side_effect=start), \
             patch("storybook.api.arq_pool.get_pool", return_value=arq):
            response = client.post(
                f"/stories/{TEST_STORY_ID}/pages/2/image",
                json={"custom_prompt": "A dragon at dusk", "session_id": "s1"},
            )

        assert response.status_code == 202
        assert response.json() == {
            "job_id": "job-123",
            "status": "PENDING",
            "story_id": TEST_STORY_ID,
            "page_number": 2,
        }
        call = arq.enqueue_job.call_args
        assert call.args == ("generate_page_image_task",)
        assert call.kwargs["job_id"] == "job-123"
        assert call.kwargs["_job_id"] == "job-123"
        assert call.kwargs["custom_prompt"] == "A dragon at dusk"
        assert call.kwargs["session_id"] == "s1"
        assert call.kwargs["enhance"] is True

    def test_request_body_is_optional(self, client_with_mocks):
        client, _, _, _ = client_with_mocks
        arq = MagicMock()
        arq.enqueue_job = AsyncMock()

        async def start(pool, story_id, page_number, enqueue):
            await enqueue("job-7")
            return "job-7"

        with patch("storybook.api.routes.pages.start_page_image_job", side_effect=start), \
             patch("storybook.api.arq_pool.get_pool", return_value=arq):
            response = client.post(f"/stories/{TEST_STORY_ID}/pages/1/image")

        assert response.status_code == 202
        kwargs = arq.enqueue_job.call_args.kwargs
        assert kwargs["custom_prompt"] is None
        assert kwargs["enhance"] is True
        assert kwargs["use_prior_pages"] is True
        assert kwargs["session_id"] is None

    def test_daily_limit_maps_to_429(self, client_with_mocks):
        client, _, _, _ = client_with_mocks
        error = GenerationLimitError("Daily limit reached. You can generate 2 images per page per day.")

        with patch("storybook.api.routes.pages.start_page_image_job", AsyncMock(side_effect=error)):
            response = client.post(f"/stories/{TEST_STORY_ID}/pages/1/image", json={})

        assert response.status_code == 429
        assert response.json()["detail"].startswith("Daily limit reached")

    def test_unknown_page_maps_to_404(self, client_with_mocks):
        client, _, _, _ = client_with_mocks

        with patch(
            "storybook.api.routes.pages.start_page_image_job",
            AsyncMock(side_effect=NotFoundError("Page 9 not found")),
        ):
            response = client.post(f"/stories/{TEST_STORY_ID}/pages/9/image", json={})

        assert response.status_code == 404


class TestImageStatus:
    """Tests for GET /stories/{id}/pages/{n}/image-status."""

    def test_pending_job_has_no_url(self, client_with_mocks):
        client, _, mock_pages, _ = client_with_mocks
        mock_pages.get_page = AsyncMock(return_value=make_page(
            1, image_key="old-key", image_generation_status="PENDING", image_generation_job_id="j1",
        ))

        response = client.get(f"/stories/{TEST_STORY_ID}/pages/1/image-status")

        data = response.json()
        assert data["status"] == "PENDING"
        assert data["job_id"] == "j1"
        assert data["image_url"] is None

    def test_completed_job_returns_signed_url(self, client_with_mocks):
        client, _, mock_pages, _ = client_with_mocks
        mock_pages.get_page = AsyncMock(return_value=make_page(
            1,
            image_key="new-key",
            image_generation_status="COMPLETED",
            image_generation_job_id="j1",
            image_generation_count=1,
            last_image_generated_at="2024-03-10T10:00:00.000Z",
        ))

        response = client.get(f"/stories/{TEST_STORY_ID}/pages/1/image-status")

        data = response.json()
        assert data["status"] == "COMPLETED"
        assert data["image_url"] == "https://signed.example/new-key"
        assert data["image_generation_count"] == 1
        assert data["last_generated_at"] == "2024-03-10T10:00:00.000Z"

    def test_unknown_page(self, client_with_mocks):
        client, _, mock_pages, _ = client_with_mocks
        mock_pages.get_page = AsyncMock(return_value=None)

        response = client.get(f"/stories/{TEST_STORY_ID}/pages/7/image-status")

        assert response.status_code == 404


class TestRegeneratePageText:
    """Tests for POST /stories/{id}/pages/{n}/regenerate-text."""

    def test_returns_rewritten_page(self, client_with_mocks):
        client, _, mock_pages, mock_service = client_with_mocks
        mock_service.regenerate_page_text = AsyncMock()
        mock_pages.get_page = AsyncMock(return_value=make_page(3, text="A brand new page."))

        response = client.post(
            f"/stories/{TEST_STORY_ID}/pages/3/regenerate-text",
            json={"custom_prompt": "make it funnier"},
        )

        assert response.status_code == 200
        assert response.json()["text"] == "A brand new page."
        mock_service.regenerate_page_text.assert_awaited_once_with(TEST_STORY_ID, 3, "make it funnier")
