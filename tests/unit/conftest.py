"""Pytest fixtures for unit tests."""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from storybook.api.database.repository import PageRepository, StoryRepository
from storybook.api.dependencies import (
    get_blob_store,
    get_db_pool,
    get_illustrator,
    get_page_repository,
    get_repository,
    get_story_service,
)
from storybook.api.main import app
from storybook.api.services.blob_store import S3BlobStore
from storybook.api.services.story_service import StoryService

TEST_STORY_ID = "12345678-1234-5678-1234-567812345678"


# =============================================================================
# Database fakes
# =============================================================================


class FakePool:
    """asyncpg.Pool stand-in whose acquire() yields one mock connection."""

    def __init__(self):
        self.conn = MagicMock()

    @asynccontextmanager
    async def acquire(self):
        yield self.conn


def make_page(page_number, **overrides):
    """A story_pages row in its zero state."""
    row = {
        "story_id": TEST_STORY_ID,
        "page_number": page_number,
        "page_id": f"page-{page_number}",
        "text": f"Text of page {page_number}.",
        "image_prompt": f"Scene {page_number}",
        "image_url": None,
        "image_key": None,
        "image_generation_count": 0,
        "image_generation_date": None,
        "last_image_generated_at": None,
        "image_generation_status": None,
        "image_generation_job_id": None,
    }
    row.update(overrides)
    return row


class FakePageRepository:
    """In-memory story_pages table with PageRepository's image job methods."""

    def __init__(self, pages):
        self.rows = {p["page_number"]: dict(p) for p in pages}
        self.fail_on = set()  # method names that raise

    def _maybe_fail(self, name):
        if name in self.fail_on:
            raise RuntimeError(f"{name} write failed")

    async def get_page(self, story_id, page_number):
        row = self.rows.get(page_number)
        return dict(row) if row else None

    async def list_pages(self, story_id):
        return [dict(self.rows[n]) for n in sorted(self.rows)]

    async def mark_image_pending(self, story_id, page_number, job_id):
        self._maybe_fail("mark_image_pending")
        row = self.rows[page_number]
        row["image_generation_status"] = "PENDING"
        row["image_generation_job_id"] = job_id
        return True

    async def mark_image_failed(self, story_id, page_number, job_id):
        self._maybe_fail("mark_image_failed")
        row = self.rows[page_number]
        if row["image_generation_job_id"] != job_id or row["image_generation_status"] != "PENDING":
            return False
        row["image_generation_status"] = "FAILED"
        return True

    async def complete_image(self, story_id, page_number, job_id, image_url, image_key, plan):
        self._maybe_fail("complete_image")
        row = self.rows.get(page_number)
        if not row or row["image_generation_job_id"] != job_id or row["image_generation_status"] != "PENDING":
            return False
        row.update(
            image_generation_status="COMPLETED",
            image_generation_job_id=job_id,
            image_url=image_url,
            image_key=image_key,
            image_generation_count=plan.next_count,
            image_generation_date=plan.generation_date,
            last_image_generated_at=plan.last_generated_at_iso,
        )
        return True


@pytest.fixture
def pool():
    return FakePool()


@pytest.fixture
def page_repo():
    """Three fresh pages, patched into every service that builds a PageRepository."""
    repo = FakePageRepository([make_page(1), make_page(2), make_page(3)])
    factory = lambda conn: repo  # noqa: E731
    with patch("storybook.api.services.image_jobs.PageRepository", factory), \
         patch("storybook.api.services.image_generation.PageRepository", factory), \
         patch("storybook.api.services.batch_images.PageRepository", factory):
        yield repo


@pytest.fixture
def blob_store():
    store = AsyncMock(spec=S3BlobStore)
    store.put_image.side_effect = (
        lambda story_id, page_number, data, content_type, file_name:
        f"stories/{story_id}/pages/page-{page_number}/1-{file_name}"
    )
    store.get_signed_url.side_effect = lambda key: f"https://signed.example/{key}"
    store.get_object.return_value = (b"stored-image", "image/png")
    return store


# =============================================================================
# API client
# =============================================================================


@pytest.fixture
def mock_repository():
    """Create a mock story repository for unit tests."""
    return AsyncMock(spec=StoryRepository)


@pytest.fixture
def mock_pages():
    """Create a mock page repository for unit tests."""
    return AsyncMock(spec=PageRepository)


@pytest.fixture
def mock_service():
    """Create a mock service for unit tests."""
    return AsyncMock(spec=StoryService)


@pytest.fixture
def client_with_mocks(mock_repository, mock_pages, mock_service, blob_store, pool):
    """TestClient with mocked dependencies (lifespan not started)."""
    illustrator = MagicMock()
    app.dependency_overrides[get_repository] = lambda: mock_repository
    app.dependency_overrides[get_page_repository] = lambda: mock_pages
    app.dependency_overrides[get_story_service] = lambda: mock_service
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    app.dependency_overrides[get_db_pool] = lambda: pool
    app.dependency_overrides[get_illustrator] = lambda: illustrator

    client = TestClient(app)
    yield client, mock_repository, mock_pages, mock_service

    app.dependency_overrides.clear()
