"""Tests for building prior-page image context."""

from unittest.mock import AsyncMock

import pytest

from storybook.core.errors import StorageError
from storybook.core.modules.page_context import build_prior_page_context


def _page(number, key=None):
    return {"page_number": number, "text": f"Page {number} text", "image_key": key}


@pytest.fixture
def blob_store():
    store = AsyncMock()
    store.get_object = AsyncMock(side_effect=lambda key: (f"bytes:{key}".encode(), "image/png"))
    return store


class TestBuildPriorPageContext:
    @pytest.mark.asyncio
    async def test_takes_last_three_illustrated_pages(self, blob_store):
        pages = [_page(n, f"key-{n}") for n in range(1, 7)]

        context = await build_prior_page_context(pages, 6, blob_store)

        assert [c.page_number for c in context] == [3, 4, 5]
        assert context[0].image_bytes == b"bytes:key-3"
        assert context[0].text == "Page 3 text"

    @pytest.mark.asyncio
    async def test_skips_pages_without_images_and_later_pages(self, blob_store):
        pages = [_page(5, "key-5"), _page(1, "key-1"), _page(2), _page(4, "key-4"), _page(3)]

        context = await build_prior_page_context(pages, 4, blob_store)

        assert [c.page_number for c in context] == [1]

    @pytest.mark.asyncio
    async def test_first_page_has_no_context(self, blob_store):
        context = await build_prior_page_context([_page(1, "key-1")], 1, blob_store)

        assert context == []
        blob_store.get_object.assert_not_called()

    @pytest.mark.asyncio
    async def test_unreadable_image_is_skipped(self, blob_store):
        async def get_object(key):
            if key == "key-2":
                raise StorageError("gone")
            return b"ok", "image/jpeg"

        blob_store.get_object = AsyncMock(side_effect=get_object)
        pages = [_page(1, "key-1"), _page(2, "key-2"), _page(3, "key-3")]

        context = await build_prior_page_context(pages, 4, blob_store)

        assert [c.page_number for c in context] == [1, 3]
        assert context[0].content_type == "image/jpeg"

    @pytest.mark.asyncio
    async def test_max_pages_zero(self, blob_store):
        context = await build_prior_page_context([_page(1, "key-1")], 2, blob_store, max_pages=0)

        assert context == []
