"""
Prior-page context for image generation.

Collects the stored illustrations of the pages just before the one being
illustrated, so the model can keep characters and style consistent. The
number of pages sent is bounded because every image adds to request size.
"""

import logging
from typing import Any, Mapping, Sequence

from storybook.config import IMAGE_CONSTANTS
from ..types import PriorPageImage

logger = logging.getLogger(__name__)


async def build_prior_page_context(
    pages: Sequence[Mapping[str, Any]],
    page_number: int,
    blob_store,
    max_pages: int = IMAGE_CONSTANTS["max_prior_pages"],
) -> list[PriorPageImage]:
    """
    Load up to `max_pages` illustrated pages preceding `page_number`.

    Args:
        pages: Page records of the story (any order)
        page_number: The page about to be illustrated
        blob_store: Object with `async get_object(key) -> (bytes, content_type)`
        max_pages: Upper bound on pages returned

    Returns:
        PriorPageImage list in ascending page order. Pages whose image cannot
        be loaded are skipped.
    """
    if max_pages <= 0:
        return []

    candidates = sorted(
        (
            p for p in pages
            if p["page_number"] < page_number and p.get("image_key")
        ),
        key=lambda p: p["page_number"],
    )[-max_pages:]

    context = []
    for page in candidates:
        try:
            image_bytes, content_type = await blob_store.get_object(page["image_key"])
        except Exception as e:
            logger.warning(
                f"Skipping page {page['page_number']} as context, image unavailable: {e}"
            )
            continue

        context.append(PriorPageImage(
            page_number=page["page_number"],
            text=page.get("text") or "",
            image_bytes=image_bytes,
            content_type=content_type,
        ))

    return context
