"""
Centralized domain types for the storybook generator.

Dataclasses that cross module boundaries (limiter, illustrator, writer,
services) live here to keep data flow explicit and avoid circular imports.
"""

from dataclasses import dataclass, field
from datetime import datetime
from io import BytesIO
from typing import TYPE_CHECKING, Any, Mapping, Optional

if TYPE_CHECKING:
    from PIL import Image


# =============================================================================
# Rate limiting
# =============================================================================


@dataclass
class PageGenerationMetadata:
    """Image-generation bookkeeping stored on a story page.

    Absent fields mean the page has never had an image generated.
    """

    image_generation_count: int = 0
    image_generation_date: Optional[str] = None  # YYYY-MM-DD, UTC
    last_image_generated_at: Optional[str] = None  # ISO-8601
    image_generation_status: Optional[str] = None
    image_generation_job_id: Optional[str] = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "PageGenerationMetadata":
        """Build from a page row (asyncpg Record or dict)."""
        last_generated = record.get("last_image_generated_at")
        if isinstance(last_generated, datetime):
            last_generated = last_generated.isoformat()
        return cls(
            image_generation_count=record.get("image_generation_count") or 0,
            image_generation_date=record.get("image_generation_date"),
            last_image_generated_at=last_generated,
            image_generation_status=record.get("image_generation_status"),
            image_generation_job_id=record.get("image_generation_job_id"),
        )


@dataclass(frozen=True)
class GenerationPlan:
    """Bookkeeping values to persist once a generation has succeeded."""

    next_count: int
    generation_date: str
    last_generated_at_iso: str


# =============================================================================
# Story text
# =============================================================================


@dataclass
class GeneratedPage:
    """A single page produced by the text model."""

    page_number: int
    text: str
    image_prompt: str

    @property
    def word_count(self) -> int:
        return len(self.text.split())


@dataclass
class GeneratedStory:
    """Structured story returned by the text model."""

    title: str
    pages: list[GeneratedPage] = field(default_factory=list)
    target_age: str = ""

    def get_page(self, page_number: int) -> Optional[GeneratedPage]:
        for page in self.pages:
            if page.page_number == page_number:
                return page
        return None


# =============================================================================
# Images
# =============================================================================


@dataclass
class GeneratedImage:
    """Raw image returned by the image model."""

    image_bytes: bytes
    content_type: str = "image/png"
    prompt: str = ""

    @property
    def extension(self) -> str:
        return {
            "image/jpeg": "jpg",
            "image/webp": "webp",
            "image/png": "png",
        }.get(self.content_type, "png")


@dataclass
class PriorPageImage:
    """A previously illustrated page passed to the image model as context."""

    page_number: int
    text: str
    image_bytes: bytes
    content_type: str = "image/png"

    def to_pil_image(self) -> "Image.Image":
        """Convert to a PIL Image for multimodal prompts."""
        from PIL import Image
        return Image.open(BytesIO(self.image_bytes))
