"""Pydantic models for API requests."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from storybook.config import STORY_CONSTANTS


class CreateStoryRequest(BaseModel):
    """Request body for creating a new story."""

    prompt: str = Field(
        ...,
        min_length=10,
        max_length=2000,
        description="Story idea from the reader",
        examples=["A shy dragon who learns to share her treasure with the village kids"],
    )
    total_pages: int = Field(
        default=STORY_CONSTANTS["default_page_count"],
        description="Number of story pages (10, 15 or 20)",
    )
    target_age: Optional[str] = Field(
        default=None,
        max_length=50,
        description="Reader age range, e.g. '4-8 years old'",
    )
    author: Optional[str] = Field(default=None, max_length=100)

    @field_validator("total_pages")
    @classmethod
    def check_total_pages(cls, value: int) -> int:
        allowed = STORY_CONSTANTS["allowed_page_counts"]
        if value not in allowed:
            raise ValueError(f"total_pages must be one of {', '.join(map(str, allowed))}")
        return value


class PageEdit(BaseModel):
    """Edits to a single page."""

    page_number: int = Field(..., ge=1)
    text: Optional[str] = Field(default=None, min_length=1)
    image_prompt: Optional[str] = None


class EditStoryRequest(BaseModel):
    """Request body for editing a story's title or page content."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    pages: list[PageEdit] = Field(default_factory=list)


class RegeneratePageTextRequest(BaseModel):
    """Request body for rewriting one page's text."""

    custom_prompt: Optional[str] = Field(
        default=None,
        max_length=1000,
        description="Extra instructions for the rewrite",
    )


class GenerateImageRequest(BaseModel):
    """Request body for generating one page's illustration."""

    custom_prompt: Optional[str] = Field(
        default=None,
        max_length=2000,
        description="Scene description to use instead of the page's image prompt",
    )
    enhance: bool = Field(default=True, description="Add the storybook style to the prompt")
    use_prior_pages: bool = Field(
        default=True,
        description="Send earlier pages' illustrations for visual consistency",
    )
    session_id: Optional[str] = Field(
        default=None,
        max_length=100,
        description="Continue an image chat session",
    )


class BatchImagesRequest(BaseModel):
    """Request body for illustrating every page of a story."""

    character_description: Optional[str] = Field(
        default=None,
        max_length=1000,
        description="Main character appearance, repeated in every page's prompt",
    )


class SavedPage(BaseModel):
    """One page of a story written or edited by the reader."""

    text: str = Field(..., min_length=1, max_length=2000)
    image_prompt: Optional[str] = Field(default=None, max_length=2000)


class SaveStoryRequest(BaseModel):
    """Request body for storing a story the client already has."""

    title: str = Field(..., min_length=1, max_length=200)
    pages: list[SavedPage] = Field(..., min_length=1, max_length=50)
    prompt: Optional[str] = Field(
        default=None,
        max_length=2000,
        description="Original story idea, if any",
    )
    target_age: Optional[str] = Field(default=None, max_length=50)
    author: Optional[str] = Field(default=None, max_length=100)


class CustomImageRequest(BaseModel):
    """Request body for a one-off illustration from a free prompt."""

    prompt: str = Field(..., min_length=5, max_length=2000)
    enhance: bool = Field(default=True, description="Add the storybook style to the prompt")
