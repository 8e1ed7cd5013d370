"""Story service for generation jobs, edits and page rewrites."""

import asyncio
import uuid
from typing import Optional

import asyncpg

from storybook.config import STORY_CONSTANTS
from storybook.core.errors import NotFoundError
from storybook.core.types import GeneratedPage, GeneratedStory

from ..arq_pool import enqueue_story_generation
from ..database.repository import PageRepository, StoryRepository
from ..models.requests import EditStoryRequest, SaveStoryRequest


class StoryService:
    """Service for creating and managing stories."""

    def __init__(self, repo: StoryRepository, pages: PageRepository, writer=None):
        self.repo = repo
        self.pages = pages
        self._writer = writer

    @property
    def writer(self):
        if self._writer is None:
            # Import here to keep API start-up free of provider setup
            from storybook.config import get_inference_lm
            from storybook.core.modules.story_writer import StoryWriter

            self._writer = StoryWriter(lm=get_inference_lm())
        return self._writer

    async def create_story_job(
        self,
        prompt: str,
        total_pages: int,
        target_age: Optional[str] = None,
        author: Optional[str] = None,
    ) -> str:
        """
        Create a new story generation job.

        Creates a pending record in the database and enqueues an ARQ job
        to write the story in the background.

        Returns:
            The story ID which can be used to poll for status.
        """
        story_id = str(uuid.uuid4())
        target_age = target_age or STORY_CONSTANTS["default_target_age"]

        await self.repo.create_story(
            story_id=story_id,
            prompt=prompt,
            total_pages=total_pages,
            target_age=target_age,
            author=author or STORY_CONSTANTS["default_author"],
        )

        await enqueue_story_generation(story_id, prompt, total_pages, target_age)

        return story_id

    async def save_story(self, request: SaveStoryRequest) -> str:
        """
        Store a story the client wrote or kept, without calling the text model.

        Pages are numbered 1..N in the order given.

        Returns:
            The new story ID (status COMPLETED)
        """
        story_id = str(uuid.uuid4())
        pages = [
            GeneratedPage(
                page_number=number,
                text=page.text,
                image_prompt=page.image_prompt or "",
            )
            for number, page in enumerate(request.pages, start=1)
        ]

        await self.repo.create_saved_story(
            story_id=story_id,
            prompt=request.prompt or request.title,
            target_age=request.target_age or STORY_CONSTANTS["default_target_age"],
            author=request.author or STORY_CONSTANTS["default_author"],
            title=request.title,
            pages=pages,
        )
        return story_id

    async def edit_story(self, story_id: str, request: EditStoryRequest) -> None:
        """
        Apply title and page edits.

        Raises:
            NotFoundError: Unknown story or page
        """
        story = await self.repo.get_story(story_id)
        if story is None:
            raise NotFoundError(f"Story {story_id} not found")

        if request.title is not None:
            await self.repo.update_title(story_id, request.title)

        for edit in request.pages:
            updated = await self.pages.update_page_content(
                story_id,
                edit.page_number,
                text=edit.text,
                image_prompt=edit.image_prompt,
            )
            if not updated:
                raise NotFoundError(f"Page {edit.page_number} not found in story {story_id}")

    async def regenerate_page_text(
        self,
        story_id: str,
        page_number: int,
        custom_prompt: Optional[str] = None,
    ) -> GeneratedPage:
        """
        Rewrite one page so it still fits the rest of the story.

        Raises:
            NotFoundError: Unknown story or page
            ProviderError: The text model failed
        """
        story = await self.repo.get_story(story_id)
        if story is None:
            raise NotFoundError(f"Story {story_id} not found")

        rows = await self.pages.list_pages(story_id)
        if not any(row["page_number"] == page_number for row in rows):
            raise NotFoundError(f"Page {page_number} not found in story {story_id}")

        current = GeneratedStory(
            title=story["title"] or "",
            target_age=story["target_age"],
            pages=[
                GeneratedPage(
                    page_number=row["page_number"],
                    text=row["text"],
                    image_prompt=row["image_prompt"] or "",
                )
                for row in rows
            ],
        )

        page = await asyncio.to_thread(
            self.writer.regenerate_page,
            current,
            page_number,
            custom_prompt,
        )

        await self.pages.update_page_content(
            story_id,
            page_number,
            text=page.text,
            image_prompt=page.image_prompt or None,
        )
        return page
