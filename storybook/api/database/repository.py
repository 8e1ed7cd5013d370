"""Repositories for story and page persistence using raw asyncpg SQL."""

import uuid
from datetime import datetime, timezone
from typing import Optional, Sequence

import asyncpg

from storybook.core.types import GeneratedPage, GenerationPlan

from ..models.enums import JobStatus


def _affected(result: str) -> bool:
    # Result is like "UPDATE 1" or "DELETE 0"
    return result.split()[-1] != "0"


class StoryRepository:
    """Repository for story persistence operations."""

    def __init__(self, conn: asyncpg.Connection):
        self.conn = conn

    async def create_story(
        self,
        story_id: str,
        prompt: str,
        total_pages: int,
        target_age: str,
        author: str,
    ) -> None:
        """Create a new story record in pending status."""
        await self.conn.execute(
            """
            INSERT INTO stories (id, prompt, total_pages, target_age, author, status)
            VALUES ($1, $2, $3, $4, $5, $6)
            """,
            story_id,
            prompt,
            total_pages,
            target_age,
            author,
            JobStatus.PENDING.value,
        )

    async def update_status(
        self,
        story_id: str,
        status: str,
        error_message: Optional[str] = None,
    ) -> None:
        """Update story status and error message."""
        await self.conn.execute(
            """
            UPDATE stories
            SET status = $2,
                error_message = COALESCE($3, error_message),
                updated_at = $4
            WHERE id = $1
            """,
            story_id,
            status,
            error_message,
            datetime.now(timezone.utc),
        )

    async def save_generated_story(
        self,
        story_id: str,
        title: str,
        pages: Sequence[GeneratedPage],
    ) -> None:
        """Store the title and pages and mark the story completed, in one transaction."""
        async with self.conn.transaction():
            await self.conn.execute(
                "DELETE FROM story_pages WHERE story_id = $1",
                story_id,
            )

            page_data = [
                (
                    story_id,
                    p.page_number,
                    str(uuid.uuid4()),
                    p.text,
                    p.image_prompt,
                )
                for p in pages
            ]
            await self.conn.executemany(
                """
                INSERT INTO story_pages
                    (story_id, page_number, page_id, text, image_prompt, image_generation_count)
                VALUES ($1, $2, $3, $4, $5, 0)
                """,
                page_data,
            )

            await self.conn.execute(
                """
                UPDATE stories
                SET title = $2,
                    status = $3,
                    error_message = NULL,
                    updated_at = $4
                WHERE id = $1
                """,
                story_id,
                title,
                JobStatus.COMPLETED.value,
                datetime.now(timezone.utc),
            )

    async def create_saved_story(
        self,
        story_id: str,
        prompt: str,
        target_age: str,
        author: str,
        title: str,
        pages: Sequence[GeneratedPage],
    ) -> None:
        """Insert a finished story with its pages, in one transaction."""
        async with self.conn.transaction():
            await self.create_story(story_id, prompt, len(pages), target_age, author)
            await self.save_generated_story(story_id, title, pages)

    async def get_story(self, story_id: str) -> Optional[asyncpg.Record]:
        """Get a story row by ID."""
        return await self.conn.fetchrow(
            "SELECT * FROM stories WHERE id = $1",
            story_id,
        )

    async def list_stories(
        self,
        limit: int = 20,
        offset: int = 0,
        status: Optional[str] = None,
    ) -> tuple[list[asyncpg.Record], int]:
        """List stories with pagination and optional status filter."""
        if status:
            total = await self.conn.fetchval(
                "SELECT COUNT(*) FROM stories WHERE status = $1",
                status,
            )
            stories = await self.conn.fetch(
                """
                SELECT * FROM stories
                WHERE status = $1
                ORDER BY created_at DESC
                LIMIT $2 OFFSET $3
                """,
                status,
                limit,
                offset,
            )
        else:
            total = await self.conn.fetchval("SELECT COUNT(*) FROM stories")
            stories = await self.conn.fetch(
                """
                SELECT * FROM stories
                ORDER BY created_at DESC
                LIMIT $1 OFFSET $2
                """,
                limit,
                offset,
            )

        return list(stories), total

    async def update_title(self, story_id: str, title: str) -> bool:
        """Rename a story."""
        result = await self.conn.execute(
            "UPDATE stories SET title = $2, updated_at = $3 WHERE id = $1",
            story_id,
            title,
            datetime.now(timezone.utc),
        )
        return _affected(result)

    async def delete_story(self, story_id: str) -> bool:
        """Delete a story. Pages go with it (ON DELETE CASCADE)."""
        result = await self.conn.execute(
            "DELETE FROM stories WHERE id = $1",
            story_id,
        )
        return _affected(result)

    async def cleanup_stale_stories(self, older_than_minutes: int) -> int:
        """Fail stories whose generation was left pending by a dead worker."""
        result = await self.conn.execute(
            """
            UPDATE stories
            SET status = $1,
                error_message = 'Story generation timed out',
                updated_at = NOW()
            WHERE status = $2
              AND updated_at < NOW() - make_interval(mins => $3)
            """,
            JobStatus.FAILED.value,
            JobStatus.PENDING.value,
            older_than_minutes,
        )
        return int(result.split()[-1])


class PageRepository:
    """Repository for story page reads and image job bookkeeping."""

    def __init__(self, conn: asyncpg.Connection):
        self.conn = conn

    async def get_page(self, story_id: str, page_number: int) -> Optional[asyncpg.Record]:
        """Get one page by (story_id, page_number)."""
        return await self.conn.fetchrow(
            "SELECT * FROM story_pages WHERE story_id = $1 AND page_number = $2",
            story_id,
            page_number,
        )

    async def list_pages(self, story_id: str) -> list[asyncpg.Record]:
        """All pages of a story ordered by page number."""
        pages = await self.conn.fetch(
            """
            SELECT * FROM story_pages
            WHERE story_id = $1
            ORDER BY page_number
            """,
            story_id,
        )
        return list(pages)

    async def update_page_content(
        self,
        story_id: str,
        page_number: int,
        text: Optional[str] = None,
        image_prompt: Optional[str] = None,
    ) -> bool:
        """Edit a page's text and/or image prompt. None leaves a field unchanged."""
        result = await self.conn.execute(
            """
            UPDATE story_pages
            SET text = COALESCE($3, text),
                image_prompt = COALESCE($4, image_prompt),
                updated_at = $5
            WHERE story_id = $1 AND page_number = $2
            """,
            story_id,
            page_number,
            text,
            image_prompt,
            datetime.now(timezone.utc),
        )
        return _affected(result)

    async def mark_image_pending(self, story_id: str, page_number: int, job_id: str) -> bool:
        """Start a new image job on a page."""
        result = await self.conn.execute(
            """
            UPDATE story_pages
            SET image_generation_status = $3,
                image_generation_job_id = $4,
                updated_at = $5
            WHERE story_id = $1 AND page_number = $2
            """,
            story_id,
            page_number,
            JobStatus.PENDING.value,
            job_id,
            datetime.now(timezone.utc),
        )
        return _affected(result)

    async def mark_image_failed(self, story_id: str, page_number: int, job_id: str) -> bool:
        """Resolve a pending job to FAILED.

        Only touches the row while it still belongs to `job_id` and is pending,
        so a newer job's state is never overwritten.
        """
        result = await self.conn.execute(
            """
            UPDATE story_pages
            SET image_generation_status = $4,
                updated_at = $6
            WHERE story_id = $1 AND page_number = $2
              AND image_generation_job_id = $3
              AND image_generation_status = $5
            """,
            story_id,
            page_number,
            job_id,
            JobStatus.FAILED.value,
            JobStatus.PENDING.value,
            datetime.now(timezone.utc),
        )
        return _affected(result)

    async def complete_image(
        self,
        story_id: str,
        page_number: int,
        job_id: str,
        image_url: str,
        image_key: str,
        plan: GenerationPlan,
    ) -> bool:
        """Record a successful generation: status, image and limit counters in one update.

        Guarded like `mark_image_failed`: returns False when the row no longer
        holds `job_id` as its pending job.
        """
        result = await self.conn.execute(
            """
            UPDATE story_pages
            SET image_generation_status = $3,
                image_generation_job_id = $4,
                image_url = $5,
                image_key = $6,
                image_generation_count = $7,
                image_generation_date = $8,
                last_image_generated_at = $9,
                updated_at = $10
            WHERE story_id = $1 AND page_number = $2
              AND image_generation_job_id = $4
              AND image_generation_status = $11
            """,
            story_id,
            page_number,
            JobStatus.COMPLETED.value,
            job_id,
            image_url,
            image_key,
            plan.next_count,
            plan.generation_date,
            plan.last_generated_at_iso,
            datetime.now(timezone.utc),
            JobStatus.PENDING.value,
        )
        return _affected(result)

    async def cleanup_stale_image_jobs(self, older_than_minutes: int) -> int:
        """Fail image jobs left pending by a dead worker."""
        result = await self.conn.execute(
            """
            UPDATE story_pages
            SET image_generation_status = $1,
                updated_at = NOW()
            WHERE image_generation_status = $2
              AND updated_at < NOW() - make_interval(mins => $3)
            """,
            JobStatus.FAILED.value,
            JobStatus.PENDING.value,
            older_than_minutes,
        )
        return int(result.split()[-1])
