"""SQLAlchemy ORM models for PostgreSQL."""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base


class Story(Base):
    """Story model - one generated storybook."""

    __tablename__ = "stories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="PENDING")
    prompt: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[Optional[str]] = mapped_column(Text)
    author: Mapped[str] = mapped_column(String(100), nullable=False)
    target_age: Mapped[str] = mapped_column(String(50), nullable=False)
    total_pages: Mapped[int] = mapped_column(Integer, nullable=False)
    error_message: Mapped[Optional[str]] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    pages: Mapped[list["StoryPage"]] = relationship(
        back_populates="story", cascade="all, delete-orphan", order_by="StoryPage.page_number"
    )

    __table_args__ = (
        Index("idx_stories_status", "status"),
        Index("idx_stories_created_at", "created_at"),
    )


class StoryPage(Base):
    """Story page model - text, illustration and image generation bookkeeping."""

    __tablename__ = "story_pages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    story_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("stories.id", ondelete="CASCADE"), nullable=False
    )
    page_number: Mapped[int] = mapped_column(Integer, nullable=False)
    page_id: Mapped[str] = mapped_column(String(36), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    image_prompt: Mapped[Optional[str]] = mapped_column(Text)
    image_url: Mapped[Optional[str]] = mapped_column(Text)
    image_key: Mapped[Optional[str]] = mapped_column(Text)

    # Image generation limits
    image_generation_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    image_generation_date: Mapped[Optional[str]] = mapped_column(String(10))  # YYYY-MM-DD UTC
    last_image_generated_at: Mapped[Optional[str]] = mapped_column(String(40))  # ISO-8601

    # Image job state
    image_generation_status: Mapped[Optional[str]] = mapped_column(String(20))
    image_generation_job_id: Mapped[Optional[str]] = mapped_column(String(36))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    story: Mapped["Story"] = relationship(back_populates="pages")

    __table_args__ = (
        Index("idx_story_pages_story_id", "story_id"),
        Index("uq_story_page", "story_id", "page_number", unique=True),
        Index("idx_story_pages_image_status", "image_generation_status"),
    )
