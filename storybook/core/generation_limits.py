"""
Per-page image generation limits.

Each page may have at most DAILY_LIMIT successful generations per UTC calendar
day, and successive generations must be at least COOLDOWN apart. The daily
count resets implicitly: a stored date other than today counts as zero.
"""

import math
from datetime import datetime, timedelta, timezone
from typing import Optional

from .errors import GenerationLimitError
from .types import GenerationPlan, PageGenerationMetadata

DAILY_LIMIT = 2
COOLDOWN = timedelta(minutes=15)


def _as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _parse_timestamp(value) -> Optional[datetime]:
    """Parse a stored ISO-8601 timestamp, returning None when unusable."""
    if not isinstance(value, (str, datetime)) or not value:
        return None
    try:
        if isinstance(value, str):
            value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        # Offsets near datetime.min/max overflow when shifted to UTC
        return _as_utc(value)
    except (ValueError, OverflowError):
        return None


def format_iso_utc(value: datetime) -> str:
    """Format as ISO-8601 with millisecond precision and a Z suffix."""
    return _as_utc(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def evaluate_generation_limit(
    metadata: Optional[PageGenerationMetadata],
    now: Optional[datetime] = None,
) -> GenerationPlan:
    """
    Decide whether another image may be generated for a page.

    Args:
        metadata: The page's stored generation metadata, or None if the page
            has never been illustrated
        now: Current time (defaults to the wall clock)

    Returns:
        GenerationPlan to persist after the generation succeeds

    Raises:
        GenerationLimitError: If the daily quota is used up or the cooldown
            window is still open. Quota is checked first.
    """
    now = _as_utc(now) if now is not None else datetime.now(timezone.utc)
    current_date = now.date().isoformat()

    last_count = 0
    if metadata is not None and metadata.image_generation_date == current_date:
        last_count = metadata.image_generation_count or 0

    if last_count >= DAILY_LIMIT:
        raise GenerationLimitError(
            f"You can only generate {DAILY_LIMIT} images for this page per day. "
            "Try again tomorrow."
        )

    if metadata is not None and metadata.last_image_generated_at:
        last_generated_at = _parse_timestamp(metadata.last_image_generated_at)
        # Unparseable timestamps leave the cooldown open
        if last_generated_at is not None:
            elapsed = now - last_generated_at
            if elapsed < COOLDOWN:
                remaining_ms = (COOLDOWN - elapsed) / timedelta(milliseconds=1)
                minutes_left = math.ceil(remaining_ms / 60000)
                raise GenerationLimitError(
                    f"Please wait {minutes_left} more minute(s) before generating "
                    "another image for this page."
                )

    return GenerationPlan(
        next_count=last_count + 1,
        generation_date=current_date,
        last_generated_at_iso=format_iso_utc(now),
    )
