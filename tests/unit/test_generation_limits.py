"""Tests for the per-page image generation limiter."""

from datetime import datetime, timedelta, timezone

import pytest

from storybook.core.errors import GenerationLimitError
from storybook.core.generation_limits import (
    COOLDOWN,
    DAILY_LIMIT,
    evaluate_generation_limit,
    format_iso_utc,
)
from storybook.core.types import PageGenerationMetadata

NOW = datetime(2024, 3, 10, 12, 0, 0, tzinfo=timezone.utc)
TODAY = "2024-03-10"
YESTERDAY = "2024-03-09"


def _iso(value: datetime) -> str:
    return value.isoformat().replace("+00:00", "Z")


class TestDailyQuota:
    """Quota boundary and date rollover."""

    def test_rejects_when_quota_used_today(self):
        metadata = PageGenerationMetadata(image_generation_count=2, image_generation_date=TODAY)

        with pytest.raises(GenerationLimitError) as exc_info:
            evaluate_generation_limit(metadata, NOW)

        assert exc_info.value.status_code == 429
        assert "2 images for this page per day" in exc_info.value.message

    def test_accepts_second_generation_of_the_day(self):
        metadata = PageGenerationMetadata(image_generation_count=1, image_generation_date=TODAY)

        plan = evaluate_generation_limit(metadata, NOW)

        assert plan.next_count == 2

    def test_rejects_counts_above_limit(self):
        metadata = PageGenerationMetadata(image_generation_count=5, image_generation_date=TODAY)

        with pytest.raises(GenerationLimitError):
            evaluate_generation_limit(metadata, NOW)

    def test_stale_date_resets_count(self):
        metadata = PageGenerationMetadata(image_generation_count=2, image_generation_date=YESTERDAY)

        plan = evaluate_generation_limit(metadata, NOW)

        assert plan.next_count == 1
        assert plan.generation_date == TODAY

    def test_daily_limit_constant(self):
        assert DAILY_LIMIT == 2
        assert COOLDOWN == timedelta(minutes=15)


class TestCooldown:
    """Cooldown window between successive generations."""

    def test_rejects_just_inside_cooldown(self):
        metadata = PageGenerationMetadata(
            image_generation_count=1,
            image_generation_date=TODAY,
            last_image_generated_at=_iso(NOW - timedelta(minutes=14, seconds=59)),
        )

        with pytest.raises(GenerationLimitError) as exc_info:
            evaluate_generation_limit(metadata, NOW)

        assert "1 more minute(s)" in exc_info.value.message

    def test_accepts_at_exactly_cooldown(self):
        metadata = PageGenerationMetadata(
            image_generation_count=1,
            image_generation_date=TODAY,
            last_image_generated_at=_iso(NOW - timedelta(minutes=15)),
        )

        plan = evaluate_generation_limit(metadata, NOW)

        assert plan.next_count == 2

    def test_minutes_left_rounds_up(self):
        metadata = PageGenerationMetadata(
            image_generation_count=1,
            image_generation_date=TODAY,
            last_image_generated_at=_iso(NOW - timedelta(minutes=5, seconds=30)),
        )

        with pytest.raises(GenerationLimitError) as exc_info:
            evaluate_generation_limit(metadata, NOW)

        # 9.5 minutes remaining
        assert "10 more minute(s)" in exc_info.value.message

    def test_cooldown_spans_midnight(self):
        now = datetime(2024, 3, 11, 0, 5, tzinfo=timezone.utc)
        metadata = PageGenerationMetadata(
            image_generation_count=2,
            image_generation_date="2024-03-10",
            last_image_generated_at="2024-03-10T23:55:00Z",
        )

        with pytest.raises(GenerationLimitError) as exc_info:
            evaluate_generation_limit(metadata, now)

        assert "5 more minute(s)" in exc_info.value.message

    def test_quota_checked_before_cooldown(self):
        metadata = PageGenerationMetadata(
            image_generation_count=2,
            image_generation_date=TODAY,
            last_image_generated_at=_iso(NOW - timedelta(minutes=1)),
        )

        with pytest.raises(GenerationLimitError) as exc_info:
            evaluate_generation_limit(metadata, NOW)

        assert "per day" in exc_info.value.message

    def test_naive_now_compared_as_utc(self):
        metadata = PageGenerationMetadata(
            image_generation_count=1,
            image_generation_date=TODAY,
            last_image_generated_at=_iso(NOW - timedelta(minutes=2)),
        )

        with pytest.raises(GenerationLimitError):
            evaluate_generation_limit(metadata, NOW.replace(tzinfo=None))


class TestMissingAndMalformedMetadata:
    """Absent metadata and unparseable timestamps."""

    def test_none_metadata_is_first_generation(self):
        plan = evaluate_generation_limit(None, NOW)

        assert plan.next_count == 1
        assert plan.generation_date == TODAY
        assert plan.last_generated_at_iso == "2024-03-10T12:00:00.000Z"

    def test_empty_metadata_is_first_generation(self):
        plan = evaluate_generation_limit(PageGenerationMetadata(), NOW)

        assert plan.next_count == 1

    def test_malformed_timestamp_fails_open(self):
        metadata = PageGenerationMetadata(
            image_generation_count=1,
            image_generation_date=TODAY,
            last_image_generated_at="not-a-date",
        )

        plan = evaluate_generation_limit(metadata, NOW)

        assert plan.next_count == 2

    @pytest.mark.parametrize("stored", [
        "0001-01-01T00:00:00+05:00",
        "9999-12-31T23:59:59-05:00",
    ])
    def test_out_of_range_timestamp_fails_open(self, stored):
        metadata = PageGenerationMetadata(
            image_generation_count=1,
            image_generation_date=TODAY,
            last_image_generated_at=stored,
        )

        plan = evaluate_generation_limit(metadata, NOW)

        assert plan.next_count == 2

    def test_malformed_timestamp_still_subject_to_quota(self):
        metadata = PageGenerationMetadata(
            image_generation_count=2,
            image_generation_date=TODAY,
            last_image_generated_at="not-a-date",
        )

        with pytest.raises(GenerationLimitError):
            evaluate_generation_limit(metadata, NOW)


class TestDateFormatting:
    """Returned dates are UTC calendar dates."""

    def test_generation_date_uses_utc_not_local_offset(self):
        # 23:30 at UTC-5 is already the next day in UTC
        local = datetime(2024, 3, 10, 23, 30, tzinfo=timezone(timedelta(hours=-5)))

        plan = evaluate_generation_limit(None, local)

        assert plan.generation_date == "2024-03-11"
        assert plan.last_generated_at_iso == "2024-03-11T04:30:00.000Z"

    def test_naive_now_treated_as_utc(self):
        plan = evaluate_generation_limit(None, datetime(2024, 3, 10, 23, 59))

        assert plan.generation_date == "2024-03-10"

    def test_format_iso_utc(self):
        assert format_iso_utc(NOW) == "2024-03-10T12:00:00.000Z"


class TestScenarios:
    """End-to-end limiter scenarios."""

    def test_quota_exhausted_within_cooldown(self):
        metadata = PageGenerationMetadata(
            image_generation_count=2,
            image_generation_date="2024-01-01",
            last_image_generated_at="2024-01-01T10:00:00Z",
        )

        with pytest.raises(GenerationLimitError) as exc_info:
            evaluate_generation_limit(metadata, datetime(2024, 1, 1, 10, 10, tzinfo=timezone.utc))

        assert "2 images" in exc_info.value.message

    def test_second_generation_after_cooldown(self):
        metadata = PageGenerationMetadata(
            image_generation_count=1,
            image_generation_date="2024-01-01",
            last_image_generated_at="2024-01-01T09:40:00Z",
        )

        plan = evaluate_generation_limit(metadata, datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc))

        assert plan.next_count == 2
        assert plan.generation_date == "2024-01-01"
