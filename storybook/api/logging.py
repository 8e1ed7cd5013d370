"""Structured logging infrastructure for the API layer and worker.

Provides JSON-formatted logging for production and human-readable
logging for development, plus helpers for story and page image events.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

_EXTRA_FIELDS = (
    "story_id",
    "page_number",
    "job_id",
    "stage",
    "duration",
    "error_type",
)


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Add extra fields if present
        for name in _EXTRA_FIELDS:
            if hasattr(record, name):
                log_data[name] = getattr(record, name)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def configure_logging(json_format: bool = True, level: int = logging.INFO) -> None:
    """Configure structured logging for the application."""
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )

    root_logger.addHandler(handler)


class StoryLogger:
    """Logger for story text generation events with structured fields."""

    def __init__(self):
        self.logger = logging.getLogger("story_generation")

    def generation_started(self, story_id: str, total_pages: int) -> None:
        self.logger.info(
            f"Story generation started ({total_pages} pages)",
            extra={"story_id": story_id, "stage": "started"},
        )

    def generation_completed(self, story_id: str, duration: float) -> None:
        self.logger.info(
            "Story generation completed",
            extra={"story_id": story_id, "stage": "completed", "duration": round(duration, 2)},
        )

    def generation_failed(self, story_id: str, error: Exception) -> None:
        self.logger.error(
            f"Story generation failed: {error}",
            extra={"story_id": story_id, "stage": "failed", "error_type": type(error).__name__},
            exc_info=True,
        )


class PageImageLogger:
    """Logger for page image job events."""

    def __init__(self):
        self.logger = logging.getLogger("page_image_generation")

    def job_started(self, story_id: str, page_number: int, job_id: str) -> None:
        self.logger.info(
            f"Image job started for page {page_number}",
            extra={"story_id": story_id, "page_number": page_number, "job_id": job_id, "stage": "started"},
        )

    def limit_rejected(self, story_id: str, page_number: int, job_id: str, reason: str) -> None:
        self.logger.warning(
            f"Image generation rejected for page {page_number}: {reason}",
            extra={
                "story_id": story_id,
                "page_number": page_number,
                "job_id": job_id,
                "stage": "limited",
            },
        )

    def job_completed(
        self,
        story_id: str,
        page_number: int,
        job_id: str,
        duration: Optional[float] = None,
    ) -> None:
        extra = {"story_id": story_id, "page_number": page_number, "job_id": job_id, "stage": "completed"}
        if duration is not None:
            extra["duration"] = round(duration, 2)
        self.logger.info(f"Image job completed for page {page_number}", extra=extra)

    def job_failed(self, story_id: str, page_number: int, job_id: str, error: BaseException) -> None:
        self.logger.error(
            f"Image job failed for page {page_number}: {error}",
            extra={
                "story_id": story_id,
                "page_number": page_number,
                "job_id": job_id,
                "stage": "failed",
                "error_type": type(error).__name__,
            },
        )


# Global logger instances
story_logger = StoryLogger()
page_image_logger = PageImageLogger()
