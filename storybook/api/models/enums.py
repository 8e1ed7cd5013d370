"""Shared enums for API models."""

from enum import Enum


class JobStatus(str, Enum):
    """Status of a story or page image generation job."""

    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self is not JobStatus.PENDING
