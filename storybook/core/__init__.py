"""Core domain logic: limits, sessions, story and illustration modules."""

from .errors import (
    ConfigurationError,
    GenerationLimitError,
    JobStateError,
    NotFoundError,
    ProviderError,
    StorageError,
    StorybookError,
)
from .generation_limits import COOLDOWN, DAILY_LIMIT, evaluate_generation_limit
from .types import (
    GeneratedImage,
    GeneratedPage,
    GeneratedStory,
    GenerationPlan,
    PageGenerationMetadata,
    PriorPageImage,
)

__all__ = [
    "ConfigurationError",
    "GenerationLimitError",
    "NotFoundError",
    "ProviderError",
    "StorageError",
    "StorybookError",
    "JobStateError",
    "COOLDOWN",
    "DAILY_LIMIT",
    "evaluate_generation_limit",
    "GeneratedImage",
    "GeneratedPage",
    "GeneratedStory",
    "GenerationPlan",
    "PageGenerationMetadata",
    "PriorPageImage",
]
