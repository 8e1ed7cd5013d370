"""Exception types shared by the API layer, services and worker."""


class StorybookError(Exception):
    """Base class for storybook errors."""


class GenerationLimitError(StorybookError):
    """Raised when a page has hit its image quota or is still cooling down.

    Carries a user-facing message and the HTTP status the API should answer
    with (429 unless the caller says otherwise).
    """

    def __init__(self, message: str, status_code: int = 429):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ProviderError(StorybookError):
    """A text or image generation provider call failed."""


class StorageError(StorybookError):
    """Reading or writing the blob store or document store failed."""


class ConfigurationError(StorybookError):
    """A required environment value is missing."""


class NotFoundError(StorybookError):
    """A story or page does not exist."""


class JobStateError(StorybookError):
    """A job was resumed after it had already been resolved or replaced."""
