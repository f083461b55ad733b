"""Error taxonomy for generation and persistence failures."""
from enum import Enum


class LearnAIError(Exception):
    """Base class for every error raised by learnai."""


class GenerationErrorCategory(str, Enum):
    CALL_FAILURE = "call_failure"
    MALFORMED_RESPONSE = "malformed_response"


class GenerationError(LearnAIError):
    """A generation request did not produce usable content."""

    def __init__(self, message: str, *, category: GenerationErrorCategory) -> None:
        super().__init__(message)
        self.category = category


class GenerationCallError(GenerationError):
    """Raised when the model server could not be reached or answered with an error."""

    def __init__(self, message: str) -> None:
        super().__init__(message, category=GenerationErrorCategory.CALL_FAILURE)


class MalformedGenerationError(GenerationError):
    """Raised when the model answered but the output did not match the expected shape."""

    def __init__(self, message: str) -> None:
        super().__init__(message, category=GenerationErrorCategory.MALFORMED_RESPONSE)


class BackupImportError(LearnAIError):
    """Raised before any write when a backup bundle cannot be imported."""
