"""Input and markdown content validation."""

from .content_processor import ContentProcessor
from .content_validator import ContentValidator, ValidationResult
from .input_validator import (
    InputValidationResult,
    sanitize_string,
    validate_folders,
    validate_github_repo,
    validate_password,
)

__all__ = [
    "ContentProcessor",
    "ContentValidator",
    "ValidationResult",
    "InputValidationResult",
    "sanitize_string",
    "validate_folders",
    "validate_github_repo",
    "validate_password",
]
