"""Custom exceptions for the docsite backend"""

from typing import List, Optional


class DocsiteError(Exception):
    """Base exception for docsite"""
    pass


class ConfigError(DocsiteError):
    """Configuration error"""
    pass


class HashingError(DocsiteError):
    """Password hashing primitive failed"""
    pass


class StorageError(DocsiteError):
    """Site configuration storage is unreachable or rejected a write"""
    pass


class GitHubError(DocsiteError):
    """Error from the GitHub REST API"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class FileNotFoundInRepoError(GitHubError):
    """Requested path does not exist in the repository"""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"File not found in repository: {path}", status_code=404)


class GitHubRateLimitError(GitHubError):
    """GitHub API rate limit exceeded"""

    def __init__(self, message: str, retry_after: Optional[int] = None):
        self.retry_after = retry_after
        super().__init__(message, status_code=429)


class ContentValidationError(DocsiteError):
    """Fetched markdown failed validation"""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__(f"Content validation failed: {', '.join(self.errors)}")


# Error catalog shared by the HTTP layer: code -> client-facing message
AUTH_ERRORS = {
    "INVALID_CREDENTIALS": "Invalid password",
    "RATE_LIMITED": "Too many attempts. Please try again later.",
    "SESSION_EXPIRED": "Session expired. Please log in again.",
    "UNAUTHORIZED": "Unauthorized access",
    "VALIDATION_ERROR": "Invalid input data",
}

CONTENT_ERRORS = {
    "FILE_NOT_FOUND": "File not found",
    "RATE_LIMITED": "GitHub rate limit exceeded. Please try again later.",
    "CONTENT_VALIDATION_ERROR": "Content failed validation",
    "GITHUB_FETCH_ERROR": "Failed to fetch content",
}

INTERNAL_ERROR = "INTERNAL_ERROR"
