"""Structural validation of admin/login form input"""

import re
from dataclasses import dataclass, field
from typing import Any, List, Optional

MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 100

# Case-insensitive exact matches
COMMON_PASSWORDS = {"password", "12345678", "qwerty", "admin", "root"}

GITHUB_REPO_PATTERN = re.compile(r"^https://github\.com/[^/]+/[^/]+/?$")

# Best-effort display sanitizer; not a substitute for ContentValidator
XSS_CHARS_PATTERN = re.compile(r"[<>\"'&]")


@dataclass
class InputValidationResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)

    @property
    def error(self) -> Optional[str]:
        return self.errors[0] if self.errors else None


def validate_password(password: Any) -> InputValidationResult:
    errors: List[str] = []

    if not password or not isinstance(password, str):
        errors.append("Password is required")
        return InputValidationResult(is_valid=False, errors=errors)

    if len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

    if len(password) > MAX_PASSWORD_LENGTH:
        errors.append(f"Password must be less than {MAX_PASSWORD_LENGTH} characters")

    if password.lower() in COMMON_PASSWORDS:
        errors.append("Password is too common")

    return InputValidationResult(is_valid=not errors, errors=errors)


def validate_github_repo(repo: Any) -> InputValidationResult:
    """Accept only https://github.com/<owner>/<repo> with an optional trailing slash"""
    if not repo or not isinstance(repo, str):
        return InputValidationResult(is_valid=False, errors=["Repository URL is required"])

    if not GITHUB_REPO_PATTERN.match(repo):
        return InputValidationResult(is_valid=False, errors=["Invalid GitHub repository URL format"])

    return InputValidationResult(is_valid=True)


def validate_folders(folders: Any) -> InputValidationResult:
    errors: List[str] = []

    if not isinstance(folders, list):
        errors.append("Folders must be an array")
        return InputValidationResult(is_valid=False, errors=errors)

    if not folders:
        errors.append("At least one folder is required")
        return InputValidationResult(is_valid=False, errors=errors)

    for folder in folders:
        if not folder or not isinstance(folder, str):
            errors.append("Invalid folder name")
            continue

        if ".." in folder or "/" in folder or "\\" in folder:
            errors.append(f"Invalid folder name: {folder}")

    return InputValidationResult(is_valid=not errors, errors=errors)


def sanitize_string(value: Optional[str], max_length: int = 255) -> str:
    """Trim, truncate to max_length and drop < > " ' &"""
    if not value:
        return ""
    return XSS_CHARS_PATTERN.sub("", value.strip()[:max_length])
