"""
Markdown content validation and sanitization.

Documents fetched from GitHub are untrusted: every document passes through
ContentValidator.validate_markdown_content before it is returned to the
browser for rendering.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from markdown_it import MarkdownIt

from .frontmatter import FrontmatterError, parse_frontmatter, split_frontmatter
from .input_validator import InputValidationResult
from ..utils.logger import get_logger

logger = get_logger(__name__)

MAX_FILE_SIZE = 1024 * 1024  # 1 MiB, in UTF-8 bytes
MAX_CONTENT_LENGTH = 500000  # characters

DANGEROUS_PATTERNS = (
    (re.compile(r"<script\b[^>]*>", re.IGNORECASE), "Script tags are not allowed"),
    (
        re.compile(r"<iframe\b[^>]*\bsrc\s*=\s*[\"']?\s*javascript:", re.IGNORECASE),
        "JavaScript iframes are not allowed",
    ),
    (re.compile(r"<object\b[^>]*>", re.IGNORECASE), "Object embeds are not allowed"),
    (re.compile(r"<embed\b[^>]*>", re.IGNORECASE), "Embed tags are not allowed"),
)

LINK_PATTERN = re.compile(r"\[([^\]]*)\]\(([^)]+)\)")
SUSPICIOUS_URL_PATTERN = re.compile(r"^\s*(?:javascript|data|vbscript|file):", re.IGNORECASE)

DANGEROUS_FRONTMATTER_KEYS = ("script", "javascript", "eval", "function")

MARKDOWN_EXTENSIONS = (".md", ".markdown")
FILENAME_INVALID_CHARS = re.compile(r"[<>:\"|?*\x00-\x1f]")
MAX_FILENAME_LENGTH = 255

# Sanitization pass, applied to the original document once it validates
SCRIPT_BLOCK_PATTERN = re.compile(r"<script\b[^>]*>[\s\S]*?</script\s*>", re.IGNORECASE)
# Opening or closing tags left behind once complete blocks are gone
STRAY_SCRIPT_TAG_PATTERN = re.compile(r"</?script\b[^>]*>", re.IGNORECASE)
EVENT_HANDLER_PATTERN = re.compile(r"\bon\w+\s*=\s*(?:\"[^\"]*\"|'[^']*')", re.IGNORECASE)
JAVASCRIPT_HREF_PATTERN = re.compile(r"href\s*=\s*(?:\"\s*javascript:[^\"]*\"|'\s*javascript:[^']*')", re.IGNORECASE)
DATA_HTML_SRC_PATTERN = re.compile(r"src\s*=\s*(?:\"\s*data:text/html[^\"]*\"|'\s*data:text/html[^']*')", re.IGNORECASE)

QUICK_CHECK_PATTERNS = (
    re.compile(r"<script", re.IGNORECASE),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"data:text/html", re.IGNORECASE),
)


@dataclass
class ValidationResult:
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    sanitized_content: Optional[str] = None
    frontmatter: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isValid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "sanitizedContent": self.sanitized_content,
            "frontmatter": self.frontmatter,
        }


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class ContentValidator:
    """Validates a markdown document and produces its sanitized form"""

    _markdown = MarkdownIt("commonmark").enable(["table", "strikethrough"])

    @classmethod
    def validate_markdown_content(cls, content: str, filename: Optional[str] = None) -> ValidationResult:
        """
        Run the full validation pipeline.

        Only the size check short-circuits; every other check accumulates
        errors and warnings. sanitized_content is set only when the result
        is valid.
        """
        result = ValidationResult()

        try:
            if not cls._validate_size(content, result):
                result.is_valid = False
                return result

            try:
                frontmatter, body = parse_frontmatter(content)
            except FrontmatterError as e:
                result.warnings.append(str(e))
                frontmatter, body = {}, split_frontmatter(content)[1]
            result.frontmatter = frontmatter

            cls._validate_frontmatter(frontmatter, result)
            cls._validate_security(body, result)
            cls._validate_links(body, result)
            cls._validate_markdown_syntax(body, result)

            if filename:
                cls._validate_filename(filename, result)

            result.is_valid = not result.errors
            if result.is_valid:
                result.sanitized_content = cls.sanitize_content(content)
            return result
        except Exception:
            logger.exception("Content validation error", filename=filename)
            return ValidationResult(
                is_valid=False,
                errors=["Failed to validate content"],
                warnings=result.warnings,
            )

    @classmethod
    def _validate_size(cls, content: Any, result: ValidationResult) -> bool:
        if not isinstance(content, str):
            result.errors.append("Content must be text")
            return False

        size_in_bytes = len(content.encode("utf-8"))
        if size_in_bytes > MAX_FILE_SIZE:
            result.errors.append(
                f"File too large: {round(size_in_bytes / 1024)}KB (max: {MAX_FILE_SIZE // 1024}KB)"
            )
            return False

        if len(content) > MAX_CONTENT_LENGTH:
            result.errors.append(
                f"Content too long: {len(content)} characters (max: {MAX_CONTENT_LENGTH})"
            )
            return False

        if not content.strip():
            result.errors.append("Content cannot be empty")
            return False

        return True

    @staticmethod
    def _validate_frontmatter(frontmatter: Dict[str, Any], result: ValidationResult) -> None:
        if not frontmatter:
            return

        title = frontmatter.get("title")
        if title is not None and not isinstance(title, str):
            result.warnings.append("Frontmatter title should be a string")

        order = frontmatter.get("order")
        if order is not None and (not _is_number(order) or order < 0):
            result.warnings.append("Frontmatter order should be a positive number")

        hidden = frontmatter.get("hidden")
        if hidden is not None and not isinstance(hidden, bool):
            result.warnings.append("Frontmatter hidden should be a boolean")

        tags = frontmatter.get("tags")
        if tags is not None and not isinstance(tags, list):
            result.warnings.append("Frontmatter tags should be an array")

        # Code-like keys in structured metadata are treated as injection attempts
        for key in DANGEROUS_FRONTMATTER_KEYS:
            if key in frontmatter:
                result.errors.append(f"Dangerous frontmatter field: {key}")

    @classmethod
    def markup_outside_code(cls, body: str) -> str:
        """
        Raw HTML of the document as CommonMark parses it.

        Fenced blocks, indented blocks and code spans never produce HTML tokens,
        so documentation about these tags is allowed.
        """
        parts: List[str] = []
        for token in cls._markdown.parse(body):
            if token.type == "html_block":
                parts.append(token.content)
            elif token.children:
                cls._collect_inline_html(token.children, parts)
        return "\n".join(parts)

    @classmethod
    def _collect_inline_html(cls, tokens, parts: List[str]) -> None:
        for token in tokens:
            if token.type == "html_inline":
                parts.append(token.content)
            elif token.children:
                cls._collect_inline_html(token.children, parts)

    @classmethod
    def _validate_security(cls, body: str, result: ValidationResult) -> None:
        scan_text = cls.markup_outside_code(body)
        for pattern, message in DANGEROUS_PATTERNS:
            if pattern.search(scan_text):
                result.errors.append(message)

    @staticmethod
    def is_suspicious_url(url: str) -> bool:
        return bool(SUSPICIOUS_URL_PATTERN.match(url))

    @classmethod
    def _validate_links(cls, body: str, result: ValidationResult) -> None:
        # Flagged only; suspicious links do not block publication
        for match in LINK_PATTERN.finditer(body):
            url = match.group(2)
            if cls.is_suspicious_url(url):
                result.warnings.append(f"Potentially suspicious URL detected: {url}")

    @classmethod
    def _validate_markdown_syntax(cls, body: str, result: ValidationResult) -> None:
        try:
            cls._markdown.parse(body)
        except Exception as e:
            result.errors.append(f"Markdown syntax error: {e}")

    @staticmethod
    def _validate_filename(filename: str, result: ValidationResult) -> None:
        if not filename.lower().endswith(MARKDOWN_EXTENSIONS):
            result.warnings.append("File should have .md or .markdown extension")

        if FILENAME_INVALID_CHARS.search(filename):
            result.errors.append("Filename contains invalid characters")

        if len(filename) > MAX_FILENAME_LENGTH:
            result.errors.append("Filename is too long")

    @staticmethod
    def sanitize_content(content: str) -> str:
        """Strip script blocks, inline event handlers, javascript: hrefs and data:text/html sources"""
        sanitized = SCRIPT_BLOCK_PATTERN.sub("", content)
        sanitized = STRAY_SCRIPT_TAG_PATTERN.sub("", sanitized)
        sanitized = EVENT_HANDLER_PATTERN.sub("", sanitized)
        sanitized = JAVASCRIPT_HREF_PATTERN.sub("", sanitized)
        sanitized = DATA_HTML_SRC_PATTERN.sub("", sanitized)
        return sanitized

    @staticmethod
    def quick_validate(content: Any) -> InputValidationResult:
        """
        Cheap pre-check for fast-path gating.

        Never sufficient on its own before trusting content for render; run
        validate_markdown_content as well.
        """
        if not isinstance(content, str) or not content.strip():
            return InputValidationResult(is_valid=False, errors=["Content is empty"])

        if len(content.encode("utf-8")) > MAX_FILE_SIZE:
            return InputValidationResult(is_valid=False, errors=["File too large"])

        for pattern in QUICK_CHECK_PATTERNS:
            if pattern.search(content):
                return InputValidationResult(
                    is_valid=False,
                    errors=["Content contains potentially dangerous elements"],
                )

        return InputValidationResult(is_valid=True)
