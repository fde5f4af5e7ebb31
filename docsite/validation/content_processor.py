"""Metadata helpers for rendered documents (title, description, tags, reading time)"""

import math
import re
from typing import List, Optional

from .frontmatter import load_frontmatter

MARKDOWN_SUFFIX = re.compile(r"\.(md|markdown)$", re.IGNORECASE)
FIRST_HEADING = re.compile(r"^#\s+(.+)$", re.MULTILINE)
WORDS_PER_MINUTE = 200


class ContentProcessor:

    @staticmethod
    def extract_title(content: str, filename: Optional[str] = None) -> str:
        """Frontmatter title, else the first level-1 heading, else a name derived from filename"""
        frontmatter, body = load_frontmatter(content)

        title = frontmatter.get("title")
        if isinstance(title, str) and title.strip():
            return title.strip()

        heading = FIRST_HEADING.search(body)
        if heading:
            return heading.group(1).strip()

        if filename:
            stem = MARKDOWN_SUFFIX.sub("", filename.rsplit("/", 1)[-1])
            return re.sub(r"[-_]", " ", stem)

        return "Untitled"

    @staticmethod
    def extract_description(content: str, max_length: int = 160) -> str:
        _, body = load_frontmatter(content)

        plain_text = re.sub(r"^#.+$", "", body, flags=re.MULTILINE)
        plain_text = re.sub(r"\*\*(.+?)\*\*", r"\1", plain_text)
        plain_text = re.sub(r"\*(.+?)\*", r"\1", plain_text)
        plain_text = re.sub(r"`(.+?)`", r"\1", plain_text)
        plain_text = re.sub(r"\[(.+?)\]\(.+?\)", r"\1", plain_text)
        plain_text = re.sub(r"\s+", " ", plain_text).strip()

        if len(plain_text) <= max_length:
            return plain_text

        # Truncate at a word boundary when one is reasonably close
        truncated = plain_text[:max_length]
        last_space = truncated.rfind(" ")
        if last_space > max_length * 0.8:
            return truncated[:last_space] + "..."
        return truncated + "..."

    @staticmethod
    def extract_tags(content: str) -> List[str]:
        frontmatter, _ = load_frontmatter(content)
        tags = frontmatter.get("tags")
        if not isinstance(tags, list):
            return []
        return [tag.strip() for tag in tags if isinstance(tag, str) and tag.strip()]

    @staticmethod
    def get_reading_time(content: str) -> int:
        """Estimated minutes to read the body, at least 1"""
        _, body = load_frontmatter(content)
        words = len(body.split())
        return max(1, math.ceil(words / WORDS_PER_MINUTE))
