"""Leading YAML metadata block (frontmatter) extraction"""

import re
from typing import Any, Dict, Tuple

import yaml

FRONTMATTER_PATTERN = re.compile(
    r"\A---[ \t]*\r?\n(?P<meta>.*?)(?:\r?\n)?^(?:---|\.\.\.)[ \t]*(?:\r?\n|\Z)",
    re.DOTALL | re.MULTILINE,
)


class FrontmatterError(ValueError):
    """Frontmatter block present but not a YAML mapping"""
    pass


def split_frontmatter(content: str) -> Tuple[str, str]:
    """Return (raw metadata text, body). Metadata is "" when there is no block."""
    match = FRONTMATTER_PATTERN.match(content)
    if not match:
        return "", content
    return match.group("meta"), content[match.end():]


def parse_frontmatter(content: str) -> Tuple[Dict[str, Any], str]:
    """
    Split content into (metadata, body).

    Raises:
        FrontmatterError: The block exists but is not valid YAML or not a mapping.
            The body is still available via split_frontmatter.
    """
    raw_meta, body = split_frontmatter(content)
    if not raw_meta.strip():
        return {}, body
    try:
        data = yaml.safe_load(raw_meta)
    except yaml.YAMLError as e:
        raise FrontmatterError(f"Invalid frontmatter: {e}") from e
    if data is None:
        return {}, body
    if not isinstance(data, dict):
        raise FrontmatterError("Frontmatter must be a mapping")
    return data, body


def load_frontmatter(content: str) -> Tuple[Dict[str, Any], str]:
    """Like parse_frontmatter, but malformed metadata becomes an empty mapping"""
    try:
        return parse_frontmatter(content)
    except FrontmatterError:
        return {}, split_frontmatter(content)[1]
