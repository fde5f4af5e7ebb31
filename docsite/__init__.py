"""Docsite: password-protected viewer for markdown mirrored from a GitHub repository."""

__version__ = "1.0.0"
