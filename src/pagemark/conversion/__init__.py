"""Content conversion for pagemark (sanitizing, HTML to Markdown, frontmatter)."""

from .markdown import FrontmatterBuilder, HtmlToMarkdown, clean_markdown
from .protocols import MarkdownConverter, Sanitizer
from .sanitizer import ContentSanitizer, SanitizeRule

__all__ = [
    # Protocols
    "Sanitizer",
    "MarkdownConverter",
    # Implementations
    "ContentSanitizer",
    "SanitizeRule",
    "HtmlToMarkdown",
    "FrontmatterBuilder",
    "clean_markdown",
]
