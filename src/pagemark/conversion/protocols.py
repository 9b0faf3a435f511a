"""Protocol definitions for content conversion."""

from typing import Optional, Protocol


class Sanitizer(Protocol):
    """
    Protocol for cleaning rendered HTML before conversion.

    Implementations remove scripts, styles, comments and layout noise so
    the converter sees only the content markup.
    """

    def clean(self, html: str) -> str:
        """
        Clean HTML content.

        Args:
            html: Rendered HTML body

        Returns:
            Cleaned HTML (still HTML), empty for empty input
        """
        ...


class MarkdownConverter(Protocol):
    """
    Protocol for converting HTML to Markdown.

    Implementations convert cleaned HTML to Markdown format.
    """

    def convert(self, html: str, base_url: Optional[str] = None) -> str:
        """
        Convert HTML to Markdown.

        Args:
            html: HTML content string
            base_url: Optional page URL for resolving relative links

        Returns:
            Markdown string
        """
        ...
