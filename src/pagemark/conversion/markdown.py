"""HTML to Markdown conversion."""

from __future__ import annotations

import logging
import re
from typing import Any, Optional
from urllib.parse import urljoin

import html2text
import yaml
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

# Elements in which a <div> is phrasing content and renders inline
INLINE_CONTEXTS = [
    "p",
    "h1",
    "h2",
    "h3",
    "h4",
    "h5",
    "h6",
    "a",
    "strong",
    "b",
    "em",
    "i",
    "li",
    "td",
    "th",
    "dt",
    "dd",
    "figcaption",
]

# Each rule only touches runs that are already blank-line separated
_SPACING_RULES = [
    (re.compile(r"\n{3,}"), "\n\n"),
    # Headings
    (re.compile(r"\n{2,}(#{1,6}\s+[^\n]+)\n{2,}"), r"\n\n\1\n\n"),
    # Links
    (re.compile(r"\n{2,}(\[[^\]]+\]\([^)]+\))\n{2,}"), r"\n\n\1\n\n"),
    # Horizontal rules
    (re.compile(r"\n{2,}(-{3,})\n{2,}"), r"\n\n\1\n\n"),
    # List items
    (re.compile(r"\n{2,}([*\-+]\s+[^\n]+)"), r"\n\n\1"),
    (re.compile(r"([*\-+]\s+[^\n]+)\n{2,}"), r"\1\n\n"),
    # Blockquotes
    (re.compile(r"\n{2,}(>\s+[^\n]+)"), r"\n\n\1"),
    (re.compile(r"(>\s+[^\n]+)\n{2,}"), r"\1\n\n"),
    # Fenced code
    (re.compile(r"\n{2,}(```[^\n]*\n)"), r"\n\n\1"),
    (re.compile(r"(```\n)\n{2,}"), r"\1\n"),
    # Inline code
    (re.compile(r"\n{2,}(`[^`\n]+`)\n{2,}"), r"\n\n\1\n\n"),
    # Bold and italic
    (re.compile(r"\n{2,}(\*\*[^*\n]+\*\*)\n{2,}"), r"\n\n\1\n\n"),
    (re.compile(r"\n{2,}(\*[^*\n]+\*)\n{2,}"), r"\n\n\1\n\n"),
    # Images
    (re.compile(r"\n{2,}(!\[[^\]]*\]\([^)]+\))\n{2,}"), r"\n\n\1\n\n"),
    # Table rows
    (re.compile(r"\n{2,}(\|[^|\n]+\|[^|\n]+\|[^\n]*)\n{2,}"), r"\n\n\1\n\n"),
]


def clean_markdown(markdown: str) -> str:
    """
    Normalize whitespace in converted Markdown.

    Unifies line endings, strips trailing whitespace on each line, keeps at
    most one blank line between blocks and trims the document. Applying it
    twice gives the same result as applying it once.
    """
    markdown = markdown.replace("\r\n", "\n").replace("\r", "\n")
    markdown = "\n".join(line.rstrip() for line in markdown.split("\n"))
    markdown = markdown.strip()

    for pattern, replacement in _SPACING_RULES:
        markdown = pattern.sub(replacement, markdown)

    return markdown.strip()


class HtmlToMarkdown:
    """
    Converts sanitized HTML content to clean Markdown.

    Uses html2text with ATX headings, no line wrapping, inline links, tables
    and fenced code blocks. If conversion fails the input HTML is returned
    unchanged so a single bad item never aborts a batch.

    Example:
        converter = HtmlToMarkdown()
        markdown = converter.convert(html_string, "https://example.com/page/")
    """

    def __init__(
        self,
        body_width: int = 0,
        inline_links: bool = True,
        ignore_images: bool = False,
        ignore_tables: bool = False,
        unicode_snob: bool = True,
    ):
        """
        Initialize the Markdown converter.

        Args:
            body_width: Max line width (0 = no wrapping)
            inline_links: Use inline [text](url) vs reference style
            ignore_images: Skip image conversion
            ignore_tables: Skip table conversion
            unicode_snob: Use Unicode chars where possible
        """
        self.body_width = body_width
        self.inline_links = inline_links
        self.ignore_images = ignore_images
        self.ignore_tables = ignore_tables
        self.unicode_snob = unicode_snob

    def _build_converter(self) -> html2text.HTML2Text:
        # html2text parsers keep state; one instance per document
        converter = html2text.HTML2Text()

        # Line width (0 = no wrapping for consistent output)
        converter.body_width = self.body_width

        # Link handling
        converter.inline_links = self.inline_links
        converter.wrap_links = False
        converter.protect_links = False

        # Content handling
        converter.ignore_images = self.ignore_images
        converter.ignore_tables = self.ignore_tables
        converter.unicode_snob = self.unicode_snob
        converter.escape_snob = False
        converter.default_image_alt = ""
        converter.single_line_break = False

        # Markers
        converter.ul_item_mark = "-"
        converter.emphasis_mark = "*"
        converter.strong_mark = "**"

        # Code blocks
        converter.mark_code = False
        converter.backquote_code_style = True
        return converter

    def _inline_nested_divs(self, html: str) -> str:
        """Render divs that sit inside phrasing elements as inline content."""
        soup = BeautifulSoup(html, "html.parser")
        nested = [div for div in soup.find_all("div") if div.find_parent(INLINE_CONTEXTS)]
        if not nested:
            return html

        for div in nested:
            if div.next_sibling is not None:
                div.insert_after(" ")
            div.unwrap()
        return str(soup)

    def _fix_relative_links(self, markdown: str, base_url: str) -> str:
        """Ensure all links are absolute."""

        def replace_link(match: re.Match[str]) -> str:
            text = match.group(1)
            url = match.group(2)

            # Skip anchors and already absolute URLs
            if url.startswith(("#", "http://", "https://", "mailto:", "tel:", "data:")):
                result: str = match.group(0)
                return result

            return f"[{text}]({urljoin(base_url, url)})"

        # Match markdown links [text](url)
        return re.sub(r"\[([^\]]*)\]\(([^)\s]+)\)", replace_link, markdown)

    def convert(self, html: str, base_url: Optional[str] = None) -> str:
        """
        Convert HTML to Markdown.

        Args:
            html: Sanitized HTML content
            base_url: Optional page URL for resolving relative links

        Returns:
            Markdown string, or the input HTML if conversion failed
        """
        if not html.strip():
            return ""

        try:
            converter = self._build_converter()
            markdown = converter.handle(self._inline_nested_divs(html))
            markdown = clean_markdown(markdown)

            if base_url:
                markdown = self._fix_relative_links(markdown, base_url)

            return markdown

        except Exception as e:
            logger.warning(f"Failed to convert HTML to Markdown, keeping HTML: {e}")
            return html


class _FrontmatterDumper(yaml.SafeDumper):
    """SafeDumper that indents block sequences under their key."""

    def increase_indent(self, flow: bool = False, indentless: bool = False) -> Any:
        return super().increase_indent(flow, False)


_PLAIN_STRING = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


def _is_plain(value: str) -> bool:
    if not _PLAIN_STRING.match(value):
        return False
    # "true", "12", "2024-01-01" would load back as other types
    return isinstance(yaml.safe_load(value), str)


def _represent_str(dumper: yaml.SafeDumper, value: str) -> yaml.ScalarNode:
    style = None if _is_plain(value) else '"'
    return dumper.represent_scalar("tag:yaml.org,2002:str", value, style=style)


_FrontmatterDumper.add_representer(str, _represent_str)


class FrontmatterBuilder:
    """
    Builds YAML frontmatter for Markdown files.

    Identifier-like strings are written plain, every other string is
    double-quoted, and list items are indented under their key.

    Example:
        builder = FrontmatterBuilder()
        frontmatter = builder.build({
            "date": "2024-01-01 12:00:00",
            "slug": "example-page",
            "id": 43,
            "category": ["News"],
        })
    """

    def build(self, fields: dict[str, Any]) -> str:
        """
        Build YAML frontmatter string.

        Args:
            fields: Ordered mapping of frontmatter keys to values;
                    None values are dropped

        Returns:
            YAML frontmatter string (with --- delimiters)
        """
        data = {key: value for key, value in fields.items() if value is not None}
        body = ""
        if data:
            body = yaml.dump(
                data,
                Dumper=_FrontmatterDumper,
                sort_keys=False,
                allow_unicode=True,
                default_flow_style=False,
                width=float("inf"),
            )
        return f"---\n{body}---\n"
