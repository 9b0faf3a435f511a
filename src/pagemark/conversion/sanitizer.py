"""HTML sanitization ahead of Markdown conversion.

The sanitizer is a fixed sequence of rules. Text rules are pure functions
over strings; tree rules mutate a parsed BeautifulSoup document. Consecutive
tree rules share a single parse.
"""

import logging
import re
from dataclasses import dataclass
from functools import partial
from typing import Callable, Iterable, Optional

from bs4 import BeautifulSoup, Comment, NavigableString, Tag
from bs4.dammit import EntitySubstitution
from bs4.formatter import HTMLFormatter

logger = logging.getLogger(__name__)

DEFAULT_DISALLOWED_CLASSES = ["u-preloader"]

HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]

# Tags placed on their own line in the intermediate HTML
BLOCK_TAGS = HEADING_TAGS + ["p", "div", "ul", "ol", "blockquote"]

# Tags whose leading/trailing inner text is trimmed
TRIMMED_TAGS = ["div", "p"]

# Wrapper levels removed around headings
UNWRAP_DEPTH = 3

# Void elements serialize as "<img ...>", not "<img .../>"
_FORMATTER = HTMLFormatter(
    entity_substitution=EntitySubstitution.substitute_xml,
    void_element_close_prefix=None,
)

# Tag names end at whitespace, "/" or ">", so <style-guide> or <script-loader> are not matched
_SCRIPT_STYLE_PATTERNS = [
    re.compile(r"<(style|script)(?=[\s/>])[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL),
    re.compile(r"&lt;(style|script)(?=\s|/|&gt;).*?&gt;.*?&lt;/\1\s*&gt;", re.IGNORECASE | re.DOTALL),
    # Unclosed opener: everything after it is script/style content
    re.compile(r"<(?:style|script)(?=[\s/>])[^>]*>.*\Z", re.IGNORECASE | re.DOTALL),
    re.compile(r"<(?:style|script)(?=[\s/>]|\Z)[^>]*\Z", re.IGNORECASE),
    re.compile(r"</(?:style|script)\s*>", re.IGNORECASE),
]

_SPAN_OPEN = re.compile(r"<span(\s|/|>)", re.IGNORECASE)
_SPAN_CLOSE = re.compile(r"</span\s*>", re.IGNORECASE)
_COMMENT = re.compile(r"<!--.*?-->", re.DOTALL)

_EMPTY_CONTAINER = re.compile(r"<(div|span)\b[^>]*>\s*</\1\s*>", re.IGNORECASE)
_PRE_BLOCK = re.compile(r"<pre\b[^>]*>.*?</pre\s*>", re.IGNORECASE | re.DOTALL)
_HEADING_CONTENT = re.compile(r"<h([1-6])([^>]*)>(.*?)</h\1>", re.IGNORECASE | re.DOTALL)

_HASH_LINK = re.compile(
    r"<a\b[^>]*\bhref\s*=\s*[\"']#[^\"']*[\"'][^>]*>(.*?)</a>",
    re.IGNORECASE | re.DOTALL,
)
_FIGURE = re.compile(r"<figure\b[^>]*>(.*?)</figure>", re.IGNORECASE | re.DOTALL)
_IMG = re.compile(r"<img\b[^>]*>", re.IGNORECASE | re.DOTALL)
_LINK_AROUND_HEADING = re.compile(
    r"<a\s+([^>]+)>\s*<(h[1-6])([^>]*)>(.*?)</\2>\s*</a>",
    re.IGNORECASE | re.DOTALL,
)
# Filler and trailing parts may not open or close another link
_LINK_AROUND_FILLER_AND_HEADING = re.compile(
    r"<a\s+([^>]+)>((?:(?!</?a[\s>]).)*?)<(h[1-6])([^>]*)>(.*?)</\3>((?:(?!</?a[\s>]).)*?)</a>",
    re.IGNORECASE | re.DOTALL,
)
_NESTED_LINK = re.compile(r"<a[\s>]", re.IGNORECASE)
_TAG = re.compile(r"<[^>]+>")
_ALNUM = re.compile(r"[a-zA-Z0-9]")


# --- text rules -------------------------------------------------------------


def strip_scripts_and_styles(html: str) -> str:
    """Remove <style>/<script> elements and their content, escaped variants included."""
    while True:
        cleaned = html
        for pattern in _SCRIPT_STYLE_PATTERNS:
            while True:
                reduced = pattern.sub("", cleaned)
                if reduced == cleaned:
                    break
                cleaned = reduced
        # Removal can splice a new tag together from fragments
        if cleaned == html:
            return cleaned
        html = cleaned


def spans_to_divs(html: str) -> str:
    """Rename inline <span> containers to block-level <div>."""
    html = _SPAN_OPEN.sub(r"<div\1", html)
    return _SPAN_CLOSE.sub("</div>", html)


def strip_comments(html: str) -> str:
    """Remove HTML comments."""
    return _COMMENT.sub("", html)


def _protect_pre(html: str) -> tuple[str, list[str]]:
    blocks: list[str] = []

    def stash(match: re.Match) -> str:
        blocks.append(match.group(0))
        return f"@@PAGEMARK_PRE_{len(blocks) - 1}@@"

    return _PRE_BLOCK.sub(stash, html), blocks


def _restore_pre(html: str, blocks: list[str]) -> str:
    for index, block in enumerate(blocks):
        html = html.replace(f"@@PAGEMARK_PRE_{index}@@", block)
    return html


def format_whitespace(html: str) -> str:
    """
    Collapse whitespace and lay block tags out one per line.

    Empty div/span containers are removed until none remain, so containers
    holding only empty containers disappear too. Block tags lose their
    attributes. Content of <pre> elements is left as is.
    """
    html, preserved = _protect_pre(html)

    while True:
        stripped = _EMPTY_CONTAINER.sub("", html)
        if stripped == html:
            break
        html = stripped

    html = re.sub(r"\s+", " ", html)
    html = re.sub(r">\s+<", "><", html)

    for tag in BLOCK_TAGS:
        html = re.sub(rf"</{tag}\s*>", f"</{tag}>\n", html, flags=re.IGNORECASE)
        html = re.sub(rf"<{tag}\b[^>]*>", f"\n<{tag}>", html, flags=re.IGNORECASE)

    html = _HEADING_CONTENT.sub(
        lambda m: f"<h{m.group(1)}{m.group(2)}>{m.group(3).strip()}</h{m.group(1)}>",
        html,
    )
    html = re.sub(r"\n\s*\n", "\n", html)

    return _restore_pre(html, preserved).strip()


def remove_hash_links(html: str) -> str:
    """Drop in-page anchor links (href="#...") but keep their text."""
    return _HASH_LINK.sub(r"\1", html)


def keep_first_figure_image(html: str) -> str:
    """Keep only the first <img> inside each <figure>."""

    def replace(match: re.Match) -> str:
        content = match.group(1)
        images = _IMG.findall(content)
        if images:
            content = images[0] + _IMG.sub("", content)
        return f"<figure>{content}</figure>"

    return _FIGURE.sub(replace, html)


def _link_inside_heading(attrs: str, tag: str, tag_attrs: str, text: str) -> str:
    return f"<{tag}{tag_attrs}><a {attrs}>{text}</a></{tag}>"


def move_heading_links(html: str) -> str:
    """
    Move links that wrap a heading inside the heading.

    <a href="x"><h2>Title</h2></a> becomes <h2><a href="x">Title</a></h2>.
    <a href="x"><div>..</div><h2>Title</h2></a> becomes
    <div>..</div><h2><a href="x">Title</a></h2> unless the heading already
    holds a link or the content before the heading has text of its own.
    """

    def replace_wrapped(match: re.Match) -> str:
        attrs, tag, tag_attrs, text = match.groups()
        if _NESTED_LINK.search(text):
            return match.group(0)
        return _link_inside_heading(attrs, tag, tag_attrs, text)

    def replace_with_filler(match: re.Match) -> str:
        attrs, before, tag, tag_attrs, text, after = match.groups()
        if not text or _NESTED_LINK.search(text):
            return match.group(0)
        if _ALNUM.search(_TAG.sub("", before)):
            return match.group(0)
        return before + _link_inside_heading(attrs, tag, tag_attrs, text) + after

    html = _LINK_AROUND_HEADING.sub(replace_wrapped, html)
    return _LINK_AROUND_FILLER_AND_HEADING.sub(replace_with_filler, html)


def normalize_links(html: str) -> str:
    """Link normalization pass run last, right before Markdown conversion."""
    html = remove_hash_links(html)
    html = keep_first_figure_image(html)
    return move_heading_links(html)


# --- tree rules -------------------------------------------------------------


def parse_html(html: str) -> BeautifulSoup:
    """Parse an HTML fragment without adding html/body wrappers."""
    return BeautifulSoup(html, "html.parser")


def serialize_html(soup: BeautifulSoup) -> str:
    """Serialize a parsed fragment back to HTML."""
    return soup.decode(formatter=_FORMATTER)


def remove_denylisted_tree(soup: BeautifulSoup, classes: Iterable[str]) -> None:
    """Decompose every element whose class list contains a denylisted class."""
    for class_name in classes:
        for element in soup.find_all(class_=class_name):
            # Already gone with a denylisted ancestor
            if element.decomposed:
                continue
            element.decompose()


def _first_significant_child(element: Tag) -> Optional[object]:
    for child in element.contents:
        if isinstance(child, NavigableString) and not str(child).strip():
            continue
        return child
    return None


def unwrap_headings_tree(soup: BeautifulSoup) -> None:
    """Unwrap headings from a <div>/<a> that they open, up to UNWRAP_DEPTH levels."""
    for _ in range(UNWRAP_DEPTH):
        changed = False
        for heading in soup.find_all(HEADING_TAGS):
            parent = heading.parent
            if not isinstance(parent, Tag) or parent.name not in ("div", "a"):
                continue
            if _first_significant_child(parent) is heading:
                parent.unwrap()
                changed = True
        if not changed:
            break


def _replace_text(node: NavigableString, text: str) -> None:
    if text:
        node.replace_with(NavigableString(text))
    else:
        node.extract()


def trim_block_text_tree(soup: BeautifulSoup) -> None:
    """Trim the leading and trailing inner text of div and p elements."""
    for element in soup.find_all(TRIMMED_TAGS):
        if not element.contents:
            continue
        first, last = element.contents[0], element.contents[-1]

        if isinstance(first, NavigableString) and not isinstance(first, Comment):
            text = str(first).lstrip()
            if first is last:
                text = text.rstrip()
            _replace_text(first, text)
            if first is last:
                continue

        if isinstance(last, NavigableString) and not isinstance(last, Comment):
            _replace_text(last, str(last).rstrip())


def _on_tree(html: str, rule: Callable[[BeautifulSoup], None]) -> str:
    soup = parse_html(html)
    rule(soup)
    return serialize_html(soup)


def remove_denylisted(html: str, classes: Iterable[str] = DEFAULT_DISALLOWED_CLASSES) -> str:
    """String form of remove_denylisted_tree."""
    return _on_tree(html, partial(remove_denylisted_tree, classes=list(classes)))


def unwrap_headings(html: str) -> str:
    """String form of unwrap_headings_tree."""
    return _on_tree(html, unwrap_headings_tree)


def trim_block_text(html: str) -> str:
    """String form of trim_block_text_tree."""
    return _on_tree(html, trim_block_text_tree)


# --- pipeline ---------------------------------------------------------------


@dataclass(frozen=True)
class SanitizeRule:
    """One sanitization step; tree rules receive a parsed document."""

    name: str
    apply: Callable
    tree: bool = False


class ContentSanitizer:
    """
    Cleans rendered page HTML so it converts to tidy Markdown.

    Never raises: a failing rule is logged and skipped.

    Example:
        sanitizer = ContentSanitizer(disallowed_classes=["u-preloader"])
        html = sanitizer.clean("<style>.x{}</style><p>Hello <span>World</span></p>")
    """

    def __init__(self, disallowed_classes: Optional[list[str]] = None):
        """
        Initialize the sanitizer.

        Args:
            disallowed_classes: Classes marking elements to remove entirely
                                (defaults to DEFAULT_DISALLOWED_CLASSES)
        """
        if disallowed_classes is None:
            disallowed_classes = DEFAULT_DISALLOWED_CLASSES
        self._disallowed_classes = list(disallowed_classes)
        self.rules = [
            SanitizeRule("strip_scripts_and_styles", strip_scripts_and_styles),
            SanitizeRule("spans_to_divs", spans_to_divs),
            SanitizeRule("strip_comments", strip_comments),
            SanitizeRule(
                "remove_denylisted",
                partial(remove_denylisted_tree, classes=self._disallowed_classes),
                tree=True,
            ),
            SanitizeRule("unwrap_headings", unwrap_headings_tree, tree=True),
            SanitizeRule("format_whitespace", format_whitespace),
            SanitizeRule("trim_block_text", trim_block_text_tree, tree=True),
            SanitizeRule("normalize_links", normalize_links),
        ]

    def clean(self, html: str) -> str:
        """
        Clean HTML for Markdown conversion.

        Args:
            html: Raw item HTML

        Returns:
            Sanitized HTML ("" for empty input)
        """
        if not html or not html.strip():
            return ""

        soup: Optional[BeautifulSoup] = None
        for rule in self.rules:
            try:
                if rule.tree:
                    if soup is None:
                        soup = parse_html(html)
                    rule.apply(soup)
                else:
                    if soup is not None:
                        html = serialize_html(soup)
                        soup = None
                    html = rule.apply(html)
            except Exception as e:
                logger.warning(f"Sanitizer rule {rule.name} failed, skipping it: {e}")
                # A half-mutated tree is dropped; continue from the last good string
                soup = None

        if soup is not None:
            html = serialize_html(soup)

        return html.strip()
