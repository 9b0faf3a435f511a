"""Content item and export artifact types."""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ItemStatus(str, Enum):
    """Publication status of a content item."""

    PUBLISH = "publish"
    DRAFT = "draft"
    PENDING = "pending"
    PRIVATE = "private"


def slugify(text: str) -> str:
    """Turn a title into a lowercase, dash separated slug."""
    text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    text = re.sub(r"[^\w\s-]", "", text.lower())
    text = re.sub(r"[\s_-]+", "-", text)
    return text.strip("-")


@dataclass(frozen=True)
class ContentItem:
    """
    Immutable snapshot of one exportable item.

    The content store owns the item; the exporter only reads this snapshot.

    Attributes:
        id: Stable unique identifier
        type: Content type tag ("post", "page", ...)
        title: Display title
        raw_content_html: Rendered HTML body
        slug: URL slug (may be empty, see effective_slug)
        created_at: Publication date
        modified_at: Last modification date
        excerpt: Short summary
        categories: Category names in store order
        permalink: Public URL of the item
        status: Publication status
        template: Page template key, used by page-builder layouts
    """

    id: int
    type: str
    title: str
    raw_content_html: str
    slug: str
    created_at: datetime
    modified_at: datetime
    excerpt: str = ""
    categories: tuple[str, ...] = ()
    permalink: str = ""
    status: str = ItemStatus.PUBLISH.value
    template: str | None = None

    @property
    def effective_slug(self) -> str:
        """Slug used in filenames; falls back to the slugified title, then the id."""
        return self.slug or slugify(self.title) or str(self.id)

    @property
    def filename(self) -> str:
        """Deterministic artifact filename."""
        return f"{self.type}-{self.effective_slug}-{self.id}.md"


@dataclass
class ExportArtifact:
    """Markdown file produced for one content item."""

    filename: str
    title: str
    front_matter: dict = field(default_factory=dict)
    body_markdown: str = ""

    def render(self) -> str:
        """Render the full file text (front matter, title heading, body)."""
        from ..conversion.markdown import FrontmatterBuilder

        parts = [
            FrontmatterBuilder().build(self.front_matter).rstrip("\n"),
            "",
            f"# {self.title}",
            "",
            self.body_markdown,
            "",
        ]
        return "\n".join(parts).rstrip() + "\n"

    @classmethod
    def from_item(cls, item: ContentItem, body_markdown: str) -> "ExportArtifact":
        """Assemble front matter for an item in the published key order."""
        front_matter: dict = {
            "date": item.created_at.strftime(DATE_FORMAT),
            "modified": item.modified_at.strftime(DATE_FORMAT),
            "slug": item.effective_slug,
            "id": item.id,
            "type": item.type,
            "excerpt": item.excerpt,
            "permalink": item.permalink,
        }
        if item.categories:
            front_matter["category"] = list(item.categories)

        return cls(
            filename=item.filename,
            title=item.title,
            front_matter=front_matter,
            body_markdown=body_markdown,
        )
