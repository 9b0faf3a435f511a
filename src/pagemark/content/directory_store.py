"""Content store reading items from JSON and YAML files."""

import json
import logging
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from ..adapters.protocols import PageModule
from ..models.content import ContentItem, ItemStatus

logger = logging.getLogger(__name__)

ITEM_SUFFIXES = (".json", ".yaml", ".yml")


class ModuleRecord(BaseModel):
    """Page-builder module as written in an item file."""

    id: int
    type: str
    hidden: bool = False
    html: str = ""

    model_config = {"extra": "forbid"}


class ItemRecord(BaseModel):
    """
    One content item as written in an item file.

    YAML format:
        id: 43
        type: page
        title: Example Page
        slug: example-page
        date: 2024-01-01 12:00:00
        modified: 2024-01-02 08:30:00
        excerpt: A short summary
        categories: [News]
        permalink: https://example.com/example-page/
        content: |
          <p>Hello</p>
        modules:
          right-sidebar:
            - {id: 7, type: mod-text, html: "<p>Aside</p>"}
    """

    id: int
    type: str = "post"
    title: str = ""
    content: str = ""
    slug: str = ""
    date: datetime
    modified: Optional[datetime] = None
    excerpt: str = ""
    categories: list[str] = Field(default_factory=list)
    permalink: str = ""
    status: ItemStatus = ItemStatus.PUBLISH
    template: Optional[str] = None
    modules: dict[str, list[ModuleRecord]] = Field(default_factory=dict)

    model_config = {"extra": "forbid"}

    def to_item(self) -> ContentItem:
        return ContentItem(
            id=self.id,
            type=self.type,
            title=self.title,
            raw_content_html=self.content,
            slug=self.slug,
            created_at=self.date,
            modified_at=self.modified or self.date,
            excerpt=self.excerpt,
            categories=tuple(self.categories),
            permalink=self.permalink,
            status=self.status.value,
            template=self.template,
        )

    def to_modules(self) -> dict[str, list[PageModule]]:
        return {
            zone: [PageModule(id=m.id, type=m.type, hidden=m.hidden, html=m.html) for m in modules]
            for zone, modules in self.modules.items()
        }


class DirectoryContentStore:
    """
    Content store backed by a directory of item files.

    Each .json/.yaml/.yml file holds one item or a list of items. Files are
    read once, on first access; call reload() to pick up changes. Files that
    fail to parse are logged and skipped.

    The store also serves page-builder layouts from each item's "modules"
    mapping, so it can be handed to PageBuilderAdapter as its provider.

    Example:
        store = DirectoryContentStore(Path("./content"))
        for item_id in store.query_item_ids(["post"], ["publish"]):
            item = store.get_item(item_id)
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)
        self._records: Optional[dict[int, ItemRecord]] = None

    def _read_file(self, path: Path) -> list[dict]:
        text = path.read_text(encoding="utf-8")
        data = json.loads(text) if path.suffix == ".json" else yaml.safe_load(text)
        if data is None:
            return []
        if isinstance(data, list):
            return data
        return [data]

    def _load(self) -> dict[int, ItemRecord]:
        records: dict[int, ItemRecord] = {}

        if not self.directory.is_dir():
            logger.warning(f"Content directory {self.directory} does not exist")
            return records

        paths = sorted(p for p in self.directory.rglob("*") if p.suffix in ITEM_SUFFIXES and p.is_file())
        for path in paths:
            try:
                entries = self._read_file(path)
            except (OSError, ValueError, yaml.YAMLError) as e:
                logger.warning(f"Skipping {path}: {e}")
                continue

            for entry in entries:
                try:
                    record = ItemRecord.model_validate(entry)
                except ValidationError as e:
                    logger.warning(f"Skipping invalid item in {path}: {e}")
                    continue

                if record.id in records:
                    logger.warning(f"Duplicate item id {record.id} in {path}, keeping the first")
                    continue
                records[record.id] = record

        logger.debug(f"Loaded {len(records)} items from {self.directory}")
        return records

    @property
    def records(self) -> dict[int, ItemRecord]:
        if self._records is None:
            self._records = self._load()
        return self._records

    def reload(self) -> None:
        self._records = None

    def get_item(self, item_id: int) -> Optional[ContentItem]:
        record = self.records.get(item_id)
        return record.to_item() if record else None

    def query_item_ids(
        self,
        types: Sequence[str],
        statuses: Sequence[str],
        limit: Optional[int] = None,
    ) -> list[int]:
        wanted_types = set(types)
        wanted_statuses = set(statuses)

        matches = [
            record
            for record in self.records.values()
            if record.type in wanted_types and record.status.value in wanted_statuses
        ]
        # Newest first; id breaks ties so the order is deterministic
        matches.sort(key=lambda r: (r.date, r.id), reverse=True)

        ids = [record.id for record in matches]
        return ids if limit is None else ids[:limit]

    # LayoutProvider

    def installed(self) -> bool:
        return True

    def get_modules(self, item_id: int) -> dict[str, list[PageModule]]:
        record = self.records.get(item_id)
        return record.to_modules() if record else {}

    def get_template(self, item_id: int) -> Optional[str]:
        record = self.records.get(item_id)
        return record.template if record else None

    def render_module(self, module: PageModule) -> str:
        return module.html
