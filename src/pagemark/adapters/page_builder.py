"""Adapter merging page-builder modules into item content."""

import logging

from ..models.config import PageBuilderConfig
from ..models.content import ContentItem
from .protocols import LayoutProvider

logger = logging.getLogger(__name__)

MAIN_CONTENT = "main-content"

# Zones are rendered in this order; unknown zones follow in their original order
AREA_ORDER = [
    "slider-area",
    MAIN_CONTENT,
    "top-sidebar",
    "above-columns-sidebar",
    "left-sidebar",
    "left-sidebar-bottom",
    "content-area-top",
    "content-area",
    "content-area-bottom",
    "right-sidebar",
]

_UNKNOWN_AREA = len(AREA_ORDER)


def area_rank(zone: str) -> int:
    """Position of a zone in the canonical order."""
    try:
        return AREA_ORDER.index(zone)
    except ValueError:
        return _UNKNOWN_AREA


class PageBuilderAdapter:
    """
    Lays page-builder modules out around the item body.

    The body is emitted at the main-content zone and every other enabled
    zone contributes its visible modules of enabled types, separated by
    blank lines. Any failure leaves the content untouched.

    Example:
        adapter = PageBuilderAdapter(store, config.adapters.page_builder)
        if adapter.supports(item):
            html = adapter.inject(item.raw_content_html, item)
    """

    name = "page_builder"

    def __init__(self, provider: LayoutProvider, config: PageBuilderConfig):
        self.provider = provider
        self.config = config

    def installed(self) -> bool:
        return self.provider.installed()

    def supports(self, item: ContentItem) -> bool:
        if not self.provider.installed() or not self.config.enabled:
            return False
        return bool(self.provider.get_modules(item.id))

    def inject(self, content: str, item: ContentItem) -> str:
        try:
            return self._layout(content, item)
        except Exception as e:
            logger.warning(f"Page-builder layout failed for item {item.id}, keeping body: {e}")
            return content

    def _layout(self, content: str, item: ContentItem) -> str:
        zones = dict(self.provider.get_modules(item.id))
        zones.setdefault(MAIN_CONTENT, [])

        template = self.provider.get_template(item.id) or ""
        enabled_areas = set(self.config.enabled_areas.get(template, []))
        enabled_modules = set(self.config.enabled_modules)

        parts: list[str] = []

        # sorted() is stable, so unknown zones keep their relative order
        for zone in sorted(zones, key=area_rank):
            if zone == MAIN_CONTENT:
                parts.append(content)
                continue

            if zone not in enabled_areas:
                continue

            for module in zones[zone] or []:
                if module.hidden or module.type not in enabled_modules:
                    continue
                html = self.provider.render_module(module)
                if html:
                    parts.append(html)

        return "\n\n".join(parts)
