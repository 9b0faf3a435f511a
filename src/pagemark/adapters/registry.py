"""Ordered registry of content adapters."""

import logging
from collections.abc import Iterable
from typing import Optional

from ..models.content import ContentItem
from .protocols import Adapter

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """
    Holds adapters in registration order and merges their content.

    Adapters whose backing system is not installed are skipped at
    registration. Each adapter sees the content produced by the ones
    before it. Exceptions raised by an adapter propagate to the caller.

    Example:
        registry = AdapterRegistry()
        registry.register(PageBuilderAdapter(provider, config))
        html = registry.inject_all(item.raw_content_html, item)
    """

    def __init__(self) -> None:
        self._adapters: list[Adapter] = []

    def register(self, adapter: Adapter) -> bool:
        """
        Register an adapter.

        Returns:
            True if the adapter was added, False if it is not installed
        """
        if not adapter.installed():
            logger.debug(f"Adapter {adapter.name} not installed, skipping")
            return False

        self._adapters.append(adapter)
        logger.debug(f"Registered adapter: {adapter.name}")
        return True

    @classmethod
    def from_config(
        cls,
        adapters: Iterable[Adapter],
        enabled: Optional[Iterable[str]] = None,
    ) -> "AdapterRegistry":
        """
        Build a registry from candidate adapters.

        Args:
            adapters: Candidate adapters in the order they should run
            enabled: Adapter names switched on in configuration
                     (None = every installed adapter)
        """
        registry = cls()
        allowed = None if enabled is None else set(enabled)

        for adapter in adapters:
            if allowed is not None and adapter.name not in allowed:
                logger.debug(f"Adapter {adapter.name} disabled in configuration")
                continue
            registry.register(adapter)

        return registry

    @property
    def adapters(self) -> list[Adapter]:
        return list(self._adapters)

    def __len__(self) -> int:
        return len(self._adapters)

    def inject_all(self, content: str, item: ContentItem) -> str:
        """Run every supporting adapter over the content, in registration order."""
        for adapter in self._adapters:
            if adapter.supports(item):
                content = adapter.inject(content, item)
        return content
