"""Protocol definitions for content sources."""

from collections.abc import Sequence
from typing import Optional, Protocol

from ..models.content import ContentItem


class ContentStore(Protocol):
    """
    Protocol for the system that owns content items.

    The exporter only reads from it.
    """

    def get_item(self, item_id: int) -> Optional[ContentItem]:
        """
        Fetch one item.

        Returns:
            The item, or None if no item has this id
        """
        ...

    def query_item_ids(
        self,
        types: Sequence[str],
        statuses: Sequence[str],
        limit: Optional[int] = None,
    ) -> list[int]:
        """
        Ids of items matching any of the types and statuses, newest first.

        Args:
            types: Item types to include
            statuses: Publication statuses to include
            limit: Maximum number of ids (None = all)
        """
        ...
