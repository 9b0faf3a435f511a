"""LoadStep - Content store lookup pipeline step."""

import logging
from typing import Optional

from ...content.protocols import ContentStore
from ...models.events import EventEmitter
from ..base import ItemContext

logger = logging.getLogger(__name__)


class LoadStep:
    """
    Pipeline step that loads the item snapshot from the content store.

    Raises LookupError when the store has no item with the id.
    """

    name = "load"

    def __init__(self, store: ContentStore):
        self._store = store

    async def execute(
        self,
        ctx: ItemContext,
        emit: Optional[EventEmitter] = None,
    ) -> ItemContext:
        item = self._store.get_item(ctx.item_id)
        if item is None:
            raise LookupError(f"Item {ctx.item_id} not found")

        ctx.item = item
        ctx.html = item.raw_content_html
        logger.debug(f"Loaded {item.type} {item.id}: {item.title}")
        return ctx
