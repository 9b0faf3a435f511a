"""InjectStep - Adapter content merging pipeline step."""

from typing import Optional

from ...adapters.registry import AdapterRegistry
from ...models.events import EventEmitter
from ..base import ItemContext


class InjectStep:
    """Pipeline step that runs the adapter registry over the item body."""

    name = "inject"

    def __init__(self, registry: AdapterRegistry):
        self._registry = registry

    async def execute(
        self,
        ctx: ItemContext,
        emit: Optional[EventEmitter] = None,
    ) -> ItemContext:
        if ctx.item is None:
            raise ValueError("No item loaded")

        ctx.html = self._registry.inject_all(ctx.html or "", ctx.item)
        return ctx
