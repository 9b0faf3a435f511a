"""SanitizeStep - HTML cleanup pipeline step."""

from typing import Optional

from ...conversion.protocols import Sanitizer
from ...conversion.sanitizer import ContentSanitizer
from ...models.events import EventEmitter
from ..base import ItemContext


class SanitizeStep:
    """Pipeline step that cleans ctx.html in place."""

    name = "sanitize"

    def __init__(self, sanitizer: Optional[Sanitizer] = None):
        self._sanitizer = sanitizer or ContentSanitizer()

    async def execute(
        self,
        ctx: ItemContext,
        emit: Optional[EventEmitter] = None,
    ) -> ItemContext:
        ctx.html = self._sanitizer.clean(ctx.html or "")
        return ctx
