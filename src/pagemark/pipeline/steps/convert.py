"""Pipeline step for HTML to Markdown conversion."""

import asyncio
import logging
from typing import Optional

from ...conversion.markdown import HtmlToMarkdown
from ...conversion.protocols import MarkdownConverter
from ...models.content import ExportArtifact
from ...models.events import EventEmitter
from ..base import ItemContext

logger = logging.getLogger(__name__)


class ConvertStep:
    """
    Pipeline step that converts HTML to Markdown.

    Conversion runs in a worker thread and is bounded by timeout seconds;
    a conversion that overruns fails the item. The converted body is
    assembled with the item's front matter into ctx.artifact.

    Example:
        step = ConvertStep(timeout=30.0)
        ctx = await step.execute(ctx, emit=callback)
        # ctx.artifact now holds the file to write
    """

    name = "convert"

    def __init__(
        self,
        converter: Optional[MarkdownConverter] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize the convert step.

        Args:
            converter: Markdown converter (uses default if None)
            timeout: Seconds allowed per item (None = unbounded)
        """
        self._converter = converter or HtmlToMarkdown()
        self._timeout = timeout

    async def execute(
        self,
        ctx: ItemContext,
        emit: Optional[EventEmitter] = None,
    ) -> ItemContext:
        """
        Convert ctx.html to Markdown and build the artifact.

        Raises:
            TimeoutError: If conversion exceeds the timeout
        """
        if ctx.item is None:
            raise ValueError("No item loaded")

        html = ctx.html or ""
        try:
            markdown = await asyncio.wait_for(
                asyncio.to_thread(self._converter.convert, html, ctx.item.permalink or None),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            # The worker thread cannot be interrupted; its result is discarded
            raise TimeoutError(f"conversion exceeded {self._timeout}s") from None

        ctx.markdown = markdown
        ctx.artifact = ExportArtifact.from_item(ctx.item, markdown)

        logger.debug(f"Converted item {ctx.item_id} to {len(markdown)} bytes of Markdown")
        return ctx
