"""SaveStep - File saving pipeline step."""

import asyncio
import logging
from typing import Optional

from ...models.events import EventEmitter
from ...storage.export_directory import ExportDirectory, Role
from ..base import ItemContext

logger = logging.getLogger(__name__)


class SaveStep:
    """
    Pipeline step that writes ctx.artifact into an export tree.

    Batches write into the pending tree; nothing touches live until the
    batch publishes it.

    Example:
        save_step = SaveStep(directory)

        ctx = await save_step.execute(ctx)
        print(f"Saved to {ctx.output_path}")
    """

    name = "save"

    def __init__(self, directory: ExportDirectory, role: Role = "pending") -> None:
        """
        Initialize the save step.

        Args:
            directory: Export directory pair
            role: Tree to write into
        """
        self._directory = directory
        self._role = role

    async def execute(
        self,
        ctx: ItemContext,
        emit: Optional[EventEmitter] = None,
    ) -> ItemContext:
        """
        Write the artifact.

        The type directory must already exist; only ExportDirectory
        creates export trees.

        Raises:
            ValueError: If there is nothing to write or the path escapes the tree
            FileNotFoundError: If the export tree or its type directory is missing
            OSError: If the file cannot be written
        """
        if ctx.item is None or ctx.artifact is None:
            raise ValueError("No artifact to save")

        path = self._directory.write_path(self._role, ctx.item.type, ctx.artifact.filename)

        if not path.parent.is_dir():
            raise FileNotFoundError(f"Export directory {path.parent} does not exist")

        # Write content (use asyncio.to_thread to avoid blocking)
        await asyncio.to_thread(
            path.write_text,
            ctx.artifact.render(),
            encoding="utf-8",
        )

        ctx.output_path = path
        logger.debug(f"Saved: {path}")
        return ctx
