"""Base classes for the per-item export pipeline."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol, runtime_checkable

from ..models.content import ContentItem, ExportArtifact
from ..models.events import EventEmitter, EventType, ExportEvent


@dataclass
class ItemContext:
    """
    Context object passed through pipeline steps.

    Contains all state for exporting a single item, accumulated
    as it moves through the pipeline.

    Attributes:
        item_id: Id of the item being exported
        export_id: Batch this export belongs to, if any
        item: Snapshot loaded from the content store
        html: Working HTML (adapter output, then sanitized)
        markdown: Converted Markdown body
        artifact: Assembled file (front matter, title, body)
        output_path: Where the artifact was written
        error: Error message if an exception occurred
    """

    item_id: int
    export_id: Optional[str] = None

    # Content (accumulated through pipeline)
    item: Optional[ContentItem] = None
    html: Optional[str] = None
    markdown: Optional[str] = None
    artifact: Optional[ExportArtifact] = None

    # Result
    output_path: Optional[Path] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.output_path is not None


@runtime_checkable
class ExportStep(Protocol):
    """
    Protocol for pipeline steps.

    Each step receives an ItemContext, processes it, and returns
    the (possibly modified) context.

    Error Handling Contract:
    - For failures: raise an exception
    - The pipeline will catch exceptions and set ctx.error

    Example implementation:
        class UppercaseTitleStep:
            name = "uppercase_title"

            async def execute(
                self,
                ctx: ItemContext,
                emit: Optional[EventEmitter] = None
            ) -> ItemContext:
                ctx.item = dataclasses.replace(ctx.item, title=ctx.item.title.upper())
                return ctx
    """

    name: str

    async def execute(
        self,
        ctx: ItemContext,
        emit: Optional[EventEmitter] = None,
    ) -> ItemContext:
        """
        Execute this pipeline step.

        Args:
            ctx: The item context with accumulated state
            emit: Optional callback to emit events

        Returns:
            The (possibly modified) item context
        """
        ...


@dataclass
class ExportPipeline:
    """
    Pipeline for exporting a single item through multiple steps.

    Steps are executed in order. If a step raises an exception, the
    error is captured in ctx.error and processing stops.

    Example:
        pipeline = ExportPipeline(steps=[
            LoadStep(store),
            InjectStep(registry),
            SanitizeStep(sanitizer),
            ConvertStep(converter),
            SaveStep(directory),
        ])

        ctx = await pipeline.execute(43, emit=log_event)
        if ctx.error:
            logger.error(f"Failed: {ctx.error}")
        else:
            logger.info(f"Saved: {ctx.output_path}")
    """

    steps: list[ExportStep]

    async def execute(
        self,
        item_id: int,
        emit: Optional[EventEmitter] = None,
        export_id: Optional[str] = None,
    ) -> ItemContext:
        """
        Execute the pipeline for an item.

        Args:
            item_id: The item to export
            emit: Optional callback for emitting events
            export_id: Batch the item belongs to

        Returns:
            ItemContext with final state (check error for status)
        """
        ctx = ItemContext(item_id=item_id, export_id=export_id)

        for step in self.steps:
            try:
                ctx = await step.execute(ctx, emit)
            except Exception as e:
                ctx.error = f"{step.name}: {e}"

                if emit:
                    emit(
                        ExportEvent(
                            type=EventType.ITEM_FAILED,
                            export_id=export_id,
                            item_id=item_id,
                            error=ctx.error,
                        )
                    )
                break

        return ctx

    def add_step(self, step: ExportStep) -> "ExportPipeline":
        """
        Add a step to the pipeline (fluent API).

        Args:
            step: The step to add

        Returns:
            Self for chaining
        """
        self.steps.append(step)
        return self
