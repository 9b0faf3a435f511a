"""Export orchestration: immediate and chunked background batches."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Any, Optional, Union

from ..context import AppContext
from ..hooks import HookType
from ..models.batch import BatchStatus, ExportBatch, LastExport
from ..models.config import PagemarkConfig
from ..models.content import ItemStatus
from ..models.events import EventEmitter, EventType, ExportEvent
from ..pipeline import ExportPipeline

logger = logging.getLogger(__name__)

STATUS_PREFIX = "export_status_"
CURRENT_EXPORT_KEY = "current_export_id"
LAST_EXPORT_KEY = "last_export"
COMPLETION_FLAG_KEY = "export_completed_flag"

CHUNK_TASK = "process_export_chunk"


class ExportOrchestrator:
    """
    Runs export batches and publishes their output.

    Every batch writes into the pending tree and publishes it with one
    directory swap, so the live tree only ever holds a complete export.
    Immediate batches run in one call. Background batches are split into
    chunks; each chunk is a separate invocation scheduled through the
    context's scheduler and driven by tick().

    Example:
        orchestrator = ExportOrchestrator(AppContext.from_config(config))

        count = await orchestrator.run()

        started = await orchestrator.run(background=True)
        while orchestrator.get_status():
            await orchestrator.tick()
    """

    def __init__(self, context: AppContext, emit: Optional[EventEmitter] = None):
        """
        Initialize the orchestrator.

        Args:
            context: Wired collaborators and configuration
            emit: Optional callback receiving ExportEvents
        """
        self.context = context
        self.settings = context.config.export
        self._emit = emit
        self._pipeline: Optional[ExportPipeline] = None

    @property
    def pipeline(self) -> ExportPipeline:
        if self._pipeline is None:
            self._pipeline = self.context.build_pipeline()
        return self._pipeline

    def _now(self) -> float:
        return self.context.clock()

    def _event(self, event_type: EventType, **kwargs: Any) -> None:
        if self._emit:
            self._emit(ExportEvent(type=event_type, **kwargs))

    # Status records

    @staticmethod
    def _status_key(export_id: str) -> str:
        return f"{STATUS_PREFIX}{export_id}"

    def _load_batch(self, export_id: str) -> Optional[ExportBatch]:
        data = self.context.status.get(self._status_key(export_id))
        if data is None:
            return None
        return ExportBatch.model_validate(data)

    def _save_batch(self, batch: ExportBatch) -> None:
        self.context.status.set(self._status_key(batch.export_id), batch.model_dump(mode="json"))

    def _is_cancelled(self, export_id: str) -> bool:
        self.context.status.reload()
        batch = self._load_batch(export_id)
        return batch is None or batch.status is BatchStatus.CANCELLED

    def _prune_history(self) -> None:
        """Keep only the newest history_limit batch records."""
        status = self.context.status
        current = status.get(CURRENT_EXPORT_KEY)
        keys = [key for key in status.keys(STATUS_PREFIX) if key != self._status_key(current or "")]

        stale = keys[: max(len(keys) - self.settings.history_limit, 0)]
        for key in stale:
            status.delete(key)
        if stale:
            logger.debug(f"Pruned {len(stale)} old export records")

    # Queries

    def resolve_statuses(self) -> list[str]:
        """Publication statuses selected by the include_* settings."""
        statuses = [ItemStatus.PUBLISH.value]
        if self.settings.include_drafts:
            statuses += [ItemStatus.DRAFT.value, ItemStatus.PENDING.value]
        if self.settings.include_private:
            statuses.append(ItemStatus.PRIVATE.value)
        return statuses

    def get_status(self, export_id: Optional[str] = None) -> Optional[ExportBatch]:
        """Record of the given batch, or of the current background batch."""
        export_id = export_id or self.context.status.get(CURRENT_EXPORT_KEY)
        if not export_id:
            return None
        return self._load_batch(export_id)

    def history(self) -> list[ExportBatch]:
        """Retained batch records, oldest first."""
        batches = []
        for key in self.context.status.keys(STATUS_PREFIX):
            batch = self._load_batch(key[len(STATUS_PREFIX) :])
            if batch is not None:
                batches.append(batch)
        return batches

    def get_last_export(self) -> Optional[LastExport]:
        """Summary of the last batch that was published."""
        data = self.context.status.get(LAST_EXPORT_KEY)
        return LastExport.model_validate(data) if data else None

    def pop_completion_flag(self) -> Optional[str]:
        """Return and clear the flag set when a background batch ends."""
        flag = self.context.status.get(COMPLETION_FLAG_KEY)
        if flag is not None:
            self.context.status.delete(COMPLETION_FLAG_KEY)
        return flag

    # Export

    async def export_item(self, item_id: int, export_id: Optional[str] = None) -> bool:
        """
        Export one item into the pending tree.

        Returns:
            True if the file was written; False on a missing item or any
            adapter, conversion or write error
        """
        ctx = await self.pipeline.execute(item_id, self._emit, export_id)

        if ctx.error:
            logger.warning(f"Failed to export item {item_id}: {ctx.error}")
            return False

        logger.debug(f"Exported item {item_id} to {ctx.output_path}")
        self._event(
            EventType.ITEM_EXPORTED,
            export_id=export_id,
            item_id=item_id,
            output_path=ctx.output_path,
        )
        return True

    async def run(
        self,
        item_types: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
        background: bool = False,
    ) -> Union[int, dict[str, Any]]:
        """
        Start an export batch.

        Args:
            item_types: Types to export (defaults to the configured types)
            limit: Maximum number of items (newest first)
            background: Split into scheduled chunks instead of exporting now

        Returns:
            Immediate: number of items exported, or 0 if publishing failed.
            Background: {"status": "started", "export_id", "total_items", "message"}
        """
        types = list(item_types) if item_types else list(self.settings.export_post_types)

        running = self.context.status.get(CURRENT_EXPORT_KEY)
        if running:
            # One pending tree is shared by every batch
            logger.warning(f"Export {running} is still running; cancelling it before starting a new batch")
            self.cancel()

        # Leftovers of an interrupted batch must not be published
        self.context.directory.cleanup_pending()
        self.context.directory.setup_pending(types)

        item_ids = self.context.store.query_item_ids(types, self.resolve_statuses(), limit)
        batch = ExportBatch.start(
            item_ids,
            chunk_size=self.settings.chunk_size,
            item_types=types,
            background=background,
            now=self._now(),
        )

        logger.info(f"Starting {'background' if background else 'immediate'} export of {len(item_ids)} items")
        self._event(
            EventType.STARTED,
            export_id=batch.export_id,
            total=batch.total_items,
            message=f"Exporting {batch.total_items} items",
        )

        if background:
            return self._start_background(batch)
        return await self._run_immediate(batch)

    async def _run_immediate(self, batch: ExportBatch) -> int:
        batch.current_operation = f"Exporting {batch.total_items} items"
        self._save_batch(batch)

        hook_context = {"export_id": batch.export_id, "item_types": batch.item_types, "background": False}
        self.context.hooks.execute_hooks(HookType.BEFORE_EXPORT, hook_context)
        try:
            for chunk in batch.chunks:
                for item_id in chunk:
                    batch.record(await self.export_item(item_id, batch.export_id))
                    batch.update_progress(self._now())
                    self._save_batch(batch)
        finally:
            self.context.hooks.execute_hooks(HookType.AFTER_EXPORT, hook_context)

        if self._finalize(batch):
            return batch.exported
        return 0

    def _start_background(self, batch: ExportBatch) -> dict[str, Any]:
        self._save_batch(batch)
        self.context.status.set(CURRENT_EXPORT_KEY, batch.export_id)

        self.context.scheduler.schedule_once(0, CHUNK_TASK, [batch.export_id, 0])
        self._event(EventType.CHUNK_SCHEDULED, export_id=batch.export_id, current=0, total=batch.chunk_count)

        return {
            "status": "started",
            "export_id": batch.export_id,
            "total_items": batch.total_items,
            "message": f"Background export started for {batch.total_items} items",
        }

    async def process_chunk(self, export_id: str, chunk_index: int) -> None:
        """
        Process one chunk of a background batch.

        Does nothing unless the batch is running and chunk_index is the
        batch's next chunk. An index past the last chunk publishes the
        batch. Counts are saved only once the whole chunk is done, so a
        chunk interrupted by a crash is processed again from its start.
        """
        batch = self._load_batch(export_id)
        if batch is None or not batch.is_running:
            logger.debug(f"Ignoring chunk {chunk_index} of {export_id}: batch not running")
            return

        if chunk_index != batch.next_chunk:
            logger.debug(f"Ignoring chunk {chunk_index} of {export_id}: expected chunk {batch.next_chunk}")
            return

        if chunk_index >= batch.chunk_count:
            self._finalize(batch)
            return

        chunk = batch.chunks[chunk_index]
        batch.current_operation = f"Processing chunk {chunk_index + 1} of {batch.chunk_count} ({len(chunk)} items)"
        self._save_batch(batch)
        logger.info(batch.current_operation)

        hook_context = {
            "export_id": export_id,
            "item_types": batch.item_types,
            "background": True,
            "chunk_index": chunk_index,
        }
        self.context.hooks.execute_hooks(HookType.BEFORE_EXPORT, hook_context)
        try:
            for item_id in chunk:
                if self._is_cancelled(export_id):
                    logger.info(f"Export {export_id} cancelled during chunk {chunk_index + 1}")
                    return
                batch.record(await self.export_item(item_id, export_id))
        finally:
            self.context.hooks.execute_hooks(HookType.AFTER_EXPORT, hook_context)

        if self._is_cancelled(export_id):
            return

        batch.update_progress(self._now())

        # A crash after scheduling leaves a duplicate job, which is skipped
        self.context.scheduler.schedule_once(self.settings.chunk_delay, CHUNK_TASK, [export_id, chunk_index + 1])
        batch.next_chunk = chunk_index + 1
        self._save_batch(batch)

        self._event(
            EventType.CHUNK_COMPLETED,
            export_id=export_id,
            current=batch.processed,
            total=batch.total_items,
            message=batch.current_operation,
        )
        self._event(
            EventType.CHUNK_SCHEDULED,
            export_id=export_id,
            current=chunk_index + 1,
            total=batch.chunk_count,
        )

    def _finalize(self, batch: ExportBatch) -> bool:
        """Publish pending and move the batch into its terminal state."""
        directory = self.context.directory
        status = self.context.status

        published = directory.swap()
        now = self._now()

        if published:
            batch.finish(BatchStatus.COMPLETED, "Export completed successfully", now)
            self._save_batch(batch)
            last = LastExport(
                timestamp=now,
                count=batch.exported,
                item_types=batch.item_types,
                export_id=batch.export_id,
            )
            status.set(LAST_EXPORT_KEY, last.model_dump(mode="json"))
            if batch.background:
                status.set(COMPLETION_FLAG_KEY, BatchStatus.COMPLETED.value)

            logger.info(f"Export {batch.export_id} completed: {batch.exported} exported, {batch.failed} failed")
            self._event(EventType.DIRECTORY_SWAPPED, export_id=batch.export_id, output_path=directory.live)
            self._event(
                EventType.COMPLETED,
                export_id=batch.export_id,
                current=batch.processed,
                total=batch.total_items,
                message=batch.current_operation,
            )
        else:
            batch.finish(BatchStatus.FAILED, "Publishing the export failed", now)
            self._save_batch(batch)
            directory.cleanup_pending()
            if batch.background:
                status.set(COMPLETION_FLAG_KEY, BatchStatus.FAILED.value)

            logger.error(f"Export {batch.export_id} failed: could not publish {directory.pending}")
            self._event(EventType.FAILED, export_id=batch.export_id, error=batch.current_operation)

        if status.get(CURRENT_EXPORT_KEY) == batch.export_id:
            status.delete(CURRENT_EXPORT_KEY)
        self._prune_history()
        return published

    def cancel(self) -> bool:
        """
        Cancel the current background batch.

        Returns:
            False if no batch is current
        """
        status = self.context.status
        export_id = status.get(CURRENT_EXPORT_KEY)
        if not export_id:
            return False

        batch = self._load_batch(export_id)
        if batch is not None and batch.is_running:
            batch.finish(BatchStatus.CANCELLED, "Export cancelled by user", self._now())
            self._save_batch(batch)

        self.context.scheduler.clear(CHUNK_TASK)
        self.context.directory.cleanup_pending()
        status.set(COMPLETION_FLAG_KEY, BatchStatus.CANCELLED.value)
        status.delete(CURRENT_EXPORT_KEY)
        self._prune_history()

        logger.info(f"Export {export_id} cancelled")
        self._event(EventType.CANCELLED, export_id=export_id, message="Export cancelled by user")
        return True

    async def tick(self, now: Optional[float] = None) -> int:
        """
        Run every scheduled chunk that is due.

        A job is removed from the queue only after it ran; if processing
        raises, the job stays queued for the next tick.

        Returns:
            Number of jobs run
        """
        scheduler = self.context.scheduler
        jobs = scheduler.due(now)
        for job in jobs:
            if job.task != CHUNK_TASK:
                logger.warning(f"Ignoring unknown scheduled task: {job.task}")
            else:
                export_id, chunk_index = job.args
                await self.process_chunk(export_id, int(chunk_index))
            scheduler.complete(job)
        return len(jobs)


def run_export_blocking(
    config: PagemarkConfig,
    on_event: Optional[EventEmitter] = None,
    item_types: Optional[Sequence[str]] = None,
    limit: Optional[int] = None,
) -> int:
    """
    Blocking immediate export with optional event callback.

    This is a convenience wrapper for sync code that can't use async/await.
    For async code, use ExportOrchestrator directly.

    WARNING: Do not call from within an existing event loop (e.g., Jupyter,
    asyncio-based frameworks). Use the async API instead.

    Example:
        def print_progress(event):
            if event.type == EventType.ITEM_EXPORTED:
                print(f"Exported {event.item_id}")

        count = run_export_blocking(config, on_event=print_progress)
    """
    # Detect if we're already in an async context
    try:
        asyncio.get_running_loop()
        raise RuntimeError("run_export_blocking() called from async context. Use 'await orchestrator.run()' instead.")
    except RuntimeError as e:
        if "no running event loop" not in str(e).lower():
            raise

    orchestrator = ExportOrchestrator(AppContext.from_config(config), emit=on_event)

    async def _run() -> int:
        result = await orchestrator.run(item_types=item_types, limit=limit)
        assert isinstance(result, int)
        return result

    return asyncio.run(_run())
