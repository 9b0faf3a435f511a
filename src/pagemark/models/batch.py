"""Persistent export batch records."""

from __future__ import annotations

import time
import uuid
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class BatchStatus(str, Enum):
    """Lifecycle states of an export batch."""

    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not BatchStatus.RUNNING


def new_export_id() -> str:
    """Unique identifier for one orchestration run."""
    return f"export_{uuid.uuid4().hex}"


def chunk_ids(item_ids: list[int], chunk_size: int) -> list[list[int]]:
    """Split ids into consecutive chunks of at most chunk_size (ceil(N/C) chunks)."""
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    return [item_ids[i : i + chunk_size] for i in range(0, len(item_ids), chunk_size)]


class ExportBatch(BaseModel):
    """
    State of one export run, persisted between chunk invocations.

    A batch starts as RUNNING and reaches exactly one terminal state.

    Example:
        batch = ExportBatch.start([1, 2, 3], chunk_size=50, item_types=["post"])
        batch.record(True)
        batch.finish(BatchStatus.COMPLETED, "Export completed successfully")
    """

    export_id: str = Field(default_factory=new_export_id)
    status: BatchStatus = BatchStatus.RUNNING
    background: bool = False
    item_types: list[str] = Field(default_factory=list)

    total_items: int = 0
    processed: int = 0
    exported: int = 0
    failed: int = 0
    progress_percentage: float = 0.0
    chunks: list[list[int]] = Field(default_factory=list)
    next_chunk: int = 0

    started_at: float = Field(default_factory=time.time)
    completed_at: Optional[float] = None
    cancelled_at: Optional[float] = None
    estimated_completion: Optional[float] = None
    current_operation: str = "Starting export..."

    @classmethod
    def start(
        cls,
        item_ids: list[int],
        chunk_size: int,
        item_types: list[str],
        background: bool = False,
        now: Optional[float] = None,
    ) -> "ExportBatch":
        """Create a running batch for the given ids."""
        return cls(
            background=background,
            item_types=list(item_types),
            total_items=len(item_ids),
            chunks=chunk_ids(list(item_ids), chunk_size),
            started_at=time.time() if now is None else now,
        )

    @property
    def is_running(self) -> bool:
        return self.status is BatchStatus.RUNNING

    @property
    def chunk_count(self) -> int:
        return len(self.chunks)

    def record(self, success: bool) -> None:
        """Count one processed item."""
        self.processed += 1
        if success:
            self.exported += 1
        else:
            self.failed += 1

    def update_progress(self, now: Optional[float] = None) -> None:
        """Recompute progress percentage and projected completion time."""
        now = time.time() if now is None else now
        if self.total_items > 0:
            self.progress_percentage = round(self.processed / self.total_items * 100, 2)
        else:
            self.progress_percentage = 100.0

        if self.processed > 0:
            elapsed = now - self.started_at
            if elapsed > 0:
                items_per_second = self.processed / elapsed
                remaining = self.total_items - self.processed
                self.estimated_completion = now + remaining / items_per_second

    def finish(self, status: BatchStatus, message: str, now: Optional[float] = None) -> None:
        """Move the batch into a terminal state; a terminal batch cannot move again."""
        if not status.is_terminal:
            raise ValueError(f"{status.value} is not a terminal status")
        if self.status.is_terminal:
            raise ValueError(f"Batch {self.export_id} already {self.status.value}")

        now = time.time() if now is None else now
        self.status = status
        self.current_operation = message
        if status is BatchStatus.CANCELLED:
            self.cancelled_at = now
        else:
            self.completed_at = now
        if status is BatchStatus.COMPLETED:
            self.progress_percentage = 100.0


class LastExport(BaseModel):
    """Summary of the last batch whose output was published."""

    timestamp: float
    count: int
    item_types: list[str] = Field(default_factory=list)
    export_id: Optional[str] = None
