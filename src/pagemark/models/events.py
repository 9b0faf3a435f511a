"""Event types emitted while exporting."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Callable, Optional


class EventType(str, Enum):
    """Types of events emitted during export operations."""

    # Batch lifecycle
    STARTED = "started"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    # Chunk processing
    CHUNK_SCHEDULED = "chunk_scheduled"
    CHUNK_COMPLETED = "chunk_completed"

    # Per item
    ITEM_EXPORTED = "item_exported"
    ITEM_FAILED = "item_failed"

    # Publication
    DIRECTORY_SWAPPED = "directory_swapped"


@dataclass
class ExportEvent:
    """
    Event emitted during export operations.

    Example:
        def on_event(event: ExportEvent) -> None:
            if event.type == EventType.ITEM_FAILED:
                print(f"Failed: {event.item_id} - {event.error}")

        await orchestrator.run(emit=on_event)
    """

    type: EventType

    # Timestamp (always UTC)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    export_id: Optional[str] = None
    item_id: Optional[int] = None
    message: Optional[str] = None
    error: Optional[str] = None

    # Progress tracking
    current: Optional[int] = None
    total: Optional[int] = None

    output_path: Optional[Path] = None

    @property
    def progress_percent(self) -> Optional[float]:
        """Calculate progress percentage if current and total are set."""
        if self.current is not None and self.total and self.total > 0:
            return (self.current / self.total) * 100
        return None

    @property
    def is_error(self) -> bool:
        """Check if this is an error event."""
        return self.type in (EventType.FAILED, EventType.ITEM_FAILED)


# Type alias for event emitter function
EventEmitter = Callable[[ExportEvent], None]
