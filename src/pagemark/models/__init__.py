"""Data models for pagemark."""

from .batch import BatchStatus, ExportBatch, LastExport, chunk_ids, new_export_id
from .config import (
    AdaptersConfig,
    ExportSettings,
    OutputConfig,
    PageBuilderConfig,
    PagemarkConfig,
    SanitizerConfig,
    SourceConfig,
)
from .content import ContentItem, ExportArtifact, ItemStatus, slugify
from .events import EventEmitter, EventType, ExportEvent

__all__ = [
    # Config
    "PagemarkConfig",
    "SourceConfig",
    "ExportSettings",
    "OutputConfig",
    "SanitizerConfig",
    "AdaptersConfig",
    "PageBuilderConfig",
    # Content
    "ContentItem",
    "ExportArtifact",
    "ItemStatus",
    "slugify",
    # Batches
    "BatchStatus",
    "ExportBatch",
    "LastExport",
    "chunk_ids",
    "new_export_id",
    # Events
    "EventType",
    "ExportEvent",
    "EventEmitter",
]
