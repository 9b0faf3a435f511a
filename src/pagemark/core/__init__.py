"""Export orchestration."""

from .exporter import CHUNK_TASK, ExportOrchestrator, run_export_blocking

__all__ = ["CHUNK_TASK", "ExportOrchestrator", "run_export_blocking"]
