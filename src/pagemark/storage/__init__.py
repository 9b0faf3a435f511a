"""Export output trees and status persistence."""

from .export_directory import ExportDirectory, ExportedFile
from .status_store import JsonStatusStore, MemoryStatusStore, StatusStore, open_status_store

__all__ = [
    "ExportDirectory",
    "ExportedFile",
    "StatusStore",
    "JsonStatusStore",
    "MemoryStatusStore",
    "open_status_store",
]
