"""Content sources for pagemark."""

from .directory_store import DirectoryContentStore, ItemRecord, ModuleRecord
from .protocols import ContentStore

__all__ = ["ContentStore", "DirectoryContentStore", "ItemRecord", "ModuleRecord"]
