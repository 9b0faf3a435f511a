"""Persistence for batch status records."""

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional, Protocol

logger = logging.getLogger(__name__)


class StatusStore(Protocol):
    """
    Protocol for a small key-value store of JSON-compatible values.

    keys() returns keys in the order they were first set.
    """

    def get(self, key: str, default: Any = None) -> Any:
        ...

    def set(self, key: str, value: Any) -> None:
        ...

    def delete(self, key: str) -> None:
        ...

    def keys(self, prefix: str = "") -> list[str]:
        ...

    def reload(self) -> None:
        """Pick up writes made by other processes."""
        ...


class MemoryStatusStore:
    """In-process status store, used for one-shot runs and tests."""

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self, prefix: str = "") -> list[str]:
        return [key for key in self._data if key.startswith(prefix)]

    def reload(self) -> None:
        pass


class JsonStatusStore:
    """Status store kept in a single JSON file.

    Every write replaces the file atomically (temporary file + rename), so a
    crash mid-write leaves the previous state readable.

    Example:
        store = JsonStatusStore(Path(".pagemark/status.json"))
        store.set("current_export_id", "export_ab12")
        store.get("current_export_id")
    """

    def __init__(self, path: Path):
        """Initialize the store.

        Args:
            path: JSON file holding all keys
        """
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._data: dict[str, Any] = self._load()

    def _load(self) -> dict[str, Any]:
        """Load state from disk."""
        if self.path.exists():
            try:
                with open(self.path, encoding="utf-8") as f:
                    data = json.load(f)
                if isinstance(data, dict):
                    return data
                logger.warning(f"Ignoring status file {self.path}: not a JSON object")
            except (OSError, ValueError) as e:
                logger.warning(f"Could not load status file {self.path}: {e}")

        return {}

    def _save(self) -> None:
        tmp_path = self.path.with_name(f"{self.path.name}.tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(self._data, f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, self.path)

    def reload(self) -> None:
        """Re-read the file, picking up writes from other processes."""
        self._data = self._load()

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._save()

    def delete(self, key: str) -> None:
        if key in self._data:
            del self._data[key]
            self._save()

    def keys(self, prefix: str = "") -> list[str]:
        return [key for key in self._data if key.startswith(prefix)]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __repr__(self) -> str:
        return f"JsonStatusStore({str(self.path)!r})"


def open_status_store(state_dir: Optional[Path]) -> StatusStore:
    """JSON store under state_dir, or an in-memory store when state_dir is None."""
    if state_dir is None:
        return MemoryStatusStore()
    return JsonStatusStore(Path(state_dir) / "status.json")
