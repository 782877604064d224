"""Single-file JSON catalog store.

The whole catalog is stored in one file, `catalogist.store.json` next to
the config file by default, for maximum portability.

File structure:
    {
        "_meta": {
            "version": 1,
            "created_at": "2025-01-25T10:00:00Z"
        },
        "entries": {
            "entities": {
                "3f2a...": {"kind": "series", "title": "Show", ...}
            },
            "expected": {
                "3f2a.../S01E01": {...}
            },
            "mappings": {
                "file:9bc1...": {"mapping": {"shape": "single", ...}}
            }
        }
    }
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from catalogist.errors import StoreError, StoreUnavailableError
from catalogist.store.base import DictStore, StoreStats

# Store file version for future migrations
STORE_VERSION = 1


class JsonFileStore(DictStore):
    """Single-file JSON store.

    The file is loaded on first access and saved periodically or on flush.

    To avoid file system contention (especially on Windows), saves are batched:
    - Changes are accumulated in memory
    - Auto-save triggers every `auto_save_threshold` committed changes
    - Call `flush()` at the end of operations to ensure all changes are saved
    """

    def __init__(self, store_file: Path, auto_save_threshold: int = 100) -> None:
        """Initialize the store.

        Args:
            store_file: Path of the JSON file. Created on first save.
            auto_save_threshold: Number of changes before auto-saving to disk.
                Set to 0 to disable auto-save (manual flush only).
        """
        super().__init__()
        self.store_file = store_file
        self.auto_save_threshold = auto_save_threshold
        self._data: dict[str, Any] | None = None
        self._dirty_count: int = 0

    def _load(self) -> dict[str, Any]:
        """Load store data from disk (lazy loading).

        Raises:
            StoreUnavailableError: If the file exists but cannot be read.
            StoreError: If the file is not a valid store.
        """
        if self._data is not None:
            return self._data

        if not self.store_file.exists():
            self._data = self._empty_store()
            return self._data

        try:
            with open(self.store_file, encoding="utf-8") as f:
                data = json.load(f)
        except OSError as e:
            raise StoreUnavailableError(f"Cannot read {self.store_file}: {e}") from e
        except json.JSONDecodeError as e:
            raise StoreError(f"Corrupted store file {self.store_file}: {e}") from e

        if not isinstance(data, dict):
            raise StoreError(f"Corrupted store file {self.store_file}: not an object")
        # Ensure required keys exist
        if "entries" not in data:
            data["entries"] = {}
        self._data = data
        return self._data

    def _empty_store(self) -> dict[str, Any]:
        """Create an empty store structure."""
        return {
            "_meta": {
                "version": STORE_VERSION,
                "created_at": datetime.now(UTC).isoformat(),
            },
            "entries": {},
        }

    def _save(self) -> None:
        """Save store data to disk (unconditionally).

        Raises:
            StoreUnavailableError: If the file cannot be written.
        """
        if self._data is None:
            return

        try:
            self.store_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.store_file, "w", encoding="utf-8") as f:
                json.dump(self._data, f, indent=2, default=str)
        except OSError as e:
            raise StoreUnavailableError(f"Cannot write {self.store_file}: {e}") from e

        self._dirty_count = 0

    def _entries(self) -> dict[str, dict[str, Any]]:
        entries: dict[str, dict[str, Any]] = self._load()["entries"]
        return entries

    def _changed(self, count: int) -> None:
        """Count committed changes and maybe auto-save."""
        self._dirty_count += count
        if self.auto_save_threshold > 0 and self._dirty_count >= self.auto_save_threshold:
            self._save()

    def flush(self) -> None:
        """Flush any pending changes to disk.

        Safe to call even if there are no pending changes.
        """
        with self._lock:
            if self._dirty_count > 0:
                self._save()

    @property
    def pending_changes(self) -> int:
        """Number of changes pending save."""
        return self._dirty_count

    def clear(self, namespace: str | None = None) -> int:
        """Clear records and save immediately.

        Args:
            namespace: If provided, only clear this namespace.

        Returns:
            Number of records deleted.
        """
        with self._lock:
            count = super().clear(namespace)
            if count > 0:
                self._save()
            return count

    def stats(self) -> StoreStats:
        """Get record counts and file size."""
        with self._lock:
            stats = super().stats()
            if self.store_file.exists():
                stats.total_size_bytes = self.store_file.stat().st_size
            return stats
