"""Key-addressed persistence for the catalog."""

from __future__ import annotations

from pathlib import Path

from catalogist.store.base import DictStore, KeyValueStore, StoreStats
from catalogist.store.json_store import JsonFileStore
from catalogist.store.memory import MemoryStore


def open_store(path: Path | None = None, auto_save_threshold: int | None = None) -> JsonFileStore:
    """Open the configured JSON store.

    Args:
        path: Store file; defaults to the configured location.
        auto_save_threshold: Overrides the configured save batching.

    Returns:
        JsonFileStore (not yet loaded; the file is read on first access).
    """
    from catalogist.config import get_config, get_store_file_path

    config = get_config()
    if path is None:
        path = get_store_file_path(config)
    if auto_save_threshold is None:
        auto_save_threshold = config.store.auto_save_threshold
    return JsonFileStore(path, auto_save_threshold=auto_save_threshold)


__all__ = [
    "KeyValueStore",
    "DictStore",
    "StoreStats",
    "MemoryStore",
    "JsonFileStore",
    "open_store",
]
