"""In-memory store for tests and one-shot runs."""

from __future__ import annotations

from typing import Any

from catalogist.store.base import DictStore


class MemoryStore(DictStore):
    """Store that keeps everything in process memory."""

    def __init__(self) -> None:
        super().__init__()
        self._data: dict[str, dict[str, Any]] = {}
        self.change_count = 0

    def _entries(self) -> dict[str, dict[str, Any]]:
        return self._data

    def _changed(self, count: int) -> None:
        self.change_count += count
