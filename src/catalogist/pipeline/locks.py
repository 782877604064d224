"""Per-series serialization."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager


class SeriesLocks:
    """One lock per series id, created on first use.

    Work on different series runs in parallel; work on the same series is
    serialized. Hold a lock only around the decision and its store write.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def get(self, series_id: str) -> threading.Lock:
        """Get the lock for a series."""
        with self._guard:
            lock = self._locks.get(series_id)
            if lock is None:
                lock = self._locks[series_id] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, series_id: str) -> Iterator[None]:
        """Hold the lock for a series for the duration of the block."""
        lock = self.get(series_id)
        with lock:
            yield

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
