"""Key-addressed store protocol and the shared in-process implementation.

Records are plain JSON-compatible dicts grouped by namespace:

    {
        "entities": {"<id>": {...}},
        "mappings": {"file:<file_id>": {...}},
        ...
    }

Writes made inside ``transaction()`` are applied together or not at all.
"""

from __future__ import annotations

import copy
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class KeyValueStore(Protocol):
    """Persistence collaborator used by the catalog repository."""

    def get(self, namespace: str, key: str) -> dict[str, Any] | None: ...

    def put(self, namespace: str, key: str, value: dict[str, Any]) -> bool: ...

    def delete(self, namespace: str, key: str) -> bool: ...

    def scan(self, namespace: str, prefix: str = "") -> list[tuple[str, dict[str, Any]]]: ...

    def transaction(self) -> AbstractContextManager[Any]: ...


@dataclass
class StoreStats:
    """Statistics about a store."""

    total_entries: int
    total_size_bytes: int = 0
    namespaces: dict[str, int] = field(default_factory=dict)

    @property
    def total_size_kb(self) -> float:
        """Total size in kilobytes."""
        return self.total_size_bytes / 1024


class DictStore(ABC):
    """Store holding every namespace in one nested dict.

    Subclasses supply loading and persistence; this class supplies the
    key/value operations, locking and transactions. All operations are
    serialized by one re-entrant lock, and a transaction holds it from
    start to commit so concurrent writers never interleave.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._depth = 0
        # Prior value of every key written in the open transaction
        self._undo: dict[tuple[str, str], dict[str, Any] | None] = {}
        self._tx_changes = 0

    @abstractmethod
    def _entries(self) -> dict[str, dict[str, Any]]:
        """Return the live namespace -> key -> record dict."""

    @abstractmethod
    def _changed(self, count: int) -> None:
        """Record that count committed changes happened."""

    def _remember(self, namespace: str, key: str) -> None:
        if self._depth > 0 and (namespace, key) not in self._undo:
            self._undo[(namespace, key)] = self._entries().get(namespace, {}).get(key)

    def _rollback(self) -> None:
        entries = self._entries()
        for (namespace, key), previous in self._undo.items():
            bucket = entries.setdefault(namespace, {})
            if previous is None:
                bucket.pop(key, None)
            else:
                bucket[key] = previous
        self._undo = {}

    def _record_change(self) -> None:
        if self._depth > 0:
            self._tx_changes += 1
        else:
            self._changed(1)

    # =========================================================================
    # Key/value operations
    # =========================================================================

    def get(self, namespace: str, key: str) -> dict[str, Any] | None:
        """Get a record.

        Args:
            namespace: Record namespace (e.g. "entities", "mappings").
            key: Key within the namespace.

        Returns:
            A copy of the stored record, or None if absent.
        """
        with self._lock:
            record = self._entries().get(namespace, {}).get(key)
            return copy.deepcopy(record) if record is not None else None

    def put(self, namespace: str, key: str, value: dict[str, Any]) -> bool:
        """Store a record.

        Args:
            namespace: Record namespace.
            key: Key within the namespace.
            value: JSON-compatible record.

        Returns:
            True if the stored value changed, False if it was already equal.
        """
        with self._lock:
            bucket = self._entries().setdefault(namespace, {})
            if bucket.get(key) == value:
                return False
            self._remember(namespace, key)
            bucket[key] = copy.deepcopy(value)
            self._record_change()
            return True

    def delete(self, namespace: str, key: str) -> bool:
        """Delete a record.

        Returns:
            True if the record was deleted, False if it didn't exist.
        """
        with self._lock:
            bucket = self._entries().get(namespace)
            if not bucket or key not in bucket:
                return False
            self._remember(namespace, key)
            del bucket[key]
            self._record_change()
            return True

    def scan(self, namespace: str, prefix: str = "") -> list[tuple[str, dict[str, Any]]]:
        """List records in a namespace, sorted by key.

        Args:
            namespace: Record namespace.
            prefix: Only keys starting with this prefix.

        Returns:
            List of (key, record copy) tuples.
        """
        with self._lock:
            bucket = self._entries().get(namespace, {})
            return [
                (key, copy.deepcopy(record))
                for key, record in sorted(bucket.items())
                if key.startswith(prefix)
            ]

    @contextmanager
    def transaction(self) -> Iterator[DictStore]:
        """Group writes so they are applied together or not at all.

        Nested transactions join the outermost one. If the block raises,
        every write made inside it is rolled back and the error propagates.

        Example:
            ```python
            with store.transaction():
                store.delete("mappings", old_key)
                store.put("mappings", new_key, record)
            ```
        """
        with self._lock:
            outermost = self._depth == 0
            if outermost:
                self._undo = {}
                self._tx_changes = 0
            self._depth += 1
            try:
                yield self
            except BaseException:
                self._depth -= 1
                if outermost:
                    self._rollback()
                    self._tx_changes = 0
                raise
            self._depth -= 1
            if outermost:
                self._undo = {}
                changes, self._tx_changes = self._tx_changes, 0
                if changes:
                    self._changed(changes)

    # =========================================================================
    # Maintenance
    # =========================================================================

    def clear(self, namespace: str | None = None) -> int:
        """Clear records.

        Args:
            namespace: If provided, only clear this namespace.

        Returns:
            Number of records deleted.
        """
        with self._lock:
            entries = self._entries()
            for ns in [namespace] if namespace else list(entries):
                for key in entries.get(ns, {}):
                    self._remember(ns, key)
            if namespace:
                count = len(entries.pop(namespace, {}))
            else:
                count = sum(len(bucket) for bucket in entries.values())
                entries.clear()
            if count and self._depth > 0:
                self._tx_changes += count
            elif count:
                self._changed(count)
            return count

    def stats(self) -> StoreStats:
        """Get record counts per namespace."""
        with self._lock:
            namespaces = {ns: len(bucket) for ns, bucket in sorted(self._entries().items())}
            return StoreStats(total_entries=sum(namespaces.values()), namespaces=namespaces)

    def flush(self) -> None:
        """Persist pending changes (no-op for stores without a backing file)."""
