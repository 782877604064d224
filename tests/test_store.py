"""Tests for the key-value store module."""

import json
import tempfile
import threading
from pathlib import Path

import pytest

from catalogist.errors import StoreError
from catalogist.store import JsonFileStore, KeyValueStore, MemoryStore, StoreStats


class TestStoreStats:
    """Tests for StoreStats dataclass."""

    def test_total_size_kb(self) -> None:
        """Test total_size_kb conversion."""
        stats = StoreStats(total_entries=3, total_size_bytes=10 * 1024)
        assert stats.total_size_kb == 10.0


class TestMemoryStore:
    """Tests for MemoryStore operations."""

    def test_protocol(self) -> None:
        """Test that MemoryStore satisfies the store protocol."""
        assert isinstance(MemoryStore(), KeyValueStore)

    def test_put_and_get(self) -> None:
        """Test storing and reading a record."""
        store = MemoryStore()

        assert store.put("entities", "a", {"title": "Show"}) is True
        assert store.get("entities", "a") == {"title": "Show"}
        assert store.get("entities", "missing") is None
        assert store.get("nope", "a") is None

    def test_put_same_value_is_no_change(self) -> None:
        """Test that writing an equal record reports no change."""
        store = MemoryStore()
        store.put("entities", "a", {"title": "Show"})

        assert store.put("entities", "a", {"title": "Show"}) is False
        assert store.change_count == 1

    def test_get_returns_copy(self) -> None:
        """Test that mutating a read record does not touch the store."""
        store = MemoryStore()
        store.put("entities", "a", {"tags": ["x"]})

        record = store.get("entities", "a")
        assert record is not None
        record["tags"].append("y")

        assert store.get("entities", "a") == {"tags": ["x"]}

    def test_delete(self) -> None:
        """Test deleting records."""
        store = MemoryStore()
        store.put("entities", "a", {})

        assert store.delete("entities", "a") is True
        assert store.delete("entities", "a") is False
        assert store.delete("other", "a") is False

    def test_scan_prefix_sorted(self) -> None:
        """Test prefix scans return keys in order."""
        store = MemoryStore()
        store.put("expected", "s1/S01E02", {"n": 2})
        store.put("expected", "s1/S01E01", {"n": 1})
        store.put("expected", "s2/S01E01", {"n": 3})

        keys = [key for key, _ in store.scan("expected", "s1/")]

        assert keys == ["s1/S01E01", "s1/S01E02"]

    def test_clear_namespace(self) -> None:
        """Test clearing one namespace or everything."""
        store = MemoryStore()
        store.put("a", "1", {})
        store.put("a", "2", {})
        store.put("b", "1", {})

        assert store.clear("a") == 2
        assert store.stats().namespaces == {"b": 1}
        assert store.clear() == 1
        assert store.stats().total_entries == 0


class TestTransactions:
    """Tests for DictStore.transaction."""

    def test_commit(self) -> None:
        """Test that writes inside a transaction are kept."""
        store = MemoryStore()

        with store.transaction():
            store.put("a", "1", {"v": 1})
            store.put("a", "2", {"v": 2})

        assert store.stats().total_entries == 2
        assert store.change_count == 2

    def test_rollback_on_error(self) -> None:
        """Test that a failing transaction leaves no trace."""
        store = MemoryStore()
        store.put("a", "keep", {"v": 0})

        with pytest.raises(RuntimeError):
            with store.transaction():
                store.put("a", "new", {"v": 1})
                store.delete("a", "keep")
                raise RuntimeError("boom")

        assert store.get("a", "keep") == {"v": 0}
        assert store.get("a", "new") is None
        assert store.change_count == 1

    def test_nested_joins_outer(self) -> None:
        """Test that an inner transaction rolls back with the outer one."""
        store = MemoryStore()

        with pytest.raises(ValueError):
            with store.transaction():
                with store.transaction():
                    store.put("a", "inner", {})
                raise ValueError("outer fails")

        assert store.get("a", "inner") is None

    def test_rollback_restores_overwritten_and_cleared(self) -> None:
        """Test that rollback restores first values and cleared namespaces only."""
        store = MemoryStore()
        store.put("a", "1", {"v": 1})
        store.put("b", "1", {"v": 1})

        with pytest.raises(RuntimeError):
            with store.transaction():
                store.put("a", "1", {"v": 2})
                store.put("a", "1", {"v": 3})
                store.clear("b")
                raise RuntimeError("boom")

        assert store.get("a", "1") == {"v": 1}
        assert store.get("b", "1") == {"v": 1}
        assert store.change_count == 2

    def test_untouched_records_survive_rollback(self) -> None:
        """Test that rollback only reverts keys written in the block."""
        store = MemoryStore()
        for n in range(100):
            store.put("a", str(n), {"v": n})

        with pytest.raises(RuntimeError):
            with store.transaction():
                store.delete("a", "5")
                raise RuntimeError("boom")

        assert store.stats().total_entries == 100
        assert store.get("a", "5") == {"v": 5}
        assert store._undo == {}

    def test_concurrent_writers(self) -> None:
        """Test that read-modify-write inside transactions never loses updates."""
        store = MemoryStore()
        store.put("counters", "n", {"value": 0})

        def bump() -> None:
            for _ in range(50):
                with store.transaction():
                    current = store.get("counters", "n")
                    assert current is not None
                    store.put("counters", "n", {"value": current["value"] + 1})

        threads = [threading.Thread(target=bump) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert store.get("counters", "n") == {"value": 200}


class TestJsonFileStore:
    """Tests for the single-file JSON store."""

    def test_missing_file_is_empty(self) -> None:
        """Test that a store without a file starts empty."""
        with tempfile.TemporaryDirectory() as tmpdir:
            store = JsonFileStore(Path(tmpdir) / "store.json")

            assert store.get("entities", "a") is None
            assert store.stats().total_entries == 0

    def test_flush_and_reload(self) -> None:
        """Test that flushed records are visible to a new store."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "store.json"
            store = JsonFileStore(path, auto_save_threshold=0)
            store.put("entities", "a", {"title": "Show"})

            assert store.pending_changes == 1
            assert not path.exists()

            store.flush()

            assert store.pending_changes == 0
            data = json.loads(path.read_text(encoding="utf-8"))
            assert data["_meta"]["version"] == 1
            assert data["entries"]["entities"]["a"] == {"title": "Show"}

            reloaded = JsonFileStore(path)
            assert reloaded.get("entities", "a") == {"title": "Show"}

    def test_auto_save_threshold(self) -> None:
        """Test that saves happen every threshold changes."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "store.json"
            store = JsonFileStore(path, auto_save_threshold=2)

            store.put("a", "1", {})
            assert not path.exists()
            store.put("a", "2", {})
            assert path.exists()
            assert store.pending_changes == 0

    def test_transaction_counts_once_committed(self) -> None:
        """Test that a rolled back transaction leaves nothing pending."""
        with tempfile.TemporaryDirectory() as tmpdir:
            store = JsonFileStore(Path(tmpdir) / "store.json", auto_save_threshold=0)

            with pytest.raises(KeyError):
                with store.transaction():
                    store.put("a", "1", {})
                    raise KeyError("x")

            assert store.pending_changes == 0
            assert store.get("a", "1") is None

    def test_clear_saves_immediately(self) -> None:
        """Test that clear writes the file at once."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "store.json"
            store = JsonFileStore(path, auto_save_threshold=0)
            store.put("a", "1", {})
            store.flush()

            assert store.clear() == 1

            data = json.loads(path.read_text(encoding="utf-8"))
            assert data["entries"] == {}

    def test_stats_include_file_size(self) -> None:
        """Test that stats report the file size."""
        with tempfile.TemporaryDirectory() as tmpdir:
            store = JsonFileStore(Path(tmpdir) / "store.json", auto_save_threshold=0)
            store.put("a", "1", {"x": "y"})
            store.flush()

            stats = store.stats()

            assert stats.total_entries == 1
            assert stats.namespaces == {"a": 1}
            assert stats.total_size_bytes > 0

    def test_corrupted_file(self) -> None:
        """Test that an unreadable store raises StoreError."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "store.json"
            path.write_text("{not json", encoding="utf-8")
            store = JsonFileStore(path)

            with pytest.raises(StoreError, match="Corrupted"):
                store.get("entities", "a")

    def test_non_object_file(self) -> None:
        """Test that a JSON file that is not an object is rejected."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "store.json"
            path.write_text("[]", encoding="utf-8")

            with pytest.raises(StoreError):
                JsonFileStore(path).stats()

    def test_nested_directory_created(self) -> None:
        """Test that saving creates missing parent directories."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "deep" / "dir" / "store.json"
            store = JsonFileStore(path, auto_save_threshold=1)

            store.put("a", "1", {})

            assert path.exists()
