"""Tests for canvas persistence."""

import pytest

from dagcanvas.storage import (
    FileStore,
    KeyValueStore,
    MemoryStore,
    export_graph,
    import_graph,
    load_graph,
    save_graph,
)
from dagcanvas.task_graph import SnapshotError, TaskGraph, TaskStatus


def test_stores_satisfy_protocol(tmp_path):
    assert isinstance(MemoryStore(), KeyValueStore)
    assert isinstance(FileStore(tmp_path), KeyValueStore)


def test_load_empty_store_gives_empty_graph():
    graph = load_graph(MemoryStore())
    assert len(graph) == 0
    assert graph.next_task_id == 1


def test_memory_roundtrip(abc_graph):
    store = MemoryStore()
    abc_graph.add_or_remove_dependency(1, 3)
    abc_graph.toggle_completion(1)
    save_graph(store, abc_graph)
    assert "dag-db" in store

    restored = load_graph(store)
    assert restored.get_task(3).dependencies == [1]
    assert restored.get_task(1).status == TaskStatus.COMPLETED
    assert restored.next_task_id == 4


def test_file_store_roundtrip(tmp_path, sample_task_graph):
    store = FileStore(tmp_path / "state")
    save_graph(store, sample_task_graph, key="board")
    assert (tmp_path / "state" / "board.json").exists()

    restored = load_graph(store, key="board")
    assert len(restored) == 4
    assert restored.levels() == sample_task_graph.levels()


def test_file_store_rejects_path_keys(tmp_path):
    store = FileStore(tmp_path)
    with pytest.raises(ValueError, match="Invalid storage key"):
        store.write("../escape", "{}")


def test_malformed_snapshot_fails_loudly():
    store = MemoryStore()
    store.write("dag-db", '{"tasks": "nope"}')
    with pytest.raises(SnapshotError):
        load_graph(store)


def test_export_import(tmp_path, sample_task_graph):
    path = tmp_path / "export.json"
    export_graph(sample_task_graph, path)
    restored = import_graph(path)
    assert isinstance(restored, TaskGraph)
    assert restored.edges() == sample_task_graph.edges()


def test_non_utf8_file_raises_snapshot_error(tmp_path):
    (tmp_path / "dag-db.json").write_bytes(b"\xff\xfe{")
    with pytest.raises(SnapshotError, match="UTF-8"):
        load_graph(FileStore(tmp_path))


def test_import_non_utf8_raises_snapshot_error(tmp_path):
    path = tmp_path / "canvas.json"
    path.write_bytes(b"\xff\xfe{")
    with pytest.raises(SnapshotError, match="UTF-8"):
        import_graph(path)
