"""Persistence for the canvas state.

The whole canvas (tasks, id counter, view matrix) is stored as a single
JSON string under one key of a key-value store. Provides:
- KeyValueStore protocol with in-memory and file-backed implementations
- save_graph / load_graph against a store
- export_graph / import_graph for standalone JSON files
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

from .config import CanvasConfig, check_storage_key
from .events import EventBus
from .task_graph import SnapshotError, TaskGraph

logger = logging.getLogger(__name__)

DEFAULT_KEY = "dag-db"


@runtime_checkable
class KeyValueStore(Protocol):
    """Opaque string storage keyed by name."""

    def read(self, key: str) -> str | None:
        ...

    def write(self, key: str, value: str) -> None:
        ...


class MemoryStore:
    """Dict-backed store, mostly for tests and embedding."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def read(self, key: str) -> str | None:
        return self._data.get(key)

    def write(self, key: str, value: str) -> None:
        self._data[key] = value

    def __contains__(self, key: str) -> bool:
        return key in self._data


class FileStore:
    """Stores each key as ``<directory>/<key>.json``."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        check_storage_key(key)
        return self.directory / f"{key}.json"

    def read(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def write(self, key: str, value: str) -> None:
        path = self._path(key)
        self.directory.mkdir(parents=True, exist_ok=True)
        # Write then rename so a crash never leaves a truncated snapshot
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(value, encoding="utf-8")
        tmp.replace(path)


def save_graph(store: KeyValueStore, graph: TaskGraph, key: str = DEFAULT_KEY) -> None:
    """Write the graph snapshot under ``key``."""
    store.write(key, graph.to_json())
    logger.debug("Saved %d tasks under '%s'", len(graph), key)


def load_graph(
    store: KeyValueStore,
    key: str = DEFAULT_KEY,
    *,
    config: CanvasConfig | None = None,
    event_bus: EventBus | None = None,
) -> TaskGraph:
    """Load the graph stored under ``key``.

    Returns an empty graph when nothing is stored yet. A malformed
    snapshot raises SnapshotError.
    """
    try:
        raw = store.read(key)
        if raw is None:
            logger.debug("No canvas stored under '%s', starting empty", key)
            return TaskGraph(config=config, event_bus=event_bus)
        return TaskGraph.from_json(raw, config=config, event_bus=event_bus)
    except UnicodeDecodeError as e:
        logger.warning("Canvas stored under '%s' is not UTF-8", key)
        raise SnapshotError(f"Canvas snapshot is not valid UTF-8: {e}") from e
    except SnapshotError:
        logger.warning("Failed to load canvas from '%s'", key, exc_info=True)
        raise


def open_project_store(config: CanvasConfig) -> FileStore:
    """The file store configured for a project directory."""
    return FileStore(config.storage_path)


def export_graph(graph: TaskGraph, path: Path) -> None:
    """Write the graph snapshot to a standalone JSON file."""
    Path(path).write_text(graph.to_json(), encoding="utf-8")


def import_graph(
    path: Path,
    *,
    config: CanvasConfig | None = None,
    event_bus: EventBus | None = None,
) -> TaskGraph:
    """Read a graph snapshot from a standalone JSON file."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise SnapshotError(f"{path} is not valid UTF-8: {e}") from e
    return TaskGraph.from_json(text, config=config, event_bus=event_bus)
