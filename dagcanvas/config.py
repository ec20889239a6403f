"""Configuration loading for dagcanvas.

Reads .dagcanvas.toml from the project directory. Supports:
- Zoom step used by the viewport
- Default size of newly created tasks
- Connector margin around task boxes
- Where the canvas state is stored
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

CONFIG_FILENAME = ".dagcanvas.toml"


def check_storage_key(key: str) -> None:
    """Storage keys become file names, so they must be plain names."""
    if not isinstance(key, str) or not key or "/" in key or "\\" in key or key.startswith("."):
        raise ValueError(f"Invalid storage key: {key!r}")


@dataclass
class CanvasConfig:
    """dagcanvas configuration."""

    # Fraction of the current scale removed per zoom-out step
    zoom_step: float = 0.1

    # Size of a freshly created task box, in world units
    task_width: float = 220.0
    task_height: float = 160.0

    # Boxes are grown by this much before routing connectors
    edge_margin: float = 7.0

    # Persistence
    storage_key: str = "dag-db"
    storage_dir: str = ".dagcanvas"

    # Project path
    project_path: Path = field(default_factory=lambda: Path("."))

    @property
    def storage_path(self) -> Path:
        """Directory holding the persisted canvas state."""
        return self.project_path / self.storage_dir


def load_config(project_path: Path | None = None) -> CanvasConfig:
    """Load configuration from .dagcanvas.toml in the project directory.

    Falls back to defaults if no config file exists.
    """
    path = project_path or Path(".")
    config_file = path / CONFIG_FILENAME

    if not config_file.exists():
        return CanvasConfig(project_path=path)

    with open(config_file, "rb") as f:
        raw = tomllib.load(f)

    return _parse_config(raw, path)


def _parse_config(raw: dict[str, Any], project_path: Path) -> CanvasConfig:
    """Parse raw TOML dict into CanvasConfig."""
    config = CanvasConfig(project_path=project_path)

    # [view]
    view_data = raw.get("view", {})
    config.zoom_step = float(view_data.get("zoom_step", config.zoom_step))
    if not 0 < config.zoom_step < 1:
        raise ValueError(f"view.zoom_step must be in (0, 1), got {config.zoom_step}")

    # [tasks]
    task_data = raw.get("tasks", {})
    config.task_width = float(task_data.get("width", config.task_width))
    config.task_height = float(task_data.get("height", config.task_height))

    # [edges]
    edge_data = raw.get("edges", {})
    config.edge_margin = float(edge_data.get("margin", config.edge_margin))

    # [storage]
    storage_data = raw.get("storage", {})
    config.storage_key = storage_data.get("key", config.storage_key)
    check_storage_key(config.storage_key)
    config.storage_dir = storage_data.get("dir", config.storage_dir)

    return config
