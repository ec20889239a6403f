"""Shared test fixtures for dagcanvas tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from dagcanvas.config import CanvasConfig
from dagcanvas.events import EventBus
from dagcanvas.task_graph import Task, TaskGraph


@pytest.fixture
def event_bus() -> EventBus:
    """Create a test event bus."""
    return EventBus()


@pytest.fixture
def graph(event_bus: EventBus) -> TaskGraph:
    """An empty graph with an identity view."""
    return TaskGraph(event_bus=event_bus)


@pytest.fixture
def abc_graph(graph: TaskGraph) -> TaskGraph:
    """Three unconnected tasks A=1, B=2, C=3 laid out left to right."""
    for x in (0, 300, 600):
        graph.create_task((x, 0))
    return graph


@pytest.fixture
def sample_task_graph() -> TaskGraph:
    """A diamond: 2 and 3 depend on 1, 4 depends on 2 and 3."""
    tasks = [
        Task(task_id=1, title="Project setup", at=(0.0, 0.0)),
        Task(task_id=2, title="Database models", at=(300.0, -200.0), dependencies=[1]),
        Task(task_id=3, title="API routes", at=(300.0, 200.0), dependencies=[1]),
        Task(task_id=4, title="Frontend", at=(600.0, 0.0), dependencies=[2, 3]),
    ]
    return TaskGraph(tasks)


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """A project directory with a small config file."""
    (tmp_path / ".dagcanvas.toml").write_text(
        "[tasks]\nwidth = 100\nheight = 50\n"
    )
    return tmp_path


@pytest.fixture
def config(tmp_path: Path) -> CanvasConfig:
    """Create a test configuration."""
    return CanvasConfig(project_path=tmp_path)
