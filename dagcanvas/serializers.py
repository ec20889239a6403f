"""JSON serializers for the canvas UI.

Convert internal objects (CanvasEvent, Task, TaskGraph) into JSON-safe
dicts a rendering layer can consume directly.
"""

from __future__ import annotations

from typing import Any

from .events import CanvasEvent, EventBus
from .routing import Connector
from .task_graph import Task, TaskGraph


def serialize_event(event: CanvasEvent) -> dict[str, Any]:
    """Serialize a CanvasEvent to a JSON-safe dict."""
    return {
        "event_type": event.event_type.value,
        "task_id": event.task_id,
        "data": _safe_data(event.data),
        "timestamp": event.timestamp,
    }


def serialize_task(task: Task, level: int | None = None) -> dict[str, Any]:
    """Serialize a Task for drawing its box."""
    return {
        "task_id": task.task_id,
        "title": task.title,
        "description": task.description,
        "at": list(task.at),
        "width": task.width,
        "height": task.height,
        "status": task.status.value,
        "dependencies": list(task.dependencies),
        "level": level,
    }


def serialize_connector(connector: Connector) -> dict[str, Any]:
    return {
        "from": connector.from_id,
        "to": connector.to_id,
        "start": list(connector.start),
        "end": list(connector.end),
    }


def serialize_snapshot(
    graph: TaskGraph,
    event_bus: EventBus | None = None,
    max_events: int = 100,
) -> dict[str, Any]:
    """Serialize everything the canvas needs to redraw.

    Includes tasks with their levels, routed connectors, progress counts,
    the view matrix and, when an event bus is given, recent events.
    """
    levels = graph.levels()
    snapshot: dict[str, Any] = {
        "revision": graph.revision,
        "tasks": [serialize_task(t, levels.get(t.task_id)) for t in graph.tasks],
        "connectors": [serialize_connector(c) for c in graph.connectors()],
        "progress": graph.progress(),
        "view": graph.viewport.to_list(),
    }

    if event_bus is not None:
        # Most recent first
        history = event_bus.history
        snapshot["events"] = [serialize_event(e) for e in reversed(history[-max_events:])]

    return snapshot


def _safe_data(data: dict) -> dict:
    """Make event data JSON-safe by converting non-serializable values."""
    safe = {}
    for key, value in data.items():
        if isinstance(value, (str, int, float, bool, type(None))):
            safe[key] = value
        elif isinstance(value, (list, tuple)):
            safe[key] = [v if isinstance(v, (str, int, float, bool, type(None))) else str(v) for v in value]
        elif isinstance(value, dict):
            safe[key] = _safe_data(value)
        else:
            safe[key] = str(value)
    return safe
