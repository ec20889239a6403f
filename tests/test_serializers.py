"""Tests for UI serializers."""

import json

from dagcanvas.events import CanvasEvent, EventType
from dagcanvas.serializers import serialize_event, serialize_snapshot, serialize_task
from dagcanvas.task_graph import Task


def test_serialize_task():
    task = Task(task_id=4, title="Frontend", at=(1.0, 2.0), dependencies=[2, 3])
    result = serialize_task(task, level=0)
    assert result["task_id"] == 4
    assert result["at"] == [1.0, 2.0]
    assert result["status"] == "pending"
    assert result["dependencies"] == [2, 3]
    assert result["level"] == 0


def test_serialize_event_with_non_serializable_data():
    event = CanvasEvent(
        event_type=EventType.VIEW_CHANGED,
        data={"pan": (1, 2), "obj": object(), "nested": {"key": 42}},
    )
    result = serialize_event(event)
    assert result["event_type"] == "view_changed"
    assert result["data"]["pan"] == [1, 2]
    assert isinstance(result["data"]["obj"], str)
    assert result["data"]["nested"]["key"] == 42


def test_snapshot(sample_task_graph):
    snapshot = serialize_snapshot(sample_task_graph)
    levels = {t["task_id"]: t["level"] for t in snapshot["tasks"]}
    assert levels == {1: 2, 2: 1, 3: 1, 4: 0}
    assert len(snapshot["connectors"]) == 4
    assert snapshot["progress"]["total"] == 4
    assert snapshot["view"] == [[1, 0, 0], [0, 1, 0], [0, 0, 1]]
    assert "events" not in snapshot
    # Must be JSON-safe as-is
    json.dumps(snapshot)


def test_snapshot_with_events(abc_graph, event_bus):
    abc_graph.add_or_remove_dependency(1, 2)
    snapshot = serialize_snapshot(abc_graph, event_bus, max_events=2)
    assert len(snapshot["events"]) == 2
    assert snapshot["events"][0]["event_type"] == "dependency_added"
    json.dumps(snapshot)
