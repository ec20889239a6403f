"""Tests for the event bus."""

import logging

from dagcanvas.events import CanvasEvent, EventBus, EventType


def test_publish_subscribe():
    bus = EventBus()
    received = []
    bus.subscribe(lambda e: received.append(e))

    bus.emit(EventType.TASK_CREATED, task_id=1)

    assert len(received) == 1
    assert received[0].event_type == EventType.TASK_CREATED
    assert received[0].task_id == 1


def test_unsubscribe():
    bus = EventBus()
    received = []
    callback = lambda e: received.append(e)
    bus.subscribe(callback)
    bus.unsubscribe(callback)

    bus.emit(EventType.VIEW_CHANGED)

    assert len(received) == 0


def test_history_is_bounded():
    bus = EventBus(max_history=3)
    for i in range(5):
        bus.emit(EventType.TASK_UPDATED, task_id=i)

    assert [e.task_id for e in bus.history] == [2, 3, 4]
    bus.clear_history()
    assert bus.history == []


def test_subscriber_error_is_logged(caplog):
    bus = EventBus()

    def bad_callback(e):
        raise RuntimeError("oops")

    received = []
    bus.subscribe(bad_callback)
    bus.subscribe(lambda e: received.append(e))

    with caplog.at_level(logging.ERROR, logger="dagcanvas.events"):
        bus.emit(EventType.TASK_DELETED, task_id=3)

    # Second subscriber should still receive the event
    assert len(received) == 1
    assert "task_deleted" in caplog.text


def test_event_str():
    event = CanvasEvent(
        event_type=EventType.CYCLE_REJECTED,
        task_id=1,
        data={"dependency": 3},
    )
    s = str(event)
    assert "cycle_rejected" in s
    assert "task=1" in s
    assert "dependency=3" in s
