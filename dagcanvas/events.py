"""Event bus for canvas notifications.

Callback-based: the task graph publishes CanvasEvent objects after each
mutation, subscribers (CLI output, a UI layer) receive them.

Delivery is synchronous and happens only once the mutation has restored
the graph invariants, so subscribers always observe consistent state.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Types of events published by the task graph."""

    # Task lifecycle
    TASK_CREATED = "task_created"
    TASK_UPDATED = "task_updated"
    TASK_DELETED = "task_deleted"
    TASK_TOGGLED = "task_toggled"

    # Dependencies
    DEPENDENCY_ADDED = "dependency_added"
    DEPENDENCY_REMOVED = "dependency_removed"

    # Rejections surfaced to the user
    CYCLE_REJECTED = "cycle_rejected"
    TOGGLE_REJECTED = "toggle_rejected"

    # Derived state
    STATUS_CHANGED = "status_changed"
    VIEW_CHANGED = "view_changed"


@dataclass
class CanvasEvent:
    """An event from the task graph."""

    event_type: EventType
    task_id: int | None = None
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)

    def __str__(self) -> str:
        parts = [f"[{self.event_type.value}]"]
        if self.task_id is not None:
            parts.append(f"task={self.task_id}")
        for key, value in self.data.items():
            parts.append(f"{key}={value}")
        return " ".join(parts)


EventCallback = Callable[[CanvasEvent], None]


class EventBus:
    """Callback-based event bus.

    Subscribers register callbacks that are invoked synchronously when
    events are published. A failing subscriber is logged and skipped.
    """

    def __init__(self, max_history: int = 1000) -> None:
        self._subscribers: list[EventCallback] = []
        self._history: list[CanvasEvent] = []
        self._max_history = max_history

    def subscribe(self, callback: EventCallback) -> None:
        """Subscribe to all events."""
        self._subscribers.append(callback)

    def unsubscribe(self, callback: EventCallback) -> None:
        """Unsubscribe from events."""
        self._subscribers = [s for s in self._subscribers if s is not callback]

    def publish(self, event: CanvasEvent) -> None:
        """Publish an event to all subscribers."""
        self._history.append(event)
        if len(self._history) > self._max_history:
            self._history = self._history[-self._max_history:]

        # Iterate over a copy so callbacks may (un)subscribe
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception:
                logger.exception("Subscriber failed while handling %s", event.event_type.value)

    def emit(self, event_type: EventType, task_id: int | None = None, **data: Any) -> None:
        """Convenience method to create and publish an event."""
        self.publish(CanvasEvent(event_type=event_type, task_id=task_id, data=data))

    @property
    def history(self) -> list[CanvasEvent]:
        """Get event history (returns a copy)."""
        return list(self._history)

    def clear_history(self) -> None:
        """Clear event history."""
        self._history.clear()
