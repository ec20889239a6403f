"""Task graph: the canvas store of tasks and their dependency DAG.

Tasks are boxes on the canvas connected by dependency edges. The TaskGraph
owns the tasks, allocates ids, keeps the dependency relation acyclic,
derives each task's status from its dependencies and computes the layout
levels and connector geometry the canvas draws.

Every mutator ends by restoring the status invariant; levels and
connectors are computed on read.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from .config import CanvasConfig
from .events import EventBus, EventType
from .geometry import Rectangle, Vec2, add
from .routing import Connector, clip_line_between_rectangles, grow
from .viewport import Viewport

logger = logging.getLogger(__name__)


class TaskStatus(str, Enum):
    """Status of a task in the graph."""

    PENDING = "pending"
    COMPLETED = "completed"
    BLOCKED = "blocked"


class CanvasError(Exception):
    """Base class for user-facing canvas errors."""


class CycleRejectedError(CanvasError):
    """Adding a dependency would have created a cycle."""

    def __init__(self, from_id: int, to_id: int, cycle: list[int]) -> None:
        self.from_id = from_id
        self.to_id = to_id
        self.cycle = cycle
        path = " -> ".join(str(tid) for tid in cycle)
        super().__init__(
            f"Task {to_id} cannot depend on task {from_id}: dependency cycle {path}"
        )


class TaskBlockedError(CanvasError):
    """Completion was toggled on a task whose dependencies are not done."""

    def __init__(self, task_id: int) -> None:
        self.task_id = task_id
        super().__init__(f"Task {task_id} is blocked")


class SnapshotError(CanvasError, ValueError):
    """A persisted canvas snapshot could not be read."""


@dataclass
class Task:
    """A single task box on the canvas."""

    task_id: int
    title: str
    description: str = ""
    at: Vec2 = (0.0, 0.0)  # top-left corner, world coordinates
    width: float = 220.0
    height: float = 160.0
    dependencies: list[int] = field(default_factory=list)
    status: TaskStatus = TaskStatus.PENDING

    @property
    def rect(self) -> Rectangle:
        return Rectangle(at=self.at, width=self.width, height=self.height)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-safe dict."""
        return {
            "task_id": self.task_id,
            "title": self.title,
            "description": self.description,
            "at": list(self.at),
            "width": self.width,
            "height": self.height,
            "dependencies": list(self.dependencies),
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Task:
        """Deserialize from dict, coercing ids to int."""
        x, y = data["at"]
        return cls(
            task_id=int(data["task_id"]),
            title=data["title"],
            description=data.get("description", ""),
            at=(float(x), float(y)),
            width=float(data["width"]),
            height=float(data["height"]),
            dependencies=[int(dep) for dep in data.get("dependencies", [])],
            status=TaskStatus(data.get("status", "pending")),
        )


_UNVISITED, _VISITING, _DONE = 0, 1, 2


def find_cycle(tasks: Mapping[int, Task]) -> list[int] | None:
    """Find a dependency cycle with an iterative depth-first search.

    Returns the cycle as a list of ids, each depending on the next and
    the last repeating the first, or None when the relation is acyclic.
    Dependencies on ids missing from ``tasks`` are ignored.
    """
    state = {tid: _UNVISITED for tid in tasks}

    for start in tasks:
        if state[start] != _UNVISITED:
            continue

        # [task_id, index of next dependency to explore]
        stack: list[list[int]] = [[start, 0]]
        state[start] = _VISITING

        while stack:
            frame = stack[-1]
            task_id, idx = frame
            deps = tasks[task_id].dependencies

            if idx == len(deps):
                stack.pop()
                state[task_id] = _DONE
                continue

            frame[1] += 1
            dep_id = deps[idx]
            dep_state = state.get(dep_id)

            if dep_state == _UNVISITED:
                state[dep_id] = _VISITING
                stack.append([dep_id, 0])
            elif dep_state == _VISITING:
                path = [f[0] for f in stack]
                return path[path.index(dep_id):] + [dep_id]

    return None


def is_acyclic(tasks: Mapping[int, Task]) -> bool:
    """Check that the dependency relation is a DAG."""
    return find_cycle(tasks) is None


class TaskGraph:
    """Canvas store: tasks, dependency edges, id allocation and the view.

    The graph is always acyclic and statuses always satisfy: a task that
    is not completed is pending iff all its dependencies are completed.
    """

    def __init__(
        self,
        tasks: list[Task] | None = None,
        *,
        next_task_id: int = 1,
        viewport: Viewport | None = None,
        config: CanvasConfig | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        self.config = config or CanvasConfig()
        self.viewport = viewport or Viewport(zoom_step=self.config.zoom_step)
        self.event_bus = event_bus or EventBus()
        self._tasks: dict[int, Task] = {}
        self._next_task_id = next_task_id
        # Bumped on every committed mutation of the task set or edges
        self.revision = 0
        if tasks:
            for task in tasks:
                self.add_task(task)
        self.propagate_statuses()

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    def add_task(self, task: Task) -> None:
        """Insert an existing task record, e.g. when rehydrating a snapshot."""
        if task.task_id in self._tasks:
            raise ValueError(f"Task '{task.task_id}' already exists")
        self._tasks[task.task_id] = task
        self._next_task_id = max(self._next_task_id, task.task_id + 1)

    def get_task(self, task_id: int) -> Task:
        """Get a task by ID."""
        if task_id not in self._tasks:
            raise KeyError(f"Task '{task_id}' not found")
        return self._tasks[task_id]

    @property
    def tasks(self) -> list[Task]:
        """All tasks in the graph."""
        return list(self._tasks.values())

    @property
    def task_ids(self) -> list[int]:
        """All task IDs."""
        return list(self._tasks.keys())

    @property
    def next_task_id(self) -> int:
        return self._next_task_id

    def edges(self) -> list[tuple[int, int]]:
        """All ``(dependency, dependent)`` pairs."""
        return [
            (dep_id, task.task_id)
            for task in self._tasks.values()
            for dep_id in task.dependencies
        ]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_task(self, screen_point: Vec2) -> int:
        """Create a task centred under ``screen_point`` and return its id."""
        task_id = self._next_task_id
        self._next_task_id += 1

        width = self.config.task_width
        height = self.config.task_height
        cx, cy = self.viewport.to_world(screen_point)
        self._tasks[task_id] = Task(
            task_id=task_id,
            title=f"Task {task_id}",
            at=(cx - width / 2, cy - height / 2),
            width=width,
            height=height,
        )
        logger.debug("Created task %d at (%.1f, %.1f)", task_id, cx, cy)

        self._commit()
        self.event_bus.emit(EventType.TASK_CREATED, task_id=task_id)
        return task_id

    def delete_task(self, task_id: int) -> bool:
        """Delete a task and every edge touching it.

        Returns False when the task does not exist.
        """
        if self._tasks.pop(task_id, None) is None:
            return False

        for task in self._tasks.values():
            if task_id in task.dependencies:
                task.dependencies = [dep for dep in task.dependencies if dep != task_id]
        logger.debug("Deleted task %d", task_id)

        self._commit()
        self.event_bus.emit(EventType.TASK_DELETED, task_id=task_id)
        return True

    def update_task(
        self,
        task_id: int,
        *,
        title: str | None = None,
        description: str | None = None,
    ) -> bool:
        """Edit a task's text fields. Returns False for an unknown id."""
        task = self._tasks.get(task_id)
        if task is None:
            return False
        if title is None and description is None:
            return True
        if title is not None:
            task.title = title
        if description is not None:
            task.description = description
        self.revision += 1
        self.event_bus.emit(EventType.TASK_UPDATED, task_id=task_id)
        return True

    def move_task(self, task_id: int, world_delta: Vec2) -> bool:
        """Shift a task box by ``world_delta``. Returns False for an unknown id."""
        task = self._tasks.get(task_id)
        if task is None:
            return False
        task.at = add(task.at, world_delta)
        self.revision += 1
        self.event_bus.emit(EventType.TASK_UPDATED, task_id=task_id, at=task.at)
        return True

    def toggle_completion(self, task_id: int) -> TaskStatus | None:
        """Flip a task between pending and completed.

        Raises TaskBlockedError for a blocked task. Returns the new status,
        or None when the task does not exist.
        """
        task = self._tasks.get(task_id)
        if task is None:
            return None

        if task.status == TaskStatus.BLOCKED:
            logger.info("Refusing to toggle blocked task %d", task_id)
            self.event_bus.emit(EventType.TOGGLE_REJECTED, task_id=task_id)
            raise TaskBlockedError(task_id)

        if task.status == TaskStatus.COMPLETED:
            task.status = TaskStatus.PENDING
        else:
            task.status = TaskStatus.COMPLETED

        self._commit()
        self.event_bus.emit(EventType.TASK_TOGGLED, task_id=task_id, status=task.status.value)
        return task.status

    def add_or_remove_dependency(self, from_id: int, to_id: int) -> bool | None:
        """Toggle the edge ``from_id -> to_id`` (``to_id`` depends on ``from_id``).

        Returns True if the edge now exists, False if it was removed and
        None for a self-loop or unknown id. Raises CycleRejectedError, with
        the graph left unchanged, when the edge would close a cycle.
        """
        if from_id == to_id:
            return None
        if from_id not in self._tasks or to_id not in self._tasks:
            return None

        target = self._tasks[to_id]
        if from_id in target.dependencies:
            target.dependencies = [dep for dep in target.dependencies if dep != from_id]
            logger.debug("Removed dependency %d -> %d", from_id, to_id)
            self._commit()
            self.event_bus.emit(EventType.DEPENDENCY_REMOVED, task_id=to_id, dependency=from_id)
            return False

        target.dependencies.append(from_id)
        cycle = self.find_cycle()
        if cycle is not None:
            target.dependencies.pop()
            logger.info("Rejected dependency %d -> %d: cycle %s", from_id, to_id, cycle)
            self.event_bus.emit(
                EventType.CYCLE_REJECTED, task_id=to_id, dependency=from_id, cycle=cycle
            )
            raise CycleRejectedError(from_id, to_id, cycle)

        logger.debug("Added dependency %d -> %d", from_id, to_id)
        self._commit()
        self.event_bus.emit(EventType.DEPENDENCY_ADDED, task_id=to_id, dependency=from_id)
        return True

    def _commit(self) -> None:
        self.revision += 1
        for task_id in self.propagate_statuses():
            self.event_bus.emit(
                EventType.STATUS_CHANGED,
                task_id=task_id,
                status=self._tasks[task_id].status.value,
            )

    # ------------------------------------------------------------------
    # Viewport
    # ------------------------------------------------------------------

    def zoom_at(self, world_point: Vec2, delta: float) -> None:
        self.viewport.zoom_at(world_point, delta)
        self.event_bus.emit(EventType.VIEW_CHANGED, delta=delta)

    def pan(self, screen_delta: Vec2) -> None:
        self.viewport.pan(screen_delta)
        self.event_bus.emit(EventType.VIEW_CHANGED, pan=screen_delta)

    def reset_view(self) -> None:
        self.viewport.reset()
        self.event_bus.emit(EventType.VIEW_CHANGED, reset=True)

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    def find_cycle(self) -> list[int] | None:
        return find_cycle(self._tasks)

    def is_dag(self) -> bool:
        return self.find_cycle() is None

    def validate(self) -> list[str]:
        """Validate structural integrity of the graph.

        Returns a list of errors (empty if valid): dangling or duplicate
        dependencies, self-dependencies and cycles.
        """
        errors = []

        for task in self._tasks.values():
            seen: set[int] = set()
            for dep_id in task.dependencies:
                if dep_id == task.task_id:
                    errors.append(f"Task '{task.task_id}' depends on itself")
                elif dep_id not in self._tasks:
                    errors.append(
                        f"Task '{task.task_id}' depends on '{dep_id}' which doesn't exist"
                    )
                if dep_id in seen:
                    errors.append(f"Task '{task.task_id}' lists '{dep_id}' twice")
                seen.add(dep_id)

        if not errors:
            cycle = self.find_cycle()
            if cycle:
                errors.append(
                    f"Dependency cycle detected: {' -> '.join(str(tid) for tid in cycle)}"
                )

        return errors

    def propagate_statuses(self) -> list[int]:
        """Recompute pending/blocked for every task that is not completed.

        Only completed statuses feed the computation and this pass never
        sets one, so a single pass in any order reaches the fixed point.
        Returns the ids whose status changed.
        """
        changed = []
        for task in self._tasks.values():
            if task.status == TaskStatus.COMPLETED:
                continue
            deps_met = all(
                dep_id in self._tasks and self._tasks[dep_id].status == TaskStatus.COMPLETED
                for dep_id in task.dependencies
            )
            new_status = TaskStatus.PENDING if deps_met else TaskStatus.BLOCKED
            if new_status != task.status:
                task.status = new_status
                changed.append(task.task_id)
        return changed

    def progress(self) -> dict[str, int]:
        """Return progress summary."""
        counts: dict[str, int] = {s.value: 0 for s in TaskStatus}
        for task in self._tasks.values():
            counts[task.status.value] += 1
        counts["total"] = len(self._tasks)
        return counts

    def topological_order(self) -> list[int]:
        """Return task IDs in topological order (dependencies first)."""
        in_degree: dict[int, int] = {tid: 0 for tid in self._tasks}
        dependents: dict[int, list[int]] = {tid: [] for tid in self._tasks}
        for task in self._tasks.values():
            for dep_id in task.dependencies:
                if dep_id in self._tasks:
                    in_degree[task.task_id] += 1
                    dependents[dep_id].append(task.task_id)

        # Kahn's algorithm
        queue = [tid for tid, deg in in_degree.items() if deg == 0]
        order = []

        while queue:
            # Sort for deterministic order
            queue.sort()
            node = queue.pop(0)
            order.append(node)
            for dependent in dependents[node]:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    queue.append(dependent)

        return order

    def levels(self) -> dict[int, int]:
        """Assign each task a layout depth.

        Roots (tasks nothing depends on) sit at depth 0 and every
        dependency sits at least one level below each of its dependents.
        Returns an empty mapping if the graph is not a DAG.
        """
        if not self.is_dag():
            return {}

        depended_on = {
            dep_id for task in self._tasks.values() for dep_id in task.dependencies
        }
        roots = [tid for tid in self._tasks if tid not in depended_on]
        levels = {tid: 0 for tid in roots}
        frontier = roots

        while frontier:
            # dict as an insertion-ordered set
            next_frontier: dict[int, None] = {}
            for tid in frontier:
                level = levels[tid]
                for dep_id in self._tasks[tid].dependencies:
                    if dep_id not in self._tasks:
                        continue
                    if levels.get(dep_id, -1) >= level + 1:
                        continue
                    levels[dep_id] = level + 1
                    next_frontier[dep_id] = None
            frontier = list(next_frontier)

        return levels

    def connectors(self) -> list[Connector]:
        """Route a connector for every dependency edge."""
        margin = self.config.edge_margin
        result = []
        for dep_id, task_id in self.edges():
            dependency = self._tasks.get(dep_id)
            if dependency is None:
                continue
            connector = clip_line_between_rectangles(
                grow(dependency.rect, margin),
                grow(self._tasks[task_id].rect, margin),
            )
            result.append(replace(connector, from_id=dep_id, to_id=task_id))
        return result

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        return {
            "tasks": [task.to_dict() for task in self._tasks.values()],
            "next_task_id": self._next_task_id,
            "view": self.viewport.to_list(),
        }

    def to_json(self) -> str:
        """Serialize tasks, id counter and view matrix to JSON."""
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        *,
        config: CanvasConfig | None = None,
        event_bus: EventBus | None = None,
    ) -> TaskGraph:
        """Rebuild a graph from ``to_dict`` output.

        Raises SnapshotError for anything malformed, including snapshots
        whose dependencies dangle or form a cycle.
        """
        config = config or CanvasConfig()
        try:
            tasks = [Task.from_dict(t) for t in data["tasks"]]
            viewport = Viewport.from_list(data["view"], zoom_step=config.zoom_step)
            next_task_id = int(data["next_task_id"])
            graph = cls(
                tasks,
                next_task_id=next_task_id,
                viewport=viewport,
                config=config,
                event_bus=event_bus,
            )
        except (KeyError, TypeError, ValueError, OverflowError) as e:
            raise SnapshotError(f"Malformed canvas snapshot: {e}") from e

        errors = graph.validate()
        if errors:
            raise SnapshotError("Invalid canvas snapshot: " + "; ".join(errors))
        return graph

    @classmethod
    def from_json(
        cls,
        data: str,
        *,
        config: CanvasConfig | None = None,
        event_bus: EventBus | None = None,
    ) -> TaskGraph:
        """Deserialize graph from JSON."""
        try:
            parsed = json.loads(data)
        except json.JSONDecodeError as e:
            raise SnapshotError(f"Canvas snapshot is not valid JSON: {e}") from e
        if not isinstance(parsed, dict):
            raise SnapshotError("Canvas snapshot must be a JSON object")
        return cls.from_dict(parsed, config=config, event_bus=event_bus)

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task_id: int) -> bool:
        return task_id in self._tasks
