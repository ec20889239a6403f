"""CLI entry point for dagcanvas.

Commands:
- dagcanvas add X Y          — Create a task under a screen point
- dagcanvas link FROM TO     — Toggle "TO depends on FROM"
- dagcanvas done ID          — Toggle a task's completion
- dagcanvas ls / levels      — Show tasks, statuses and layout levels
- dagcanvas zoom / pan       — Move the view
- dagcanvas export / import  — Copy the canvas to or from a JSON file
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from .config import CanvasConfig, load_config
from .events import CanvasEvent, EventBus, EventType
from .storage import export_graph, import_graph, load_graph, open_project_store, save_graph
from .task_graph import CanvasError, TaskGraph, TaskStatus

logger = logging.getLogger(__name__)

console = Console()

# Let negative numbers through as arguments
_NUMERIC_ARGS = {"ignore_unknown_options": True}

_STATUS_STYLE = {
    TaskStatus.COMPLETED: "[green]completed[/green]",
    TaskStatus.PENDING: "pending",
    TaskStatus.BLOCKED: "[dim]blocked[/dim]",
}


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _on_event(event: CanvasEvent) -> None:
    if event.event_type == EventType.STATUS_CHANGED:
        console.print(f"[dim]Task {event.task_id} is now {event.data['status']}[/dim]")


def _load(ctx: click.Context) -> TaskGraph:
    config: CanvasConfig = ctx.obj["config"]
    store = open_project_store(config)
    event_bus = EventBus()
    event_bus.subscribe(_on_event)
    try:
        return load_graph(store, config.storage_key, config=config, event_bus=event_bus)
    except CanvasError as e:
        console.print(f"[red]Could not load canvas: {e}[/red]")
        sys.exit(1)


def _save(ctx: click.Context, graph: TaskGraph) -> None:
    config: CanvasConfig = ctx.obj["config"]
    save_graph(open_project_store(config), graph, config.storage_key)


def _fail(e: Exception) -> None:
    console.print(f"[red]{e}[/red]")
    sys.exit(1)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--project", "-p", type=click.Path(exists=True, file_okay=False), default=".",
              help="Project directory")
@click.pass_context
def main(ctx: click.Context, verbose: bool, project: str) -> None:
    """dagcanvas: task dependency canvas."""
    _setup_logging(verbose)
    project_path = Path(project).resolve()
    ctx.ensure_object(dict)
    try:
        ctx.obj["config"] = load_config(project_path)
    except ValueError as e:
        _fail(e)


@main.command(context_settings=_NUMERIC_ARGS)
@click.argument("x", type=float)
@click.argument("y", type=float)
@click.option("--title", "-t", help="Task title")
@click.option("--description", "-d", help="Task description")
@click.pass_context
def add(ctx: click.Context, x: float, y: float, title: str | None, description: str | None) -> None:
    """Create a task centred under the screen point X, Y."""
    graph = _load(ctx)
    task_id = graph.create_task((x, y))
    if title is not None or description is not None:
        graph.update_task(task_id, title=title, description=description)
    _save(ctx, graph)
    console.print(f"[green]Created task {task_id}[/green]")


@main.command()
@click.argument("task_id", type=int)
@click.pass_context
def rm(ctx: click.Context, task_id: int) -> None:
    """Delete a task and all its edges."""
    graph = _load(ctx)
    if not graph.delete_task(task_id):
        console.print(f"[yellow]No task {task_id}[/yellow]")
        return
    _save(ctx, graph)
    console.print(f"Deleted task {task_id}")


@main.command()
@click.argument("from_id", type=int)
@click.argument("to_id", type=int)
@click.pass_context
def link(ctx: click.Context, from_id: int, to_id: int) -> None:
    """Toggle the dependency "TO_ID depends on FROM_ID"."""
    graph = _load(ctx)
    try:
        added = graph.add_or_remove_dependency(from_id, to_id)
    except CanvasError as e:
        _fail(e)
        return

    if added is None:
        console.print("[yellow]Nothing to link[/yellow]")
        return
    _save(ctx, graph)
    if added:
        console.print(f"Task {to_id} now depends on task {from_id}")
    else:
        console.print(f"Task {to_id} no longer depends on task {from_id}")


@main.command()
@click.argument("task_id", type=int)
@click.pass_context
def done(ctx: click.Context, task_id: int) -> None:
    """Toggle a task between pending and completed."""
    graph = _load(ctx)
    try:
        status = graph.toggle_completion(task_id)
    except CanvasError as e:
        _fail(e)
        return

    if status is None:
        console.print(f"[yellow]No task {task_id}[/yellow]")
        return
    _save(ctx, graph)
    console.print(f"Task {task_id} is {_STATUS_STYLE[status]}")


@main.command()
@click.argument("task_id", type=int)
@click.option("--title", "-t", help="New title")
@click.option("--description", "-d", help="New description")
@click.pass_context
def edit(ctx: click.Context, task_id: int, title: str | None, description: str | None) -> None:
    """Change a task's title or description."""
    if title is None and description is None:
        console.print("[yellow]Nothing to change. Pass --title or --description.[/yellow]")
        return
    graph = _load(ctx)
    if not graph.update_task(task_id, title=title, description=description):
        console.print(f"[yellow]No task {task_id}[/yellow]")
        return
    _save(ctx, graph)


@main.command(context_settings=_NUMERIC_ARGS)
@click.argument("task_id", type=int)
@click.argument("dx", type=float)
@click.argument("dy", type=float)
@click.pass_context
def move(ctx: click.Context, task_id: int, dx: float, dy: float) -> None:
    """Move a task box by DX, DY world units."""
    graph = _load(ctx)
    if not graph.move_task(task_id, (dx, dy)):
        console.print(f"[yellow]No task {task_id}[/yellow]")
        return
    _save(ctx, graph)


@main.command()
@click.pass_context
def ls(ctx: click.Context) -> None:
    """Show all tasks with status and layout level."""
    graph = _load(ctx)
    if not len(graph):
        console.print("[yellow]No tasks yet. Run 'dagcanvas add X Y' to create one.[/yellow]")
        return
    _display_task_graph(graph)

    progress = graph.progress()
    console.print(
        f"\n{progress['completed']}/{progress['total']} completed, "
        f"{progress['pending']} pending, {progress['blocked']} blocked"
    )


@main.command()
@click.pass_context
def levels(ctx: click.Context) -> None:
    """Show tasks grouped by layout level."""
    graph = _load(ctx)
    by_level: dict[int, list[int]] = {}
    for task_id, level in graph.levels().items():
        by_level.setdefault(level, []).append(task_id)

    for level in sorted(by_level):
        titles = ", ".join(
            f"{tid} {graph.get_task(tid).title}" for tid in sorted(by_level[level])
        )
        console.print(f"[cyan]{level}[/cyan]: {titles}")


@main.command()
@click.pass_context
def edges(ctx: click.Context) -> None:
    """Show routed connector endpoints."""
    graph = _load(ctx)
    table = Table(title="Connectors")
    table.add_column("From", style="cyan")
    table.add_column("To", style="cyan")
    table.add_column("Start", justify="right")
    table.add_column("End", justify="right")

    for connector in graph.connectors():
        table.add_row(
            str(connector.from_id),
            str(connector.to_id),
            f"({connector.start[0]:.1f}, {connector.start[1]:.1f})",
            f"({connector.end[0]:.1f}, {connector.end[1]:.1f})",
        )

    console.print(table)


@main.command(context_settings=_NUMERIC_ARGS)
@click.argument("x", type=float)
@click.argument("y", type=float)
@click.option("--in", "zoom_in", is_flag=True, help="Zoom in instead of out")
@click.option("--steps", "-n", type=click.IntRange(min=1), default=1, help="Number of zoom steps")
@click.pass_context
def zoom(ctx: click.Context, x: float, y: float, zoom_in: bool, steps: int) -> None:
    """Zoom around the world point X, Y."""
    graph = _load(ctx)
    delta = -1.0 if zoom_in else 1.0
    for _ in range(steps):
        graph.zoom_at((x, y), delta)
    _save(ctx, graph)
    _display_view(graph)


@main.command(context_settings=_NUMERIC_ARGS)
@click.argument("dx", type=float)
@click.argument("dy", type=float)
@click.pass_context
def pan(ctx: click.Context, dx: float, dy: float) -> None:
    """Shift the view by DX, DY screen units."""
    graph = _load(ctx)
    graph.pan((dx, dy))
    _save(ctx, graph)
    _display_view(graph)


@main.command("reset-view")
@click.pass_context
def reset_view(ctx: click.Context) -> None:
    """Return the view to the identity transform."""
    graph = _load(ctx)
    graph.reset_view()
    _save(ctx, graph)
    _display_view(graph)


@main.command()
@click.pass_context
def view(ctx: click.Context) -> None:
    """Show the current view matrix."""
    _display_view(_load(ctx))


@main.command("export")
@click.argument("path", type=click.Path(dir_okay=False))
@click.pass_context
def export_cmd(ctx: click.Context, path: str) -> None:
    """Write the canvas to a JSON file."""
    graph = _load(ctx)
    export_graph(graph, Path(path))
    console.print(f"Exported {len(graph)} tasks to {path}")


@main.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def import_cmd(ctx: click.Context, path: str) -> None:
    """Replace the canvas with the contents of a JSON file."""
    config: CanvasConfig = ctx.obj["config"]
    try:
        graph = import_graph(Path(path), config=config)
    except CanvasError as e:
        _fail(e)
        return
    _save(ctx, graph)
    console.print(f"Imported {len(graph)} tasks from {path}")


def _display_task_graph(graph: TaskGraph) -> None:
    """Display the task graph as a rich table."""
    levels = graph.levels()
    table = Table(title="Tasks")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Title", width=35)
    table.add_column("Status", width=12)
    table.add_column("Level", justify="right")
    table.add_column("Depends on", width=20)

    for task in sorted(graph.tasks, key=lambda t: (levels.get(t.task_id, 0), t.task_id)):
        deps = ", ".join(str(d) for d in task.dependencies) if task.dependencies else "-"
        table.add_row(
            str(task.task_id),
            task.title[:35],
            _STATUS_STYLE[task.status],
            str(levels.get(task.task_id, "-")),
            deps[:20],
        )

    console.print(table)


def _display_view(graph: TaskGraph) -> None:
    for row in graph.viewport.matrix:
        console.print("  ".join(f"{value:10.4f}" for value in row))


if __name__ == "__main__":
    main()
