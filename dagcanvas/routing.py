"""Connector routing between task boxes.

A connector runs along the line joining two box centres and is clipped
so it starts and ends on the box borders instead of inside the boxes.
"""

from __future__ import annotations

from dataclasses import dataclass

from .geometry import Rectangle, Vec2, sub

# Boxes are grown by this much before clipping so lines clear the border
DEFAULT_MARGIN = 7.0


@dataclass(frozen=True)
class Connector:
    """A routed connector from a dependency to its dependent."""

    start: Vec2
    end: Vec2
    from_id: int | None = None
    to_id: int | None = None


def grow(rect: Rectangle, margin: float) -> Rectangle:
    """Return ``rect`` enlarged by ``margin`` on every side."""
    return Rectangle(
        at=sub(rect.at, (margin, margin)),
        width=rect.width + margin * 2,
        height=rect.height + margin * 2,
    )


def _first_crossing(rect: Rectangle, p0: Vec2, dx: float, dy: float) -> Vec2:
    """First point where the segment ``p0 -> p0 + (dx, dy)`` meets ``rect``'s border.

    Falls back to the rectangle centre when the segment never crosses an
    edge (overlapping boxes, or both centres inside ``rect``).
    """
    t_values: list[float] = []

    if dx != 0:
        for edge_x in (rect.min_x, rect.max_x):
            t = (edge_x - p0[0]) / dx
            y = p0[1] + t * dy
            if 0 <= t <= 1 and rect.min_y <= y <= rect.max_y:
                t_values.append(t)

    if dy != 0:
        for edge_y in (rect.min_y, rect.max_y):
            t = (edge_y - p0[1]) / dy
            x = p0[0] + t * dx
            if 0 <= t <= 1 and rect.min_x <= x <= rect.max_x:
                t_values.append(t)

    if not t_values:
        return rect.center

    t = min(t_values)
    return (p0[0] + t * dx, p0[1] + t * dy)


def clip_line_between_rectangles(rect1: Rectangle, rect2: Rectangle) -> Connector:
    """Route a connector from ``rect1`` to ``rect2``.

    ``start`` lies on ``rect1``'s border and ``end`` on ``rect2``'s border
    whenever the boxes are disjoint.
    """
    p0 = rect1.center
    p1 = rect2.center
    dx = p1[0] - p0[0]
    dy = p1[1] - p0[1]

    return Connector(
        start=_first_crossing(rect1, p0, dx, dy),
        end=_first_crossing(rect2, p0, dx, dy),
    )
