"""Tests for connector routing."""

import random

import pytest

from dagcanvas.geometry import Rectangle
from dagcanvas.routing import clip_line_between_rectangles, grow


def _on_border(rect, point):
    x, y = point
    on_vertical = (x == pytest.approx(rect.min_x) or x == pytest.approx(rect.max_x)) and (
        rect.min_y - 1e-9 <= y <= rect.max_y + 1e-9
    )
    on_horizontal = (y == pytest.approx(rect.min_y) or y == pytest.approx(rect.max_y)) and (
        rect.min_x - 1e-9 <= x <= rect.max_x + 1e-9
    )
    return on_vertical or on_horizontal


def test_horizontal_neighbours():
    a = Rectangle(at=(0, 0), width=100, height=50)
    b = Rectangle(at=(200, 0), width=100, height=50)
    connector = clip_line_between_rectangles(a, b)
    assert connector.start == pytest.approx((100, 25))
    assert connector.end == pytest.approx((200, 25))


def test_vertical_neighbours():
    a = Rectangle(at=(0, 0), width=100, height=50)
    b = Rectangle(at=(0, 200), width=100, height=50)
    connector = clip_line_between_rectangles(a, b)
    assert connector.start == pytest.approx((50, 50))
    assert connector.end == pytest.approx((50, 200))


def test_diagonal_hits_nearest_edge():
    a = Rectangle(at=(0, 0), width=200, height=20)
    b = Rectangle(at=(400, 200), width=200, height=20)
    connector = clip_line_between_rectangles(a, b)
    # Line is shallow enough to leave through the bottom edge of a
    assert connector.start[1] == pytest.approx(20)
    assert connector.end[1] == pytest.approx(200)


def test_overlapping_falls_back_to_centres():
    a = Rectangle(at=(0, 0), width=100, height=100)
    b = Rectangle(at=(10, 10), width=20, height=20)
    connector = clip_line_between_rectangles(a, b)
    # Both centres lie inside a, the segment never reaches a's border
    assert connector.start == a.center


def test_identical_centres_fall_back_to_centres():
    a = Rectangle(at=(0, 0), width=10, height=10)
    connector = clip_line_between_rectangles(a, a)
    assert connector.start == a.center
    assert connector.end == a.center


def test_disjoint_boxes_endpoints_on_borders():
    rng = random.Random(7)
    for _ in range(200):
        a = Rectangle(at=(rng.uniform(-500, 0), rng.uniform(-500, 500)),
                      width=rng.uniform(10, 200), height=rng.uniform(10, 200))
        b = Rectangle(at=(rng.uniform(300, 800), rng.uniform(-500, 500)),
                      width=rng.uniform(10, 200), height=rng.uniform(10, 200))
        connector = clip_line_between_rectangles(a, b)
        assert _on_border(a, connector.start)
        assert _on_border(b, connector.end)
        # The clipped segment stays between the boxes
        assert connector.start[0] <= connector.end[0] + 1e-9


def test_grow():
    rect = grow(Rectangle(at=(10, 10), width=100, height=50), 7)
    assert rect.at == (3, 3)
    assert rect.width == 114
    assert rect.height == 64
