"""2D vector and affine matrix helpers.

Points are plain ``(x, y)`` tuples and transforms are 3x3 row-major
matrices stored as tuples of tuples. Everything here is pure: functions
return new values and never mutate their arguments.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

Vec2 = tuple[float, float]
Mat3 = tuple[
    tuple[float, float, float],
    tuple[float, float, float],
    tuple[float, float, float],
]


def scale(coeff: float) -> Mat3:
    """Uniform scale about the origin."""
    return (
        (coeff, 0.0, 0.0),
        (0.0, coeff, 0.0),
        (0.0, 0.0, 1.0),
    )


def translate(v: Vec2) -> Mat3:
    """Translation by ``v``."""
    return (
        (1.0, 0.0, v[0]),
        (0.0, 1.0, v[1]),
        (0.0, 0.0, 1.0),
    )


IDENTITY: Mat3 = scale(1.0)


def _matmul(a: Mat3, b: Mat3) -> Mat3:
    return tuple(
        tuple(sum(a[i][k] * b[k][j] for k in range(3)) for j in range(3))
        for i in range(3)
    )  # type: ignore[return-value]


def compose(*ms: Mat3) -> Mat3:
    """Compose transforms right to left.

    ``compose(a, b, c)`` is the product ``a @ b @ c``: applying the result
    to a point is the same as applying ``c``, then ``b``, then ``a``.
    """
    res = IDENTITY
    for m in reversed(ms):
        res = _matmul(m, res)
    return res


def invert(m: Mat3) -> Mat3:
    """Invert ``m`` with the adjugate/determinant formula.

    A singular matrix raises ``ZeroDivisionError``; callers must not build
    degenerate transforms.
    """
    (a, b, c), (d, e, f), (g, h, i) = m
    det = a * (e * i - f * h) - b * (d * i - f * g) + c * (d * h - e * g)
    inv_det = 1 / det
    adjugate = (
        (e * i - f * h, c * h - b * i, b * f - c * e),
        (f * g - d * i, a * i - c * g, c * d - a * f),
        (d * h - e * g, b * g - a * h, a * e - b * d),
    )
    return tuple(
        tuple(value * inv_det for value in row) for row in adjugate
    )  # type: ignore[return-value]


def apply(m: Mat3, v: Vec2) -> Vec2:
    """Apply ``m`` to the point ``v`` in homogeneous coordinates."""
    m0, m1, m2 = m
    x = m0[0] * v[0] + m0[1] * v[1] + m0[2]
    y = m1[0] * v[0] + m1[1] * v[1] + m1[2]
    z = m2[0] * v[0] + m2[1] * v[1] + m2[2]
    return (x / z, y / z)


def add(v1: Vec2, v2: Vec2) -> Vec2:
    return (v1[0] + v2[0], v1[1] + v2[1])


def sub(v1: Vec2, v2: Vec2) -> Vec2:
    return (v1[0] - v2[0], v1[1] - v2[1])


def mul(v: Vec2, k: float) -> Vec2:
    return (v[0] * k, v[1] * k)


def length(v: Vec2) -> float:
    return math.hypot(v[0], v[1])


def matrix_to_list(m: Mat3) -> list[list[float]]:
    """Convert a matrix to nested lists for JSON."""
    return [list(row) for row in m]


def matrix_from_list(rows: list[list[float]]) -> Mat3:
    """Rebuild a matrix from nested lists, rejecting anything not 3x3."""
    if len(rows) != 3 or any(len(row) != 3 for row in rows):
        raise ValueError(f"Expected a 3x3 matrix, got {rows!r}")
    return tuple(tuple(float(x) for x in row) for row in rows)  # type: ignore[return-value]


def check_affine(m: Mat3) -> None:
    """Reject matrices that are not finite, invertible 2D affine transforms."""
    if any(not math.isfinite(x) for row in m for x in row):
        raise ValueError(f"Matrix has non-finite entries: {m!r}")
    if m[2] != (0.0, 0.0, 1.0):
        raise ValueError(f"Matrix bottom row must be (0, 0, 1), got {m[2]!r}")
    det = m[0][0] * m[1][1] - m[0][1] * m[1][0]
    if det == 0 or not math.isfinite(det):
        raise ValueError(f"Matrix is not invertible: {m!r}")


@dataclass(frozen=True)
class Rectangle:
    """Axis-aligned box given by its top-left corner and size."""

    at: Vec2
    width: float
    height: float

    @property
    def min_x(self) -> float:
        return self.at[0]

    @property
    def max_x(self) -> float:
        return self.at[0] + self.width

    @property
    def min_y(self) -> float:
        return self.at[1]

    @property
    def max_y(self) -> float:
        return self.at[1] + self.height

    @property
    def center(self) -> Vec2:
        return (self.at[0] + self.width / 2, self.at[1] + self.height / 2)

    def contains(self, point: Vec2) -> bool:
        return (
            self.min_x <= point[0] <= self.max_x
            and self.min_y <= point[1] <= self.max_y
        )
