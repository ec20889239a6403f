"""Viewport transform for the infinite canvas.

The viewport holds a single affine matrix mapping world coordinates
(where tasks live) to screen coordinates (where the user points).
Panning and zooming compose new transforms onto it.
"""

from __future__ import annotations

import logging

from .geometry import (
    IDENTITY,
    Mat3,
    Vec2,
    apply,
    check_affine,
    compose,
    invert,
    matrix_from_list,
    matrix_to_list,
    mul,
    scale,
    translate,
)

logger = logging.getLogger(__name__)

DEFAULT_ZOOM_STEP = 0.1


class Viewport:
    """World-to-screen transform with pan and zoom-at-point."""

    def __init__(self, matrix: Mat3 = IDENTITY, zoom_step: float = DEFAULT_ZOOM_STEP) -> None:
        if not 0 < zoom_step < 1:
            raise ValueError(f"zoom_step must be in (0, 1), got {zoom_step}")
        self.matrix: Mat3 = matrix
        self.zoom_step = zoom_step

    def reset(self) -> None:
        """Return to the identity transform."""
        self.matrix = IDENTITY

    def is_identity(self) -> bool:
        return self.matrix == IDENTITY

    def zoom_factor(self, delta: float) -> float:
        """Scale factor for a wheel ``delta``.

        Positive deltas zoom out by ``zoom_step`` (0.9x at the default 0.1).
        Negative deltas zoom in by the reciprocal, 1/0.9 or about 11.1% at
        the default, so that opposite deltas cancel exactly.
        """
        if delta > 0:
            return 1 - self.zoom_step
        if delta < 0:
            return 1 / (1 - self.zoom_step)
        return 1.0

    def zoom_at(self, world_point: Vec2, delta: float) -> None:
        """Zoom around ``world_point``, keeping it fixed on screen."""
        coeff = self.zoom_factor(delta)
        if coeff == 1.0:
            return
        anchor = self.to_screen(world_point)
        to_origin = translate(mul(anchor, -1))
        self.matrix = compose(invert(to_origin), scale(coeff), to_origin, self.matrix)
        logger.debug("Zoomed by %.4f at %s", coeff, world_point)

    def pan(self, screen_delta: Vec2) -> None:
        """Shift the view by ``screen_delta`` screen units."""
        self.matrix = compose(translate(screen_delta), self.matrix)

    def to_world(self, screen_point: Vec2) -> Vec2:
        return apply(invert(self.matrix), screen_point)

    def to_screen(self, world_point: Vec2) -> Vec2:
        return apply(self.matrix, world_point)

    def to_list(self) -> list[list[float]]:
        return matrix_to_list(self.matrix)

    @classmethod
    def from_list(cls, rows: list[list[float]], zoom_step: float = DEFAULT_ZOOM_STEP) -> Viewport:
        """Rebuild a viewport from stored rows.

        Raises ValueError unless the rows form an invertible affine matrix.
        """
        matrix = matrix_from_list(rows)
        check_affine(matrix)
        return cls(matrix, zoom_step=zoom_step)

    def __repr__(self) -> str:
        return f"Viewport(matrix={self.matrix!r})"
