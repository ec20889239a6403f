"""dagcanvas: task dependency graph engine for an infinite planning canvas."""

__version__ = "0.1.0"
