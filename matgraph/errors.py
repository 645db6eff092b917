from __future__ import annotations


class GraphError(Exception):
    """Raised when a graph node cannot be constructed or a value cannot be bound."""


class ShapeError(GraphError):
    """Raised when shapes (or buffer lengths) disagree."""


class ExecutionError(RuntimeError):
    """Raised when a tape machine cannot run its program to completion."""

    def __init__(self, message: str, *, node: str | None = None) -> None:
        super().__init__(message)
        self.node = node


__all__ = ["GraphError", "ShapeError", "ExecutionError"]
