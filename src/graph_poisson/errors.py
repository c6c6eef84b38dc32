"""Exceptions raised by graph-poisson."""

from __future__ import annotations


class DimensionMismatchError(ValueError):
    """A vector length disagrees with the operator dimension."""

    def __init__(self, expected: int, got: int, what: str = "vector") -> None:
        self.expected = expected
        self.got = got
        super().__init__(f"{what} has length {got}, operator dimension is {expected}")


class DegenerateMeshError(ValueError):
    """The graph cannot support a solve (no nodes, or no usable edge length)."""
