from __future__ import annotations

from typing import Callable, Dict

import numpy as np
import pytest

from graph_poisson.config import config as gp_config
from graph_poisson.boundary import FORCING_GOVERNED, BoundaryMap, FixedValue
from graph_poisson.graph import Graph


def make_grid(n: int, lo: float = -1.0, hi: float = 1.0) -> Graph:
    """Square n x n grid graph in the z=0 plane, row-major node indices."""
    xs = np.linspace(lo, hi, n)
    g = Graph()
    for y in xs:
        for x in xs:
            g.add_node((x, y, 0.0))
    for r in range(n):
        for c in range(n):
            i = r * n + c
            if c + 1 < n:
                g.add_edge(i, i + 1)
            if r + 1 < n:
                g.add_edge(i, i + n)
    return g


@pytest.fixture(autouse=True)
def _reset_config():
    yield
    gp_config.reset()


@pytest.fixture
def grid() -> Callable[..., Graph]:
    return make_grid


@pytest.fixture
def grid3() -> Graph:
    """3 x 3 grid with unit spacing; node 4 is the centre."""
    return make_grid(3)


@pytest.fixture
def perimeter_map() -> Callable[[Graph, Dict[int, float]], BoundaryMap]:
    """Build a BoundaryMap pinning the given nodes, all others forcing-governed."""

    def _make(graph: Graph, fixed: Dict[int, float]) -> BoundaryMap:
        return BoundaryMap.from_conditions(
            FixedValue(fixed[i]) if i in fixed else FORCING_GOVERNED
            for i in range(graph.num_nodes())
        )

    return _make


@pytest.fixture
def grid3_boundary(grid3, perimeter_map) -> BoundaryMap:
    # corners 0, mid-sides 1..4, centre free
    fixed = {0: 0.0, 2: 0.0, 6: 0.0, 8: 0.0, 1: 1.0, 3: 2.0, 5: 3.0, 7: 4.0}
    return perimeter_map(grid3, fixed)


@pytest.fixture
def lifted_guess() -> Callable[..., np.ndarray]:
    """Start vector equal to the fixed values on constrained nodes."""

    def _make(boundary: BoundaryMap, fill: float = 0.0) -> np.ndarray:
        return np.where(boundary.constrained, boundary.values, fill)

    return _make


@pytest.fixture
def dense_matrix() -> Callable[..., np.ndarray]:
    """Materialize an operator entry by entry (small graphs only)."""

    def _make(op) -> np.ndarray:
        n = op.dimension()
        return np.array(
            [[op.matrix_entry(i, j) for j in range(n)] for i in range(n)]
        )

    return _make


@pytest.fixture
def zero_forcing() -> Callable[..., float]:
    return lambda _p: 0.0
