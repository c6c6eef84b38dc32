"""Right-hand-side assembly consistent with `GraphSymmetricMatrix`.

For a constrained node ``i`` the operator row is the identity, so
``b_i = g(i)``. For a forcing-governed node the operator keeps only the
couplings to other forcing-governed nodes; the couplings to constrained
neighbours are known values and move to the right-hand side:

    b_i = h^2 f(i) + sum_{j ~ i, j constrained} g(j)

``h`` is a single representative edge length. The mesh is assumed to be
near-uniform; on graded meshes this is an approximation.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

import numpy as np
from numpy.typing import NDArray

from .boundary import BoundaryClassifier, BoundaryMap, Forcing
from .errors import DegenerateMeshError, DimensionMismatchError
from .graph import Graph

_LOGGER = logging.getLogger(__name__)

ForcingFn = Callable[[Any], float]


def representative_edge_length(graph: Graph) -> float:
    """Return the length of the first edge of `graph`.

    Raises:
        DegenerateMeshError: If the graph has no edges, or the first edge has
            zero or non-finite length.
    """
    if graph.num_edges() == 0:
        _LOGGER.error("representative_edge_length: graph has no edges")
        raise DegenerateMeshError("Graph has no edges; cannot determine mesh spacing h")
    h = graph.edge(0).length()
    if not np.isfinite(h) or h <= 0.0:
        _LOGGER.error("representative_edge_length: invalid edge length %r", h)
        raise DegenerateMeshError(f"Representative edge length must be positive, got {h}")
    return h


def _evaluate_forcing(forcing: ForcingFn, positions: NDArray[Any]) -> NDArray[np.float64]:
    evaluate = getattr(forcing, "evaluate", None)
    if evaluate is not None:
        return np.asarray(evaluate(positions), dtype=float)
    return np.array([forcing(p) for p in positions], dtype=float)


def assemble_rhs(
    graph: Graph,
    classifier: Optional[BoundaryClassifier] = None,
    forcing: Optional[ForcingFn] = None,
    h: Optional[float] = None,
    boundary: Optional[BoundaryMap] = None,
) -> NDArray[np.float64]:
    """Build ``b`` for ``A x = b``.

    Args:
        graph (Graph): Mesh graph.
        classifier (Optional[BoundaryClassifier]): Boundary rules; ignored if
            `boundary` is given.
        forcing (Optional[ForcingFn]): Source term ``f(position)``. Defaults to
            ``Forcing()``.
        h (Optional[float]): Mesh spacing. Defaults to
            `representative_edge_length`.
        boundary (Optional[BoundaryMap]): Classification shared with the operator.

    Returns:
        NDArray[np.float64]: Right-hand side of length ``graph.num_nodes()``.

    Raises:
        DegenerateMeshError: If `h` is not given and the graph has no edges.
        DimensionMismatchError: If `boundary` does not match the graph size.
    """
    n = graph.num_nodes()
    if boundary is None:
        boundary = (classifier or BoundaryClassifier()).classify_graph(graph)
    if len(boundary) != n:
        raise DimensionMismatchError(n, len(boundary), what="boundary map")
    if h is None:
        h = representative_edge_length(graph)
    if forcing is None:
        forcing = Forcing()

    c = boundary.constrained
    g = boundary.values
    b = np.where(c, g, 0.0)

    free = ~c
    if np.any(free):
        f = np.zeros(n, dtype=float)
        f[free] = _evaluate_forcing(forcing, graph.positions[free])
        b[free] = h * h * f[free]

        edges = graph.edge_index_array()
        if edges.size:
            u, v = edges[:, 0], edges[:, 1]
            # Constrained neighbour values, gathered onto free endpoints only.
            m = free[u] & c[v]
            b += np.bincount(u[m], weights=g[v[m]], minlength=n)
            m = free[v] & c[u]
            b += np.bincount(v[m], weights=g[u[m]], minlength=n)

    _LOGGER.info(
        "assemble_rhs: n=%d, free=%d, h=%.6e, ||b||=%.6e",
        n,
        int(np.count_nonzero(free)),
        h,
        float(np.linalg.norm(b)),
    )
    return b
