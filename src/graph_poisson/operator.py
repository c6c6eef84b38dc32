"""Matrix-free symmetric operator over a mesh graph.

`GraphSymmetricMatrix` presents a `Graph` plus a boundary classification as a
square matrix ``A`` of size ``num_nodes x num_nodes`` without storing it:

  - ``L(i, j)``: the discrete Laplacian, ``-degree(i)`` on the diagonal, 1 for
    adjacent nodes, 0 elsewhere;
  - ``A(i, j)``: ``L(i, j)``, except that every row and column of a
    constrained node is replaced by the matching identity row/column.

Dirichlet nodes therefore reduce to the trivial equation ``x_i = b_i`` while
the system keeps its size, and ``A`` stays symmetric.
"""

from __future__ import annotations

import enum
import logging
from typing import Any, Optional, Tuple

import numpy as np
from numpy.typing import NDArray
from scipy.sparse.linalg import LinearOperator

from .boundary import BoundaryClassifier, BoundaryMap
from .errors import DimensionMismatchError
from .graph import Graph, NodeRef

_LOGGER = logging.getLogger(__name__)


class Assign(enum.Enum):
    """How `GraphSymmetricMatrix.mult` combines ``A v`` with the output."""

    ASSIGN = "="
    PLUS_ASSIGN = "+="
    MINUS_ASSIGN = "-="


class GraphSymmetricMatrix:
    """Read-only matrix view of a graph Laplacian with Dirichlet rows.

    The operator snapshots the edge list, the degrees and the boundary
    classification at construction. The graph must not be edited while the
    operator is in use; build a new operator after any structural change.

    Args:
        graph (Graph): Mesh graph; node indices are the matrix indices.
        classifier (Optional[BoundaryClassifier]): Boundary rules. Ignored if
            `boundary` is given.
        boundary (Optional[BoundaryMap]): Precomputed classification, shared
            with the right-hand-side assembly.

    Attributes:
        graph (Graph): The underlying graph.
        boundary (BoundaryMap): Per-node classification used for every entry.
    """

    def __init__(
        self,
        graph: Graph,
        classifier: Optional[BoundaryClassifier] = None,
        boundary: Optional[BoundaryMap] = None,
    ) -> None:
        if boundary is None:
            boundary = (classifier or BoundaryClassifier()).classify_graph(graph)
        if len(boundary) != graph.num_nodes():
            raise DimensionMismatchError(
                graph.num_nodes(), len(boundary), what="boundary map"
            )

        self.graph = graph
        self.boundary = boundary
        self._n = graph.num_nodes()
        self._degrees = graph.degrees().astype(float)

        edges = graph.edge_index_array()
        c = boundary.constrained
        free = ~(c[edges[:, 0]] | c[edges[:, 1]])
        # Couplings left after the identity rows/columns: both ends free.
        self._free_edges: NDArray[np.int64] = edges[free]

        _LOGGER.info(
            "GraphSymmetricMatrix built: n=%d, edges=%d (coupling=%d), constrained=%d",
            self._n,
            edges.shape[0],
            self._free_edges.shape[0],
            int(np.count_nonzero(c)),
        )

    # ---------------------------------------------------------------- shape
    def dimension(self) -> int:
        return self._n

    def num_rows(self) -> int:
        return self._n

    def num_cols(self) -> int:
        return self._n

    def size(self) -> int:
        """Number of matrix entries, ``dimension() ** 2``."""
        return self._n * self._n

    @property
    def shape(self) -> Tuple[int, int]:
        return (self._n, self._n)

    @property
    def dtype(self) -> np.dtype:
        return np.dtype(float)

    # -------------------------------------------------------------- entries
    def is_constrained(self, i: NodeRef) -> bool:
        return bool(self.boundary.constrained[self.graph.index_of(i)])

    def laplacian_entry(self, i: NodeRef, j: NodeRef) -> float:
        """Return ``L(i, j)`` of the plain graph Laplacian."""
        ii, jj = self.graph.index_of(i), self.graph.index_of(j)
        if ii == jj:
            return -float(self._degrees[ii])
        if self.graph.has_edge(ii, jj):
            return 1.0
        return 0.0

    def matrix_entry(self, i: NodeRef, j: NodeRef) -> float:
        """Return ``A(i, j)``."""
        ii, jj = self.graph.index_of(i), self.graph.index_of(j)
        c = self.boundary.constrained
        if c[ii] or c[jj]:
            return 1.0 if ii == jj else 0.0
        return self.laplacian_entry(ii, jj)

    def __getitem__(self, ij: Tuple[NodeRef, NodeRef]) -> float:
        i, j = ij
        return self.matrix_entry(i, j)

    def diagonal(self) -> NDArray[np.float64]:
        """Return the diagonal of ``A``."""
        return np.where(self.boundary.constrained, 1.0, -self._degrees)

    # --------------------------------------------------------------- matvec
    def mult(
        self,
        v: Any,
        w: NDArray[Any],
        assign: Assign = Assign.ASSIGN,
    ) -> NDArray[Any]:
        """Compute ``w = A v``, ``w += A v`` or ``w -= A v`` in place.

        Cost is linear in nodes plus edges.

        Args:
            v: Input vector of length `dimension()`.
            w (NDArray[Any]): Output vector of length `dimension()`, updated in place.
            assign (Assign): Accumulation mode.

        Returns:
            NDArray[Any]: `w`, for chaining.

        Raises:
            DimensionMismatchError: If `v` or `w` has the wrong length.
        """
        x = np.asarray(v, dtype=float).reshape(-1)
        if x.shape[0] != self._n:
            _LOGGER.error("mult: input length %d != dimension %d", x.shape[0], self._n)
            raise DimensionMismatchError(self._n, x.shape[0], what="input vector")
        if not isinstance(w, np.ndarray):
            raise TypeError(f"output must be a numpy array, got {type(w).__name__}")
        if np.shape(w) != (self._n,):
            got = int(np.size(w))
            _LOGGER.error("mult: output length %d != dimension %d", got, self._n)
            raise DimensionMismatchError(self._n, got, what="output vector")

        y = self._product(x)
        if assign is Assign.ASSIGN:
            w[:] = y
        elif assign is Assign.PLUS_ASSIGN:
            w += y
        elif assign is Assign.MINUS_ASSIGN:
            w -= y
        else:
            raise ValueError(f"Unknown assign mode {assign!r}")
        return w

    def apply(self, v: Any) -> NDArray[np.float64]:
        """Return ``A v`` as a new array."""
        out = np.empty(self._n, dtype=float)
        return self.mult(v, out, Assign.ASSIGN)

    def __matmul__(self, v: Any) -> NDArray[np.float64]:
        return self.apply(v)

    def _product(self, x: NDArray[np.float64]) -> NDArray[np.float64]:
        c = self.boundary.constrained
        y = np.where(c, x, -self._degrees * x)
        if self._free_edges.size:
            a = self._free_edges[:, 0]
            b = self._free_edges[:, 1]
            y += np.bincount(a, weights=x[b], minlength=self._n)
            y += np.bincount(b, weights=x[a], minlength=self._n)
        return y

    def as_linear_operator(self) -> LinearOperator:
        """Wrap this operator as a SciPy `LinearOperator`."""
        return LinearOperator(
            self.shape, matvec=self.apply, rmatvec=self.apply, dtype=float
        )

    def __repr__(self) -> str:
        return (
            f"GraphSymmetricMatrix(n={self._n}, "
            f"constrained={int(np.count_nonzero(self.boundary.constrained))})"
        )
