"""Poisson problem on a mesh graph: holes, assembly, solve, write-back.

This module wires the pieces together the way the command line tool uses
them. `PoissonProblem` owns one graph snapshot; once `build` has run, the
graph must not be edited again for that problem.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from .boundary import BoundaryClassifier, BoundaryMap, Forcing
from .config import SolverConfig, solver_config
from .errors import DegenerateMeshError
from .geometry import BoundingBox
from .graph import Graph
from .operator import GraphSymmetricMatrix
from .preconditioner import DiagonalPreconditioner, Preconditioner
from .rhs import ForcingFn, assemble_rhs, representative_edge_length
from .solver import ConjugateGradient, SolveResult

_LOGGER = logging.getLogger(__name__)


def hole_boxes(h: float) -> List[BoundingBox]:
    """Return the regions cleared out of the unit square mesh.

    Four square holes around ``(+-0.6, +-0.6)`` and the source box interior,
    each shrunk by `h` so that one layer of nodes stays on every hole
    boundary.
    """
    raw = [
        BoundingBox((-0.8, -0.8, -1.0), (-0.4, -0.4, 1.0)),
        BoundingBox((0.4, -0.8, -1.0), (0.8, -0.4, 1.0)),
        BoundingBox((-0.8, 0.4, -1.0), (-0.4, 0.8, 1.0)),
        BoundingBox((0.4, 0.4, -1.0), (0.8, 0.8, 1.0)),
        BoundingBox((-0.6, -0.2, -1.0), (0.6, 0.2, 1.0)),
    ]
    return [box.shrink(h) for box in raw]


class PoissonProblem:
    """Discrete Poisson problem ``A u = b`` on a graph.

    Args:
        graph (Graph): Mesh graph. Edited in place by `make_holes`.
        classifier (Optional[BoundaryClassifier]): Boundary rules.
        forcing (Optional[ForcingFn]): Source term; ``Forcing()`` by default.
        config (Optional[SolverConfig]): Solver policy; package config if None.

    Attributes:
        operator (Optional[GraphSymmetricMatrix]): Set by `build`.
        rhs (Optional[NDArray[np.float64]]): Set by `build`.
        boundary (Optional[BoundaryMap]): Set by `build`.
        h (Optional[float]): Mesh spacing, set by `make_holes` or `build`.
    """

    def __init__(
        self,
        graph: Graph,
        classifier: Optional[BoundaryClassifier] = None,
        forcing: Optional[ForcingFn] = None,
        config: Optional[SolverConfig] = None,
    ) -> None:
        self.graph = graph
        self.classifier = classifier or BoundaryClassifier()
        self.forcing: ForcingFn = forcing or Forcing()
        self.config = config
        self.operator: Optional[GraphSymmetricMatrix] = None
        self.rhs: Optional[NDArray[np.float64]] = None
        self.boundary: Optional[BoundaryMap] = None
        self.h: Optional[float] = None

    def make_holes(self, h: Optional[float] = None) -> int:
        """Remove the hole and source-box interiors from the graph.

        Args:
            h (Optional[float]): Mesh spacing; measured from the graph if None.

        Returns:
            int: Number of nodes removed.
        """
        if self.operator is not None:
            raise RuntimeError("make_holes called after build; the graph is frozen")
        if h is None:
            h = representative_edge_length(self.graph)
        self.h = h
        removed = sum(self.graph.remove_box(box) for box in hole_boxes(h))
        _LOGGER.info(
            "make_holes: removed %d nodes (h=%.6e); %d nodes, %d edges remain",
            removed,
            h,
            self.graph.num_nodes(),
            self.graph.num_edges(),
        )
        return removed

    def build(self) -> Tuple[GraphSymmetricMatrix, NDArray[np.float64]]:
        """Classify the graph once and assemble the operator and right-hand side.

        Raises:
            DegenerateMeshError: If the graph has no nodes or no edges.
        """
        if self.graph.num_nodes() == 0:
            raise DegenerateMeshError("Graph has no nodes")
        if self.graph.num_edges() == 0:
            _LOGGER.error("build: graph has no edges left")
            raise DegenerateMeshError("Graph has no edges; cannot assemble the system")
        if self.h is None:
            self.h = representative_edge_length(self.graph)
        self.boundary = self.classifier.classify_graph(self.graph)
        self.operator = GraphSymmetricMatrix(self.graph, boundary=self.boundary)
        self.rhs = assemble_rhs(
            self.graph, forcing=self.forcing, h=self.h, boundary=self.boundary
        )
        return self.operator, self.rhs

    def solve(
        self,
        x0: Any = None,
        preconditioner: Optional[Preconditioner] = None,
    ) -> SolveResult:
        """Solve ``A u = b`` and store ``u`` as the node values.

        Args:
            x0: Initial guess. If None, the fixed values on constrained
                nodes and the config's `initial_guess` elsewhere.
            preconditioner (Optional[Preconditioner]): If None, Jacobi when the
                config sets `jacobi`, else identity.

        Returns:
            SolveResult: Status, iterations and the solution vector.
        """
        if self.operator is None or self.rhs is None:
            self.build()
        assert self.operator is not None and self.rhs is not None
        assert self.boundary is not None

        cfg = self.config or solver_config()
        if x0 is None:
            x0 = np.where(
                self.boundary.constrained, self.boundary.values, cfg.initial_guess
            )
        if preconditioner is None and cfg.jacobi:
            preconditioner = DiagonalPreconditioner(self.operator)

        solver = ConjugateGradient(self.operator, preconditioner, self.config)
        result = solver.solve(self.rhs, x0)
        self.graph.values = result.x
        return result
