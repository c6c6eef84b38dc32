"""The graph_poisson package solves Poisson problems on mesh graphs.

This package offers:
  - A matrix-free symmetric operator built from graph adjacency and
    Dirichlet boundary rules.
  - Right-hand-side assembly consistent with the operator's boundary rows.
  - A preconditioned conjugate-gradient driver with a reported status.

Submodules:
  - boundary: Boundary classification and forcing.
  - config: Solver configuration and log level.
  - geometry: BoundingBox and point norms.
  - graph: Graph and Node.
  - edge: Edge handle.
  - operator: GraphSymmetricMatrix.
  - rhs: Right-hand-side assembly.
  - preconditioner: Identity and diagonal preconditioners.
  - solver: ConjugateGradient and convergence control.
  - poisson: PoissonProblem pipeline.
  - mesh_io: Text mesh readers and meshio export.
"""

from .config import (
    SolverConfig,
    config,
    configure,
    use,
    solver_config,
    set_log_level,
)

from graph_poisson.boundary import (
    FORCING_GOVERNED,
    BoundaryClassifier,
    BoundaryCondition,
    BoundaryMap,
    FixedValue,
    Forcing,
    ForcingGoverned,
    forcing,
    is_constrained,
)
from graph_poisson.edge import Edge
from graph_poisson.errors import DegenerateMeshError, DimensionMismatchError
from graph_poisson.geometry import BoundingBox, norm_1, norm_2, norm_inf
from graph_poisson.graph import Graph, Node
from graph_poisson.mesh_io import build_graph, load_graph, write_solution
from graph_poisson.operator import Assign, GraphSymmetricMatrix
from graph_poisson.poisson import PoissonProblem
from graph_poisson.preconditioner import (
    DiagonalPreconditioner,
    IdentityPreconditioner,
    Preconditioner,
)
from graph_poisson.rhs import assemble_rhs, representative_edge_length
from graph_poisson.solver import (
    ConjugateGradient,
    IterationControl,
    SolveResult,
    SolverStatus,
    cg,
)

__all__ = [
    # Core classes
    "Graph",
    "Node",
    "Edge",
    "BoundingBox",
    "GraphSymmetricMatrix",
    "Assign",
    "PoissonProblem",
    # Boundary and forcing
    "BoundaryClassifier",
    "BoundaryCondition",
    "BoundaryMap",
    "FixedValue",
    "ForcingGoverned",
    "FORCING_GOVERNED",
    "Forcing",
    "forcing",
    "is_constrained",
    # Assembly and solve
    "assemble_rhs",
    "representative_edge_length",
    "ConjugateGradient",
    "IterationControl",
    "SolveResult",
    "SolverStatus",
    "cg",
    "Preconditioner",
    "IdentityPreconditioner",
    "DiagonalPreconditioner",
    # I/O
    "build_graph",
    "load_graph",
    "write_solution",
    # Geometry
    "norm_1",
    "norm_2",
    "norm_inf",
    # Errors
    "DimensionMismatchError",
    "DegenerateMeshError",
    # Configuration
    "SolverConfig",
    "config",
    "configure",
    "use",
    "solver_config",
    "set_log_level",
]
