"""Boundary classification and forcing for the graph Poisson problem.

A node is either pinned to a fixed value (Dirichlet condition) or governed by
the forcing term. The two cases are modelled as separate types,
`FixedValue` and `ForcingGoverned`, so no numeric value is reserved to mean
"unconstrained".

The default `BoundaryClassifier` partitions the square ``[-1, 1]^2`` into:
  - the outer boundary (``||p||_inf == 1``), fixed at 0;
  - four hole boundaries around ``(+-0.6, +-0.6, 0)``, fixed at -0.2;
  - a source box ``[-0.6, 0.6] x [-0.2, 0.2]``, fixed at 1;
  - the interior, driven by ``f(p) = 5 cos(||p||_1)``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Any, Tuple, Union

import numpy as np
from numpy.typing import NDArray

from .geometry import BoundingBox, PointLike, as_point, norm_1, norm_inf
from .graph import Graph

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class FixedValue:
    """Dirichlet condition: the solution equals `value` at this node."""

    value: float


class ForcingGoverned:
    """Marker for nodes whose equation is driven by the forcing term."""

    _instance: ForcingGoverned | None = None

    def __new__(cls) -> ForcingGoverned:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "FORCING_GOVERNED"


FORCING_GOVERNED = ForcingGoverned()

BoundaryCondition = Union[FixedValue, ForcingGoverned]


def is_constrained(bc: BoundaryCondition) -> bool:
    """Return True if `bc` pins the node to a fixed value."""
    return isinstance(bc, FixedValue)


_DEFAULT_HOLES: Tuple[Tuple[float, float, float], ...] = (
    (0.6, 0.6, 0.0),
    (-0.6, 0.6, 0.0),
    (0.6, -0.6, 0.0),
    (-0.6, -0.6, 0.0),
)


@dataclass(frozen=True)
class BoundaryClassifier:
    """Map node positions to boundary conditions.

    Rules are checked in order and the first match wins: outer boundary,
    hole boundaries, source box. Anything else, including positions with
    non-finite coordinates, is forcing-governed.

    Attributes:
        outer_radius (float): Infinity-norm radius of the outer boundary.
        outer_value (float): Value fixed on the outer boundary.
        hole_centers (Tuple[Tuple[float, float, float], ...]): Hole centres.
        hole_radius (float): Infinity-norm radius around each hole centre.
        hole_value (float): Value fixed on hole boundaries.
        source_box (BoundingBox): Region fixed at `source_value`.
        source_value (float): Value fixed inside the source box.
    """

    outer_radius: float = 1.0
    outer_value: float = 0.0
    hole_centers: Tuple[Tuple[float, float, float], ...] = _DEFAULT_HOLES
    hole_radius: float = 0.2
    hole_value: float = -0.2
    source_box: BoundingBox = field(
        default_factory=lambda: BoundingBox((-0.6, -0.2, -1.0), (0.6, 0.2, 1.0))
    )
    source_value: float = 1.0

    def classify(self, position: PointLike) -> BoundaryCondition:
        """Return the boundary condition for a node at `position`."""
        p = as_point(position)
        if not np.all(np.isfinite(p)):
            return FORCING_GOVERNED
        if norm_inf(p) == self.outer_radius:
            return FixedValue(self.outer_value)
        for c in self.hole_centers:
            if norm_inf(p - np.asarray(c, dtype=float)) < self.hole_radius:
                return FixedValue(self.hole_value)
        if self.source_box.contains(p):
            return FixedValue(self.source_value)
        return FORCING_GOVERNED

    def __call__(self, position: PointLike) -> BoundaryCondition:
        return self.classify(position)

    def classify_graph(self, graph: Graph) -> BoundaryMap:
        """Classify every node of `graph` once.

        Returns:
            BoundaryMap: Per-node constraint mask and fixed values.
        """
        return BoundaryMap.from_conditions(
            [self.classify(p) for p in graph.positions]
        )


@dataclass(frozen=True)
class BoundaryMap:
    """Per-node classification of one graph snapshot.

    The operator and the right-hand side must read the same map.

    Attributes:
        constrained (NDArray[np.bool_]): True where the node has a fixed value.
        values (NDArray[np.float64]): Fixed values; 0.0 where unconstrained.
    """

    constrained: NDArray[np.bool_]
    values: NDArray[np.float64]

    @classmethod
    def from_conditions(cls, conditions: Any) -> BoundaryMap:
        conds = list(conditions)
        constrained = np.array([is_constrained(c) for c in conds], dtype=bool)
        values = np.array(
            [c.value if isinstance(c, FixedValue) else 0.0 for c in conds],
            dtype=float,
        )
        constrained.setflags(write=False)
        values.setflags(write=False)
        _LOGGER.debug(
            "BoundaryMap: %d nodes, %d constrained",
            constrained.shape[0],
            int(np.count_nonzero(constrained)),
        )
        return cls(constrained=constrained, values=values)

    def __len__(self) -> int:
        return int(self.constrained.shape[0])

    def condition(self, i: int) -> BoundaryCondition:
        """Return the tagged condition for node `i`."""
        if self.constrained[i]:
            return FixedValue(float(self.values[i]))
        return FORCING_GOVERNED


def forcing(position: PointLike, scale: float = 5.0) -> float:
    """Source term ``scale * cos(||p||_1)``."""
    return scale * float(np.cos(norm_1(position)))


@dataclass(frozen=True)
class Forcing:
    """Pluggable forcing term ``scale * cos(||p||_1)``."""

    scale: float = 5.0

    def __call__(self, position: PointLike) -> float:
        return forcing(position, self.scale)

    def evaluate(self, positions: NDArray[Any]) -> NDArray[np.float64]:
        """Vectorized evaluation over an (N, 3) array."""
        pts = np.asarray(positions, dtype=float).reshape(-1, 3)
        return self.scale * np.cos(np.sum(np.abs(pts), axis=1))
