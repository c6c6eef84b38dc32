"""Preconditioners for the conjugate-gradient driver.

A preconditioner is anything with ``solve(r) -> z`` approximating
``M^{-1} r`` for a symmetric positive definite ``M``.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

import numpy as np
from numpy.typing import NDArray

from .operator import GraphSymmetricMatrix

_LOGGER = logging.getLogger(__name__)


@runtime_checkable
class Preconditioner(Protocol):
    """Capability interface: apply ``M^{-1}`` to a residual."""

    def solve(self, r: NDArray[Any]) -> NDArray[Any]:
        ...


class IdentityPreconditioner:
    """``M = I``: returns a copy of the residual."""

    def solve(self, r: NDArray[Any]) -> NDArray[Any]:
        return np.array(r, dtype=float, copy=True)

    def __call__(self, r: NDArray[Any]) -> NDArray[Any]:
        return self.solve(r)

    def __repr__(self) -> str:
        return "IdentityPreconditioner()"


class DiagonalPreconditioner:
    """Jacobi scaling by ``1 / |A_ii|``.

    The free block of `GraphSymmetricMatrix` has a negative diagonal, so the
    absolute value is used to keep ``M`` positive definite. Zero diagonal
    entries (isolated unconstrained nodes) are left unscaled.

    Args:
        operator (GraphSymmetricMatrix): Operator whose diagonal defines ``M``.
    """

    def __init__(self, operator: GraphSymmetricMatrix) -> None:
        d = np.abs(operator.diagonal())
        zero = d == 0.0
        if np.any(zero):
            _LOGGER.warning(
                "DiagonalPreconditioner: %d zero diagonal entries left unscaled",
                int(np.count_nonzero(zero)),
            )
        d[zero] = 1.0
        self.inv_diag: NDArray[np.float64] = 1.0 / d

    def solve(self, r: NDArray[Any]) -> NDArray[Any]:
        return self.inv_diag * np.asarray(r, dtype=float)

    def __call__(self, r: NDArray[Any]) -> NDArray[Any]:
        return self.solve(r)

    def __repr__(self) -> str:
        return f"DiagonalPreconditioner(n={self.inv_diag.shape[0]})"
