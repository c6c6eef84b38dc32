"""Preconditioned conjugate-gradient driver for `GraphSymmetricMatrix`.

The driver runs Initialize -> Iterate -> Check Convergence until one of the
terminal states is reached:

  - ``CONVERGED_RTOL``: ``||r|| <= rtol * ||b||``;
  - ``CONVERGED_ATOL``: ``||r|| <= atol``;
  - ``MAX_ITERATIONS``: the iteration cap was hit first;
  - ``BREAKDOWN``: a zero or non-finite curvature ``p^T A p`` (or ``r^T z``)
    stopped the recurrence before convergence.

Non-convergence is reported through the status, never raised; the best
iterate is always returned.
"""

from __future__ import annotations

from dataclasses import dataclass
import enum
import logging
from typing import Any, List, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from .config import SolverConfig, solver_config
from .errors import DimensionMismatchError
from .operator import Assign, GraphSymmetricMatrix
from .preconditioner import IdentityPreconditioner, Preconditioner

_LOGGER = logging.getLogger(__name__)


class SolverStatus(enum.Enum):
    CONVERGED_RTOL = "converged_rtol"
    CONVERGED_ATOL = "converged_atol"
    MAX_ITERATIONS = "max_iterations"
    BREAKDOWN = "breakdown"

    @property
    def converged(self) -> bool:
        return self in (SolverStatus.CONVERGED_RTOL, SolverStatus.CONVERGED_ATOL)


class IterationControl:
    """Convergence bookkeeping for one solve.

    Every call to `finished` records a residual norm; the first criterion
    that holds fixes `status`. Progress is logged every `cycle` iterations.

    Args:
        b (NDArray[Any]): Right-hand side; ``||b||`` scales the relative test.
        max_iter (int): Iteration cap.
        rtol (float): Relative tolerance.
        atol (float): Absolute tolerance.
        cycle (int): Logging period in iterations.
    """

    def __init__(
        self,
        b: NDArray[Any],
        max_iter: int,
        rtol: float,
        atol: float = 0.0,
        cycle: int = 100,
    ) -> None:
        self.norm_b = float(np.linalg.norm(b))
        self.max_iter = int(max_iter)
        self.rtol = float(rtol)
        self.atol = float(atol)
        self.cycle = max(int(cycle), 1)
        self.iterations = 0
        self.residual_norms: List[float] = []
        self.status: Optional[SolverStatus] = None

    @classmethod
    def from_config(cls, b: NDArray[Any], cfg: SolverConfig) -> IterationControl:
        return cls(b, cfg.max_iter, cfg.rtol, cfg.atol, cfg.cycle)

    def converged(self, r_norm: float) -> bool:
        """Check the tolerances against `r_norm`, setting `status` on success."""
        if r_norm <= self.rtol * self.norm_b:
            self.status = SolverStatus.CONVERGED_RTOL
            return True
        if r_norm <= self.atol:
            self.status = SolverStatus.CONVERGED_ATOL
            return True
        return False

    def finished(self, r_norm: float) -> bool:
        """Record `r_norm` and return True if the iteration should stop."""
        self.residual_norms.append(float(r_norm))
        if self.converged(r_norm):
            return True
        if self.iterations >= self.max_iter:
            self.status = SolverStatus.MAX_ITERATIONS
            return True
        return False

    def step(self) -> None:
        """Count one completed iteration."""
        self.iterations += 1
        if self.iterations % self.cycle == 0:
            _LOGGER.info(
                "iteration %d: ||r|| = %.6e", self.iterations, self.residual_norms[-1]
            )

    def fail(self, reason: str) -> None:
        """Stop on breakdown, unless the last residual already converged."""
        r_norm = self.residual_norms[-1] if self.residual_norms else np.inf
        if not self.converged(r_norm):
            self.status = SolverStatus.BREAKDOWN
        _LOGGER.warning(
            "CG breakdown after %d iterations: %s (||r|| = %.6e)",
            self.iterations,
            reason,
            r_norm,
        )

    @property
    def relative_residual(self) -> float:
        if not self.residual_norms:
            return float("nan")
        r = self.residual_norms[-1]
        return r / self.norm_b if self.norm_b > 0.0 else r


@dataclass(frozen=True)
class SolveResult:
    """Outcome of one conjugate-gradient solve.

    Attributes:
        x (NDArray[np.float64]): Final iterate (the solution on convergence).
        status (SolverStatus): Terminal state.
        iterations (int): Number of CG updates performed.
        residual_norms (Tuple[float, ...]): ``||r_k||`` for ``k = 0..iterations``.
        norm_b (float): ``||b||``.
    """

    x: NDArray[np.float64]
    status: SolverStatus
    iterations: int
    residual_norms: Tuple[float, ...]
    norm_b: float

    @property
    def converged(self) -> bool:
        return self.status.converged

    @property
    def residual_norm(self) -> float:
        return self.residual_norms[-1]

    @property
    def relative_residual(self) -> float:
        r = self.residual_norm
        return r / self.norm_b if self.norm_b > 0.0 else r


class ConjugateGradient:
    """Preconditioned CG on a matrix-free `GraphSymmetricMatrix`.

    Args:
        operator (GraphSymmetricMatrix): System matrix ``A``.
        preconditioner (Optional[Preconditioner]): ``M^{-1}``; identity if None.
        config (Optional[SolverConfig]): Convergence policy. If None, the
            package-wide config active at solve time is used.
    """

    def __init__(
        self,
        operator: GraphSymmetricMatrix,
        preconditioner: Optional[Preconditioner] = None,
        config: Optional[SolverConfig] = None,
    ) -> None:
        self.operator = operator
        self.preconditioner: Preconditioner = (
            preconditioner if preconditioner is not None else IdentityPreconditioner()
        )
        self.config = config

    def _check_length(self, v: NDArray[Any], what: str) -> None:
        n = self.operator.dimension()
        if v.shape != (n,):
            _LOGGER.error("%s has shape %s, expected (%d,)", what, v.shape, n)
            raise DimensionMismatchError(n, int(v.size), what=what)

    def solve(self, b: Any, x0: Any = None) -> SolveResult:
        """Solve ``A x = b`` starting from `x0`.

        Args:
            b: Right-hand side.
            x0: Initial guess. Not modified. Defaults to a vector filled with
                ``config.initial_guess``.

        Returns:
            SolveResult: Final iterate, status and residual history.

        Raises:
            DimensionMismatchError: If `b` or `x0` has the wrong length.
        """
        cfg = self.config or solver_config()
        n = self.operator.dimension()
        if x0 is None:
            x = np.full(n, cfg.initial_guess, dtype=float)
        else:
            x = np.array(x0, dtype=float, copy=True)
        return self.solve_into(x, b)

    def solve_into(self, x: NDArray[np.float64], b: Any) -> SolveResult:
        """Solve ``A x = b``, overwriting `x` (the initial guess) in place.

        Returns:
            SolveResult: Holds `x` itself, not a copy.
        """
        cfg = self.config or solver_config()
        A = self.operator
        M = self.preconditioner
        b = np.asarray(b, dtype=float)
        self._check_length(b, "right-hand side")
        if not isinstance(x, np.ndarray) or x.dtype != np.float64:
            raise TypeError("solution vector must be a float64 numpy array")
        self._check_length(x, "initial guess")

        ctrl = IterationControl.from_config(b, cfg)
        _LOGGER.info(
            "CG start: n=%d, ||b||=%.6e, rtol=%g, atol=%g, max_iter=%d, M=%r",
            A.dimension(),
            ctrl.norm_b,
            ctrl.rtol,
            ctrl.atol,
            ctrl.max_iter,
            M,
        )

        # r = b - A x
        r = b.copy()
        A.mult(x, r, Assign.MINUS_ASSIGN)
        q = np.empty_like(r)
        p: Optional[NDArray[np.float64]] = None
        rho_prev = 0.0

        while not ctrl.finished(float(np.linalg.norm(r))):
            z = M.solve(r)
            rho = float(np.dot(r, z))
            if rho == 0.0 or not np.isfinite(rho):
                ctrl.fail(f"r^T z = {rho}")
                break
            if p is None:
                p = np.array(z, dtype=float, copy=True)
            else:
                p *= rho / rho_prev
                p += z
            A.mult(p, q, Assign.ASSIGN)
            curvature = float(np.dot(p, q))
            if curvature == 0.0 or not np.isfinite(curvature):
                ctrl.fail(f"p^T A p = {curvature}")
                break
            alpha = rho / curvature
            x += alpha * p
            r -= alpha * q
            rho_prev = rho
            ctrl.step()
            _LOGGER.debug(
                "iteration %d: alpha=%.6e, ||r||=%.6e",
                ctrl.iterations,
                alpha,
                float(np.linalg.norm(r)),
            )

        status = ctrl.status or SolverStatus.BREAKDOWN
        result = SolveResult(
            x=x,
            status=status,
            iterations=ctrl.iterations,
            residual_norms=tuple(ctrl.residual_norms),
            norm_b=ctrl.norm_b,
        )
        if result.converged:
            _LOGGER.info(
                "CG %s in %d iterations (||r||=%.6e, rel=%.3e)",
                status.value,
                result.iterations,
                result.residual_norm,
                result.relative_residual,
            )
        else:
            _LOGGER.warning(
                "CG did not converge: %s after %d iterations (||r||=%.6e, rel=%.3e)",
                status.value,
                result.iterations,
                result.residual_norm,
                result.relative_residual,
            )
        return result


def cg(
    operator: GraphSymmetricMatrix,
    b: Any,
    x0: Any = None,
    preconditioner: Optional[Preconditioner] = None,
    config: Optional[SolverConfig] = None,
) -> SolveResult:
    """Solve ``operator @ x = b`` with preconditioned CG (functional form)."""
    return ConjugateGradient(operator, preconditioner, config).solve(b, x0)
