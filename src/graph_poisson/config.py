"""Global configuration for graph-poisson solves.

This module provides a package-wide configuration surface for the iterative
solver (tolerances, iteration cap, initial guess) that can be driven from the
environment, changed programmatically, or swapped temporarily inside a
context manager. It also owns the package log level.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
import contextlib
import logging
import os
from typing import Any, ContextManager, Iterator


# -----------------------------------------------------------------------------
# Logging
# -----------------------------------------------------------------------------
_LOGGER = logging.getLogger("graph_poisson.config")
_PACKAGE_LOGGER = logging.getLogger("graph_poisson")


def _parse_log_level(val: str | int | None, default: int = logging.WARNING) -> int:
    """Parse a logging level string or int into a `logging` level constant.

    Args:
        val: The desired level (e.g., "DEBUG", 10). May be None.
        default: Fallback level if `val` cannot be parsed.

    Returns:
        An integer logging level (e.g., logging.DEBUG).
    """
    if val is None:
        return default
    if isinstance(val, int):
        return val
    lvl = getattr(logging, str(val).strip().upper(), None)
    if isinstance(lvl, int):
        return lvl
    return default


def set_log_level(level: str | int = "WARNING") -> None:
    """Set the package logger level programmatically.

    Args:
        level: A standard logging level name or integer.
    """
    _PACKAGE_LOGGER.setLevel(_parse_log_level(level))


# Default level can be overridden by env.
set_log_level(os.getenv("GRAPH_POISSON_LOGLEVEL", "WARNING"))


# -----------------------------------------------------------------------------
# Env helpers
# -----------------------------------------------------------------------------
def bool_env(varname: str, default: bool) -> bool:
    """Read an environment variable and interpret it as a boolean.

    True values: 'y', 'yes', 't', 'true', 'on', '1'.
    False values: 'n', 'no', 'f', 'false', 'off', '0'.

    Args:
        varname: The name of the environment variable.
        default: The default value if the variable is unset.

    Returns:
        A boolean value parsed from the environment.
    """
    val = os.getenv(varname, str(default))
    val = val.lower()
    if val in ("y", "yes", "t", "true", "on", "1"):
        return True
    if val in ("n", "no", "f", "false", "off", "0"):
        return False
    raise ValueError(f"invalid truth value {val!r} for environment {varname!r}")


def int_env(varname: str, default: int) -> int:
    """Read an environment variable and interpret it as an integer."""
    return int(os.getenv(varname, str(default)))


def float_env(varname: str, default: float) -> float:
    """Read an environment variable and interpret it as a float."""
    return float(os.getenv(varname, repr(default)))


# -----------------------------------------------------------------------------
# Solver configuration
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class SolverConfig:
    """Convergence policy and start vector for the conjugate-gradient driver.

    Attributes:
        rtol: Relative tolerance on the residual norm, measured against ``||b||``.
        atol: Absolute tolerance on the residual norm.
        max_iter: Iteration cap; reaching it without meeting a tolerance is
            reported as non-convergence.
        cycle: Log a progress line every ``cycle`` iterations.
        initial_guess: Constant used to fill the start vector when the caller
            does not pass one.
        jacobi: Use diagonal preconditioning when no preconditioner is given
            to `PoissonProblem.solve`.
    """

    rtol: float = 1.0e-10
    atol: float = 0.0
    max_iter: int = 100
    cycle: int = 100
    initial_guess: float = 1.0
    jacobi: bool = False

    def __post_init__(self) -> None:
        if self.rtol < 0 or self.atol < 0:
            raise ValueError(
                f"Tolerances must be non-negative (rtol={self.rtol}, atol={self.atol})"
            )
        if self.max_iter < 0:
            raise ValueError(f"max_iter must be non-negative, got {self.max_iter}")
        if self.cycle < 1:
            raise ValueError(f"cycle must be at least 1, got {self.cycle}")

    @classmethod
    def from_env(cls) -> SolverConfig:
        """Build a config from ``GRAPH_POISSON_*`` environment variables."""
        defaults = cls()
        cfg = cls(
            rtol=float_env("GRAPH_POISSON_RTOL", defaults.rtol),
            atol=float_env("GRAPH_POISSON_ATOL", defaults.atol),
            max_iter=int_env("GRAPH_POISSON_MAX_ITER", defaults.max_iter),
            cycle=int_env("GRAPH_POISSON_CYCLE", defaults.cycle),
            initial_guess=float_env(
                "GRAPH_POISSON_INITIAL_GUESS", defaults.initial_guess
            ),
            jacobi=bool_env("GRAPH_POISSON_JACOBI", defaults.jacobi),
        )
        _LOGGER.debug("SolverConfig from env: %s", cfg)
        return cfg


class Config:
    """Holder for the active `SolverConfig`.

    Code that reads ``config.solver`` always sees the current settings, so
    solvers built without an explicit config follow `configure` and `use`.
    """

    def __init__(self) -> None:
        """Initialize config using environment defaults."""
        self._solver = SolverConfig.from_env()
        _LOGGER.info("Config initialized: %s", self._solver)

    @property
    def solver(self) -> SolverConfig:
        """Return the active solver configuration."""
        return self._solver

    def configure(self, **overrides: Any) -> Config:
        """Replace fields of the active solver configuration.

        Args:
            **overrides: Any `SolverConfig` field, e.g. ``rtol=1e-8``.

        Returns:
            The `Config` instance (for chaining).

        Raises:
            TypeError: If an unknown field name is passed.
        """
        known = {f.name for f in fields(SolverConfig)}
        unknown = set(overrides) - known
        if unknown:
            raise TypeError(f"Unknown solver option(s): {sorted(unknown)}")
        self._solver = replace(self._solver, **overrides)
        _LOGGER.info("Reconfigured solver: %s", self._solver)
        return self

    def reset(self) -> Config:
        """Reload the solver configuration from the environment."""
        self._solver = SolverConfig.from_env()
        return self

    @contextlib.contextmanager
    def use(self, **overrides: Any) -> Iterator[SolverConfig]:
        """Temporarily override solver settings within a context manager.

        Yields:
            The temporary `SolverConfig`. The previous one is restored on exit.
        """
        prev = self._solver
        try:
            self.configure(**overrides)
            yield self._solver
        finally:
            self._solver = prev
            _LOGGER.info("Restored previous solver config: %s", self._solver)


# Singleton & forwards
config = Config()


def configure(**overrides: Any) -> Config:
    """Replace fields of the active solver configuration (module-level)."""
    return config.configure(**overrides)


def use(**overrides: Any) -> ContextManager[SolverConfig]:
    """Temporarily override solver settings (module-level)."""
    return config.use(**overrides)


def solver_config() -> SolverConfig:
    """Return the active solver configuration (module-level)."""
    return config.solver
