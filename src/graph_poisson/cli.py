"""Command line entry point: ``graph-poisson NODES_FILE TETS_FILE``."""

from __future__ import annotations

import argparse
from dataclasses import replace
import logging
from typing import List, Optional

from .config import set_log_level, solver_config
from .errors import DegenerateMeshError
from .mesh_io import load_graph, write_solution
from .poisson import PoissonProblem

_LOGGER = logging.getLogger(__name__)


def _parser() -> argparse.ArgumentParser:
    defaults = solver_config()
    p = argparse.ArgumentParser(
        prog="graph-poisson",
        description="Solve a Poisson problem on a mesh graph with matrix-free CG.",
    )
    p.add_argument("nodes_file", help="points, three floats per line")
    p.add_argument("tets_file", help="quads, four node indices per line")
    p.add_argument("-o", "--output", help="write the solution (e.g. out.vtu)")
    p.add_argument("--rtol", type=float, default=defaults.rtol)
    p.add_argument("--atol", type=float, default=defaults.atol)
    p.add_argument("--max-iter", type=int, default=defaults.max_iter)
    p.add_argument(
        "--jacobi", action="store_true", help="use diagonal preconditioning"
    )
    p.add_argument(
        "--no-holes", action="store_true", help="keep the hole interiors in the mesh"
    )
    p.add_argument(
        "--no-transform",
        action="store_true",
        help="use input coordinates as-is instead of mapping to [-1, 1]^2",
    )
    p.add_argument("--log-level", default=None, help="e.g. INFO or DEBUG")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    """Run the solver; return 0 on convergence, 1 otherwise."""
    args = _parser().parse_args(argv)
    if args.log_level:
        logging.basicConfig(format="%(levelname)s %(name)s: %(message)s")
        set_log_level(args.log_level)

    defaults = solver_config()
    cfg = replace(
        defaults,
        rtol=args.rtol,
        atol=args.atol,
        max_iter=args.max_iter,
        jacobi=args.jacobi or defaults.jacobi,
    )

    graph = load_graph(args.nodes_file, args.tets_file, transform=not args.no_transform)
    problem = PoissonProblem(graph, config=cfg)
    try:
        if not args.no_holes:
            problem.make_holes()
        problem.build()
    except DegenerateMeshError as err:
        _LOGGER.error("Cannot solve: %s", err)
        print(f"graph-poisson: {err}")
        return 1

    result = problem.solve()
    print(
        f"{result.status.value}: {result.iterations} iterations, "
        f"||r|| = {result.residual_norm:.3e}"
    )

    if args.output:
        write_solution(graph, args.output)
    return 0 if result.converged else 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
