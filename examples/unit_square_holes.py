"""Solve the holes-and-source Poisson problem on a generated unit square mesh.

Writes ``unit_square_holes.vtu`` with the solution as point data ``"u"``.
"""

import logging

import numpy as np

from graph_poisson import (
    DiagonalPreconditioner,
    PoissonProblem,
    build_graph,
    set_log_level,
    write_solution,
)


def unit_square(n):
    """Return points and quads of an n x n structured grid on [0, 1]^2."""
    xs = np.linspace(0.0, 1.0, n)
    points = np.array([[x, y, 0.0] for y in xs for x in xs])
    quads = []
    for j in range(n - 1):
        for i in range(n - 1):
            a = j * n + i
            quads.append([a, a + 1, a + n, a + n + 1])
    return points, np.array(quads)


if __name__ == "__main__":
    logging.basicConfig(format="%(levelname)s %(name)s: %(message)s")
    set_log_level("INFO")

    points, quads = unit_square(41)
    graph = build_graph(points, quads)

    problem = PoissonProblem(graph)
    problem.make_holes()
    operator, _ = problem.build()
    result = problem.solve(preconditioner=DiagonalPreconditioner(operator))

    print(f"{result.status.value} after {result.iterations} iterations")
    write_solution(graph, "unit_square_holes.vtu")
