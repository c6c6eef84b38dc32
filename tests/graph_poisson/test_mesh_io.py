from __future__ import annotations

from pathlib import Path

import meshio
import numpy as np
import pytest
from numpy.testing import assert_allclose

from graph_poisson.mesh_io import (
    build_graph,
    load_graph,
    read_nodes,
    read_tets,
    write_solution,
)


def _write_unit_square(tmp_path: Path, n: int) -> tuple[Path, Path]:
    """Unit-square grid of n x n points with one quad per cell."""
    xs = np.linspace(0.0, 1.0, n)
    nodes = tmp_path / "nodes.txt"
    tets = tmp_path / "tets.txt"
    nodes.write_text("".join(f"{x} {y} 0\n" for y in xs for x in xs))
    lines = []
    for r in range(n - 1):
        for c in range(n - 1):
            a = r * n + c
            lines.append(f"{a} {a + 1} {a + n} {a + n + 1}\n")
    tets.write_text("".join(lines))
    return nodes, tets


def test_read_nodes_skips_blank_and_short_lines(tmp_path):
    f = tmp_path / "nodes.txt"
    f.write_text("0 0 0\n\n1 2\n0.5 0.25 1\n")
    pts = read_nodes(f)
    assert pts.shape == (2, 3)
    assert_allclose(pts[1], [0.5, 0.25, 1.0])


def test_read_tets(tmp_path):
    f = tmp_path / "tets.txt"
    f.write_text("0 1 2 3\n4 5 6 7 8\n")
    tets = read_tets(f)
    assert tets.tolist() == [[0, 1, 2, 3], [4, 5, 6, 7]]


def test_quad_gives_four_edges():
    pts = [[0, 0, 0], [1, 0, 0], [0, 1, 0], [1, 1, 0]]
    g = build_graph(pts, [[0, 1, 2, 3]], transform=False)
    assert g.num_edges() == 4
    for a, b in [(0, 1), (0, 2), (1, 3), (2, 3)]:
        assert g.has_edge(a, b)
    assert not g.has_edge(0, 3)
    assert not g.has_edge(1, 2)


def test_shared_edges_are_not_duplicated():
    pts = [[x, y, 0] for y in (0, 1) for x in (0, 1, 2)]
    g = build_graph(pts, [[0, 1, 3, 4], [1, 2, 4, 5]], transform=False)
    assert g.num_edges() == 7


def test_transform_maps_to_minus_one_one():
    g = build_graph([[0.5, 0.5, 0.0], [1.0, 0.0, 0.25]], [], transform=True)
    assert_allclose(g.positions, [[0.0, 0.0, 0.0], [1.0, -1.0, 0.5]])


def test_bad_index_raises():
    with pytest.raises(IndexError):
        build_graph([[0, 0, 0], [1, 0, 0]], [[0, 1, 2, 3]], transform=False)


def test_load_graph(tmp_path):
    nodes, tets = _write_unit_square(tmp_path, 5)
    g = load_graph(nodes, tets)
    assert g.num_nodes() == 25
    assert g.num_edges() == 2 * 5 * 4
    assert_allclose(g.positions.min(axis=0), [-1.0, -1.0, 0.0])
    assert_allclose(g.positions.max(axis=0), [1.0, 1.0, 0.0])


def test_write_solution_roundtrip(tmp_path):
    nodes, tets = _write_unit_square(tmp_path, 3)
    g = load_graph(nodes, tets)
    g.values = np.arange(g.num_nodes(), dtype=float)
    out = tmp_path / "solution.vtu"
    write_solution(g, out, point_data={"index": np.arange(g.num_nodes())})

    mesh = meshio.read(out)
    assert_allclose(mesh.points, g.positions)
    assert_allclose(mesh.point_data["u"], g.values)
    assert mesh.cells_dict["line"].shape == (g.num_edges(), 2)


def test_write_solution_rejects_bad_point_data(tmp_path, grid):
    g = grid(3)
    with pytest.raises(ValueError):
        write_solution(g, tmp_path / "x.vtu", point_data={"bad": np.zeros(2)})
