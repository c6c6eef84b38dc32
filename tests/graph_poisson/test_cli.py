from __future__ import annotations

from pathlib import Path

import meshio
import numpy as np

from graph_poisson.cli import main


def _write_inputs(tmp_path: Path, n: int, with_quads: bool = True) -> tuple[str, str]:
    xs = np.linspace(0.0, 1.0, n)
    nodes = tmp_path / "nodes.txt"
    tets = tmp_path / "tets.txt"
    nodes.write_text("".join(f"{x} {y} 0\n" for y in xs for x in xs))
    lines = []
    if with_quads:
        for r in range(n - 1):
            for c in range(n - 1):
                a = r * n + c
                lines.append(f"{a} {a + 1} {a + n} {a + n + 1}\n")
    tets.write_text("".join(lines))
    return str(nodes), str(tets)


def test_cli_solves_and_writes(tmp_path, capsys):
    nodes, tets = _write_inputs(tmp_path, 11)
    out = tmp_path / "u.vtu"
    code = main([nodes, tets, "--no-holes", "--max-iter", "1000", "-o", str(out)])
    assert code == 0
    assert "converged" in capsys.readouterr().out
    mesh = meshio.read(out)
    assert mesh.point_data["u"].shape == (121,)


def test_cli_with_holes_and_jacobi(tmp_path):
    nodes, tets = _write_inputs(tmp_path, 21)
    assert main([nodes, tets, "--jacobi", "--max-iter", "2000"]) == 0


def test_cli_reports_non_convergence(tmp_path, capsys):
    nodes, tets = _write_inputs(tmp_path, 11)
    code = main([nodes, tets, "--no-holes", "--max-iter", "1"])
    assert code == 1
    assert "max_iterations" in capsys.readouterr().out


def test_cli_degenerate_mesh(tmp_path, capsys):
    nodes, tets = _write_inputs(tmp_path, 3, with_quads=False)
    assert main([nodes, tets]) == 1
    assert "no edges" in capsys.readouterr().out
