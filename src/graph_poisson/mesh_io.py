"""Reading mesh graphs from text files and exporting solutions.

Input is two plain-text files:
  - nodes: one point per line, three whitespace-separated floats;
  - tets: one quad per line, four whitespace-separated node indices.

Each quad ``(a, b, c, d)`` contributes the four edges ``(a, b)``,
``(a, c)``, ``(b, d)`` and ``(c, d)``. The solution is exported with meshio
as line cells carrying the node values as point data.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import meshio
import numpy as np
from numpy.typing import NDArray

from .graph import Graph

_LOGGER = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]

# Maps unit-square input coordinates onto [-1, 1]^2.
_SCALE = 2.0
_SHIFT = np.array([1.0, 1.0, 0.0])


def _parse_records(filename: PathLike, width: int, cast: Any) -> List[List[Any]]:
    records: List[List[Any]] = []
    with open(filename, "r") as fh:
        for lineno, line in enumerate(fh, start=1):
            vals = line.split()
            if len(vals) < width:
                if vals:
                    _LOGGER.debug(
                        "%s:%d: skipping short record %r", filename, lineno, line.strip()
                    )
                continue
            try:
                records.append([cast(v) for v in vals[:width]])
            except ValueError:
                _LOGGER.debug("%s:%d: skipping unparsable record", filename, lineno)
    return records


def read_nodes(filename: PathLike) -> NDArray[np.float64]:
    """Read an (N, 3) array of points."""
    pts = _parse_records(filename, 3, float)
    _LOGGER.info("Loaded %d points from %s", len(pts), filename)
    return np.asarray(pts, dtype=float).reshape(-1, 3)


def read_tets(filename: PathLike) -> NDArray[np.int64]:
    """Read an (M, 4) array of node indices."""
    tets = _parse_records(filename, 4, int)
    _LOGGER.info("Loaded %d quads from %s", len(tets), filename)
    return np.asarray(tets, dtype=np.int64).reshape(-1, 4)


def build_graph(
    points: Sequence[Sequence[float]] | NDArray[Any],
    tets: Sequence[Sequence[int]] | NDArray[Any],
    transform: bool = True,
) -> Graph:
    """Build a graph from points and quads.

    Args:
        points: (N, 3) coordinates.
        tets: (M, 4) node indices into `points`.
        transform (bool): Map each point ``p`` to ``2 p - (1, 1, 0)``.

    Returns:
        Graph: Graph whose node ``i`` is ``points[i]``.

    Raises:
        IndexError: If a quad references a missing point.
    """
    pts = np.asarray(points, dtype=float).reshape(-1, 3)
    quads = np.asarray(tets, dtype=np.int64).reshape(-1, 4)
    if transform:
        pts = _SCALE * pts - _SHIFT

    graph = Graph()
    for p in pts:
        graph.add_node(p)
    for a, b, c, d in quads:
        graph.add_edge(int(a), int(b))
        graph.add_edge(int(a), int(c))
        graph.add_edge(int(b), int(d))
        graph.add_edge(int(c), int(d))

    _LOGGER.info(
        "Built graph with %d nodes and %d edges", graph.num_nodes(), graph.num_edges()
    )
    return graph


def load_graph(
    nodes_file: PathLike, tets_file: PathLike, transform: bool = True
) -> Graph:
    """Read both input files and build the graph."""
    return build_graph(read_nodes(nodes_file), read_tets(tets_file), transform)


def write_solution(
    graph: Graph,
    filename: PathLike,
    point_data: Optional[Dict[str, NDArray[Any]]] = None,
) -> None:
    """Export the graph as line cells, with node values as point data ``"u"``.

    The format is inferred from the extension (e.g. ``.vtu``).

    Args:
        graph (Graph): Graph to export; read only.
        filename: Output path.
        point_data: Extra per-node arrays to include.

    Raises:
        ValueError: If a `point_data` array has the wrong length.
    """
    pts = graph.positions
    lines = graph.edge_index_array()
    data: Dict[str, NDArray[Any]] = {"u": graph.values}
    for name, arr in (point_data or {}).items():
        arr_np = np.asarray(arr)
        if arr_np.shape[0] != pts.shape[0]:
            msg = (
                f"point_data['{name}'] length {arr_np.shape[0]} "
                f"!= n_nodes {pts.shape[0]}"
            )
            _LOGGER.error("write_solution: %s", msg)
            raise ValueError(msg)
        data[name] = arr_np

    cells: List[Tuple[str, NDArray[Any]]] = [("line", lines)]
    mesh = meshio.Mesh(points=pts, cells=cells, point_data=data)
    try:
        mesh.write(os.fspath(filename))
    except Exception:
        _LOGGER.exception("write_solution failed for '%s'.", filename)
        raise
    _LOGGER.info(
        "Solution written to '%s' (nodes=%d, lines=%d, point_data=%d)",
        filename,
        pts.shape[0],
        lines.shape[0],
        len(data),
    )
