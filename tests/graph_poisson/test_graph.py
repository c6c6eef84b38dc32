"""Unit tests for Graph, Node and Edge.

Covers construction, adjacency queries, edge lengths, and index
re-densification after node removal.
"""
from __future__ import annotations

import numpy as np
import pytest

from graph_poisson.edge import Edge
from graph_poisson.geometry import BoundingBox
from graph_poisson.graph import Graph


def _triangle() -> Graph:
    g = Graph()
    a = g.add_node((0.0, 0.0, 0.0))
    b = g.add_node((3.0, 4.0, 0.0))
    c = g.add_node((0.0, 1.0, 0.0))
    g.add_edge(a, b)
    g.add_edge(b, c)
    return g


def _check_consistent(g: Graph) -> None:
    """Every edge is mirrored in both adjacency sets and indices are dense."""
    n = g.num_nodes()
    edges = g.edge_index_array()
    assert len(g._edge_ids) == g.num_edges()
    for k, (i, j) in enumerate(edges.tolist()):
        assert 0 <= i < j < n
        assert g._edge_ids[(i, j)] == k
        assert j in g._adj[i] and i in g._adj[j]
    assert sum(g.degrees()) == 2 * g.num_edges()


def test_add_nodes_and_edges():
    g = _triangle()
    assert g.num_nodes() == 3
    assert g.num_edges() == 2
    assert g.has_edge(0, 1) and g.has_edge(1, 0)
    assert not g.has_edge(0, 2)
    assert g.degree(1) == 2
    assert g.node(1).degree() == 2
    assert [n.index for n in g.node(1).neighbors()] == [0, 2]


def test_duplicate_edge_is_idempotent():
    g = _triangle()
    e = g.add_edge(1, 0)
    assert e.index == 0
    assert g.num_edges() == 2


def test_self_loop_rejected():
    g = _triangle()
    with pytest.raises(ValueError):
        g.add_edge(2, 2)


def test_out_of_range_index():
    g = _triangle()
    with pytest.raises(IndexError):
        g.node(3)
    with pytest.raises(IndexError):
        g.add_edge(0, 7)
    with pytest.raises(IndexError):
        Edge(g, 5)


def test_index_of_accepts_nodes_and_ints():
    g = _triangle()
    assert g.index_of(2) == 2
    assert g.index_of(g.node(1)) == 1
    with pytest.raises(IndexError):
        g.index_of(3)
    with pytest.raises(ValueError):
        g.index_of(_triangle().node(0))


def test_edge_length_and_endpoints():
    g = _triangle()
    e = g.edge(0)
    assert e.length() == pytest.approx(5.0)
    assert e.node1().index == 0
    assert e.node2().index == 1
    np.testing.assert_allclose(e.vector(), [3.0, 4.0, 0.0])
    assert [x.index for x in g.node(1).incident_edges()] == [0, 1]


def test_node_value_payload():
    g = _triangle()
    g.node(2).value = 1.5
    assert g.values.tolist() == [0.0, 0.0, 1.5]
    g.values = [1.0, 2.0, 3.0]
    assert g.node(0).value == 1.0
    with pytest.raises(ValueError):
        g.values = [1.0]


def test_remove_node_redensifies(grid):
    g = grid(4)
    last_pos = g.node(15).position
    last_neighbors = g.neighbors(15)
    g.remove_node(5)
    assert g.num_nodes() == 15
    # the former last node now sits at index 5
    np.testing.assert_allclose(g.node(5).position, last_pos)
    assert g.neighbors(5) == sorted(last_neighbors)
    _check_consistent(g)


def test_remove_last_node():
    g = _triangle()
    g.remove_node(2)
    assert g.num_nodes() == 2
    assert g.num_edges() == 1
    _check_consistent(g)


def test_remove_box(grid):
    g = grid(5)  # coordinates -1, -0.5, 0, 0.5, 1
    removed = g.remove_box(BoundingBox((-0.6, -0.6, -1.0), (0.6, 0.6, 1.0)))
    assert removed == 9
    assert g.num_nodes() == 16
    assert np.all(np.abs(g.positions[:, :2]).max(axis=1) == 1.0)
    _check_consistent(g)


def test_remove_empty_box_is_noop(grid):
    g = grid(3)
    assert g.remove_box(BoundingBox((0.5, 0.5, 0.0), (-0.5, -0.5, 0.0))) == 0
    assert g.num_nodes() == 9


def test_empty_graph_arrays():
    g = Graph()
    assert g.positions.shape == (0, 3)
    assert g.edge_index_array().shape == (0, 2)
    assert g.degrees().shape == (0,)
