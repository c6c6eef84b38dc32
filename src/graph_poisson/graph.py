"""Module defining the Graph and Node classes for unstructured meshes.

This module provides an undirected graph of 3D points with adjacency. Node
indices are dense and zero-based, so they double as row indices into the
solution vector and the discrete operator. Removing a node re-densifies the
indices by moving the last node into the freed slot.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, List, Sequence, Set, Tuple, Union

import numpy as np
from numpy.typing import NDArray

from .edge import Edge
from .geometry import BoundingBox, PointLike, as_point

_LOGGER = logging.getLogger(__name__)

NodeRef = Union["Node", int]


class Node:
    """Lightweight handle onto one vertex of a `Graph`.

    Attributes:
        graph (Graph): The owning graph.
        index (int): Dense node index in ``[0, graph.num_nodes())``.
    """

    __slots__ = ("graph", "index")

    def __init__(self, graph: Graph, index: int) -> None:
        if not 0 <= index < graph.num_nodes():
            raise IndexError(
                f"Node index {index} out of range for graph with "
                f"{graph.num_nodes()} nodes"
            )
        self.graph = graph
        self.index = index

    @property
    def position(self) -> NDArray[Any]:
        """Return the node coordinates as a (3,) array (read-only copy)."""
        return self.graph._positions[self.index].copy()

    @property
    def value(self) -> float:
        """Scalar payload, typically the solved field value."""
        return self.graph._values[self.index]

    @value.setter
    def value(self, v: float) -> None:
        self.graph._values[self.index] = float(v)

    def degree(self) -> int:
        """Return the number of incident edges."""
        return len(self.graph._adj[self.index])

    def neighbors(self) -> List[Node]:
        """Return adjacent nodes in ascending index order."""
        return [self.graph.node(j) for j in sorted(self.graph._adj[self.index])]

    def incident_edges(self) -> List[Edge]:
        """Return edges touching this node, ordered by neighbour index."""
        g = self.graph
        return [
            Edge(g, g._edge_ids[_key(self.index, j)]) for j in sorted(g._adj[self.index])
        ]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Node):
            return NotImplemented
        return self.graph is other.graph and self.index == other.index

    def __hash__(self) -> int:
        return hash((id(self.graph), self.index))

    def __repr__(self) -> str:
        return f"Node(index={self.index}, position={self.position.tolist()})"


def _key(i: int, j: int) -> Tuple[int, int]:
    return (i, j) if i < j else (j, i)


class Graph:
    """Undirected graph of 3D points.

    Attributes:
        _positions (List[NDArray[Any]]): Node coordinates, one (3,) array per node.
        _values (List[float]): Per-node scalar payload.
        _adj (List[Set[int]]): Neighbour index sets.
        _edges (List[Tuple[int, int]]): Edge endpoints, smaller index first.
        _edge_ids (Dict[Tuple[int, int], int]): Endpoint pair to edge index.
    """

    def __init__(self) -> None:
        self._positions: List[NDArray[Any]] = []
        self._values: List[float] = []
        self._adj: List[Set[int]] = []
        self._edges: List[Tuple[int, int]] = []
        self._edge_ids: Dict[Tuple[int, int], int] = {}

    # ------------------------------------------------------------------ sizes
    def num_nodes(self) -> int:
        return len(self._positions)

    def num_edges(self) -> int:
        return len(self._edges)

    def __len__(self) -> int:
        return self.num_nodes()

    # ------------------------------------------------------------------ access
    def node(self, i: int) -> Node:
        return Node(self, int(i))

    def edge(self, k: int) -> Edge:
        return Edge(self, int(k))

    def nodes(self) -> Iterator[Node]:
        """Iterate over nodes in index order."""
        for i in range(self.num_nodes()):
            yield Node(self, i)

    def edges(self) -> Iterator[Edge]:
        """Iterate over edges in index order."""
        for k in range(self.num_edges()):
            yield Edge(self, k)

    def neighbors(self, n: NodeRef) -> List[int]:
        """Return the sorted neighbour indices of node `n`."""
        return sorted(self._adj[self.index_of(n)])

    def degree(self, n: NodeRef) -> int:
        return len(self._adj[self.index_of(n)])

    def has_edge(self, a: NodeRef, b: NodeRef) -> bool:
        """Return True if `a` and `b` are adjacent (order does not matter)."""
        return _key(self.index_of(a), self.index_of(b)) in self._edge_ids

    @property
    def positions(self) -> NDArray[Any]:
        """Return node coordinates as an (N, 3) array."""
        if not self._positions:
            return np.zeros((0, 3), dtype=float)
        return np.vstack(self._positions)

    @property
    def values(self) -> NDArray[Any]:
        """Return node payloads as an (N,) array."""
        return np.asarray(self._values, dtype=float)

    @values.setter
    def values(self, vals: Sequence[float] | NDArray[Any]) -> None:
        arr = np.asarray(vals, dtype=float).reshape(-1)
        if arr.shape[0] != self.num_nodes():
            raise ValueError(
                f"values has length {arr.shape[0]}, graph has {self.num_nodes()} nodes"
            )
        self._values = arr.tolist()

    def degrees(self) -> NDArray[np.int64]:
        """Return node degrees as an (N,) integer array."""
        return np.fromiter(
            (len(s) for s in self._adj), dtype=np.int64, count=self.num_nodes()
        )

    def edge_index_array(self) -> NDArray[np.int64]:
        """Return edge endpoints as an (E, 2) integer array."""
        if not self._edges:
            return np.zeros((0, 2), dtype=np.int64)
        return np.asarray(self._edges, dtype=np.int64)

    # ------------------------------------------------------------------ edits
    def add_node(self, position: PointLike, value: float = 0.0) -> Node:
        """Append a node and return its handle."""
        self._positions.append(as_point(position))
        self._values.append(float(value))
        self._adj.append(set())
        return Node(self, len(self._positions) - 1)

    def add_edge(self, a: NodeRef, b: NodeRef) -> Edge:
        """Connect `a` and `b`, returning the (possibly existing) edge.

        Raises:
            ValueError: If `a` and `b` are the same node.
        """
        i, j = self.index_of(a), self.index_of(b)
        if i == j:
            raise ValueError(f"Self-loop on node {i} is not allowed")
        key = _key(i, j)
        existing = self._edge_ids.get(key)
        if existing is not None:
            return Edge(self, existing)
        self._edge_ids[key] = len(self._edges)
        self._edges.append(key)
        self._adj[i].add(j)
        self._adj[j].add(i)
        return Edge(self, len(self._edges) - 1)

    def remove_edge(self, a: NodeRef, b: NodeRef) -> bool:
        """Remove the edge between `a` and `b` if present.

        The last edge takes the freed edge index.

        Returns:
            True if an edge was removed.
        """
        i, j = self.index_of(a), self.index_of(b)
        key = _key(i, j)
        k = self._edge_ids.pop(key, None)
        if k is None:
            return False
        self._adj[i].discard(j)
        self._adj[j].discard(i)
        last = len(self._edges) - 1
        if k != last:
            moved = self._edges[last]
            self._edges[k] = moved
            self._edge_ids[moved] = k
        self._edges.pop()
        return True

    def remove_node(self, n: NodeRef) -> None:
        """Remove a node and its incident edges.

        The node with the largest index is moved into the freed slot, so
        indices stay dense. Handles to the moved node and to any removed or
        relocated edge are invalidated.
        """
        i = self.index_of(n)
        for j in list(self._adj[i]):
            self.remove_edge(i, j)

        last = self.num_nodes() - 1
        if i != last:
            for j in list(self._adj[last]):
                k = self._edge_ids.pop(_key(last, j))
                self._adj[j].discard(last)
                self._adj[j].add(i)
                new_key = _key(i, j)
                self._edges[k] = new_key
                self._edge_ids[new_key] = k
            self._positions[i] = self._positions[last]
            self._values[i] = self._values[last]
            self._adj[i] = self._adj[last]
        self._positions.pop()
        self._values.pop()
        self._adj.pop()

    def remove_box(self, bbox: BoundingBox) -> int:
        """Remove every node whose position lies in `bbox`.

        Args:
            bbox (BoundingBox): Region to clear (faces inclusive).

        Returns:
            int: Number of nodes removed.
        """
        if self.num_nodes() == 0 or bbox.is_empty:
            return 0
        inside = np.flatnonzero(bbox.contains_points(self.positions))
        # Descending order keeps pending indices valid under swap-with-last.
        for i in inside[::-1]:
            self.remove_node(int(i))
        _LOGGER.debug(
            "remove_box(%s, %s): removed %d nodes, %d remain",
            bbox.lo,
            bbox.hi,
            inside.shape[0],
            self.num_nodes(),
        )
        return int(inside.shape[0])

    # ------------------------------------------------------------------ misc
    def index_of(self, n: NodeRef) -> int:
        """Return the dense index of `n` (a `Node` or an int).

        Raises:
            IndexError: If the index is out of range.
            ValueError: If `n` is a node of another graph.
        """
        if isinstance(n, Node):
            if n.graph is not self:
                raise ValueError("Node belongs to a different graph")
            i = n.index
        else:
            i = int(n)
        if not 0 <= i < self.num_nodes():
            raise IndexError(
                f"Node index {i} out of range for graph with {self.num_nodes()} nodes"
            )
        return i

    def __repr__(self) -> str:
        return f"Graph(num_nodes={self.num_nodes()}, num_edges={self.num_edges()})"
