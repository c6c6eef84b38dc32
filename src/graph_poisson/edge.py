"""Module defining the Edge view for undirected mesh graph edges.

This module provides the Edge class, a lightweight handle onto one edge of a
`Graph`, exposing its two endpoint nodes and its Euclidean length.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Tuple

import numpy as np
from numpy.typing import NDArray

if TYPE_CHECKING:
    from .graph import Graph, Node

_LOGGER = logging.getLogger(__name__)


class Edge:
    """Represents an unordered edge between two nodes of a graph.

    An Edge is a view: it stores the owning graph and the edge index and
    reads endpoints from the graph on access. Structural edits to the graph
    (node or edge removal) invalidate outstanding Edge handles.

    Attributes:
        graph (Graph): The owning graph.
        index (int): Dense edge index in ``[0, graph.num_edges())``.
    """

    __slots__ = ("graph", "index")

    def __init__(self, graph: Graph, index: int) -> None:
        """Initialize an Edge handle.

        Args:
            graph (Graph): The owning graph.
            index (int): The edge index.

        Raises:
            IndexError: If `index` is out of range for `graph`.
        """
        if not 0 <= index < graph.num_edges():
            raise IndexError(
                f"Edge index {index} out of range for graph with "
                f"{graph.num_edges()} edges"
            )
        self.graph = graph
        self.index = index

    @property
    def endpoints(self) -> Tuple[int, int]:
        """Return the endpoint node indices ``(i, j)`` with ``i < j``."""
        return self.graph._edges[self.index]

    def node1(self) -> Node:
        """Return the endpoint with the smaller index."""
        return self.graph.node(self.endpoints[0])

    def node2(self) -> Node:
        """Return the endpoint with the larger index."""
        return self.graph.node(self.endpoints[1])

    def vector(self) -> NDArray[Any]:
        """Return ``position(node2) - position(node1)``."""
        i, j = self.endpoints
        return self.graph._positions[j] - self.graph._positions[i]

    def length(self) -> float:
        """Return the Euclidean distance between the endpoints."""
        mag = float(np.linalg.norm(self.vector()))
        _LOGGER.debug("Edge %d length: %.6e", self.index, mag)
        return mag

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Edge):
            return NotImplemented
        return self.graph is other.graph and self.index == other.index

    def __hash__(self) -> int:
        return hash((id(self.graph), self.index))

    def __repr__(self) -> str:
        """Return a string representation of the edge."""
        i, j = self.endpoints
        return f"Edge(index={self.index}, n1={i}, n2={j})"
