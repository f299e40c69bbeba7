"""In-memory code graph for Synapse Graph analytics.

A :class:`CodeGraph` is built fresh for every analytics run and owned by that
run alone.  Nodes live in an arena addressed by a stable integer index; an
``id -> index`` map gives O(1) lookups by node ID and per-node adjacency lists
hold edge indices.  There are no back references between objects, so cyclic
call or import edges never create ownership cycles.
"""

from __future__ import annotations

from collections.abc import Iterator

import igraph as ig

from synapse_graph.core.graph.model import CodeEdge, CodeNode


class CodeGraph:
    """A directed multigraph of code entities keyed by node ID.

    Adding a node whose ID already exists returns the existing index instead
    of replacing it.  Adding an edge whose endpoints are unknown is a no-op
    that returns ``None``.
    """

    def __init__(self) -> None:
        self._nodes: list[CodeNode] = []
        self._index: dict[str, int] = {}
        self._edges: list[CodeEdge] = []
        self._edge_ends: list[tuple[int, int]] = []

        # Adjacency lists of edge indices, one slot per node index.
        self._outgoing: list[list[int]] = []
        self._incoming: list[list[int]] = []

    def add_node(self, node: CodeNode) -> int:
        """Add *node* and return its index (idempotent on ``node.id``)."""
        existing = self._index.get(node.id)
        if existing is not None:
            return existing
        idx = len(self._nodes)
        self._nodes.append(node)
        self._index[node.id] = idx
        self._outgoing.append([])
        self._incoming.append([])
        return idx

    def add_edge(self, edge: CodeEdge) -> int | None:
        """Add *edge* and return its index, or ``None`` if an endpoint is missing."""
        src = self._index.get(edge.source)
        tgt = self._index.get(edge.target)
        if src is None or tgt is None:
            return None
        eidx = len(self._edges)
        self._edges.append(edge)
        self._edge_ends.append((src, tgt))
        self._outgoing[src].append(eidx)
        self._incoming[tgt].append(eidx)
        return eidx

    def get_node(self, node_id: str) -> CodeNode | None:
        """Return the node with *node_id*, or ``None`` if it does not exist."""
        idx = self._index.get(node_id)
        return self._nodes[idx] if idx is not None else None

    def index_of(self, node_id: str) -> int | None:
        """Return the arena index of *node_id*, or ``None``."""
        return self._index.get(node_id)

    def node_at(self, idx: int) -> CodeNode:
        return self._nodes[idx]

    def iter_nodes(self) -> Iterator[CodeNode]:
        """Yield nodes in index order."""
        return iter(self._nodes)

    def iter_edges(self) -> Iterator[CodeEdge]:
        """Yield edges in insertion order."""
        return iter(self._edges)

    def iter_edge_ends(self) -> Iterator[tuple[int, int]]:
        """Yield ``(source_index, target_index)`` for every edge."""
        return iter(self._edge_ends)

    def edge_weight(self, eidx: int) -> float:
        return self._edges[eidx].weight

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def edge_count(self) -> int:
        return len(self._edges)

    def successors(self, idx: int) -> list[int]:
        """Target indices of the outgoing edges of *idx* (one per edge)."""
        return [self._edge_ends[e][1] for e in self._outgoing[idx]]

    def predecessors(self, idx: int) -> list[int]:
        """Source indices of the incoming edges of *idx* (one per edge)."""
        return [self._edge_ends[e][0] for e in self._incoming[idx]]

    def out_degree(self, idx: int) -> int:
        return len(self._outgoing[idx])

    def in_degree(self, idx: int) -> int:
        return len(self._incoming[idx])

    def undirected_neighbors(self, idx: int) -> set[int]:
        """Distinct neighbours of *idx* ignoring direction, excluding *idx* itself."""
        neighbors = set(self.successors(idx))
        neighbors.update(self.predecessors(idx))
        neighbors.discard(idx)
        return neighbors

    def to_igraph(self) -> ig.Graph:
        """Build a directed igraph view with the same vertex indices.

        Vertex ``i`` corresponds to ``node_at(i)``; the ``name`` vertex
        attribute carries the node ID and the ``weight`` edge attribute the
        edge weight.
        """
        graph = ig.Graph(directed=True)
        graph.add_vertices(len(self._nodes))
        graph.add_edges(self._edge_ends)
        if self._nodes:
            graph.vs["name"] = [n.id for n in self._nodes]
        if self._edges:
            graph.es["weight"] = [e.weight for e in self._edges]
        return graph

    def stats(self) -> dict[str, int]:
        """Return a summary of graph size."""
        return {"nodes": len(self._nodes), "edges": len(self._edges)}
