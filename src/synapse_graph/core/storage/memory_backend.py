"""In-memory store implementing :class:`GraphStore` and :class:`VectorSearch`.

Used for tests and local experiments; pass it to
:func:`~synapse_graph.runtime.build_runtime` explicitly, which otherwise
connects a Neo4j store.  A single lock guards all state, which makes every
individual read and increment atomic.  Synapses are indexed by source and by
target, so neighbour lookups do not scan the whole synapse set.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping, Sequence
from dataclasses import replace
from typing import Any

import numpy as np

from synapse_graph.core.graph.model import CodeEdge, CodeNode, GraphScope
from synapse_graph.core.neurons.model import Note

logger = logging.getLogger(__name__)


class InMemoryStore:
    """Dictionary-backed store for code graphs, notes and synapses."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        # project_id -> node_id -> node
        self._code_nodes: dict[str, dict[str, CodeNode]] = {}
        self._code_edges: dict[str, list[CodeEdge]] = {}
        self._node_metrics: dict[str, dict[str, dict[str, Any]]] = {}

        self._notes: dict[str, Note] = {}
        # source -> target -> weight, and the same weights keyed target -> source
        self._outgoing: dict[str, dict[str, float]] = {}
        self._incoming: dict[str, dict[str, float]] = {}
        # (project_id, file_path) -> note ids
        self._file_links: dict[tuple[str, str], list[str]] = {}

    # ------------------------------------------------------------------
    # Seeding helpers
    # ------------------------------------------------------------------

    def add_code_node(self, project_id: str, node: CodeNode) -> None:
        with self._lock:
            self._code_nodes.setdefault(project_id, {})[node.id] = node

    def add_code_edge(self, project_id: str, edge: CodeEdge) -> None:
        with self._lock:
            self._code_edges.setdefault(project_id, []).append(edge)

    def add_note(self, note: Note) -> None:
        with self._lock:
            self._notes[note.id] = note

    def set_synapse(self, source_id: str, target_id: str, weight: float) -> None:
        with self._lock:
            self._put_synapse(source_id, target_id, weight)

    def get_synapse(self, source_id: str, target_id: str) -> float | None:
        with self._lock:
            return self._outgoing.get(source_id, {}).get(target_id)

    def _put_synapse(self, source_id: str, target_id: str, weight: float) -> None:
        # Caller holds the lock.
        self._outgoing.setdefault(source_id, {})[target_id] = weight
        self._incoming.setdefault(target_id, {})[source_id] = weight

    def link_note_to_file(self, project_id: str, note_id: str, file_path: str) -> None:
        with self._lock:
            linked = self._file_links.setdefault((project_id, file_path), [])
            if note_id not in linked:
                linked.append(note_id)

    def get_node_metrics(self, project_id: str, node_id: str) -> dict[str, Any] | None:
        """Return the last metrics written for *node_id*, or ``None``."""
        with self._lock:
            props = self._node_metrics.get(project_id, {}).get(node_id)
            return dict(props) if props is not None else None

    # ------------------------------------------------------------------
    # GraphStore
    # ------------------------------------------------------------------

    def fetch_project_graph(
        self, project_id: str, scope: GraphScope = GraphScope.ALL
    ) -> dict[str, list[dict[str, Any]]]:
        with self._lock:
            nodes = [
                n
                for n in self._code_nodes.get(project_id, {}).values()
                if n.type in scope.node_types
            ]
            ids = {n.id for n in nodes}
            edges = [
                e
                for e in self._code_edges.get(project_id, [])
                if e.type in scope.edge_types and e.source in ids and e.target in ids
            ]
            return {
                "nodes": [
                    {"id": n.id, "type": n.type.value, "name": n.name, "path": n.path}
                    for n in nodes
                ],
                "edges": [
                    {
                        "source": e.source,
                        "target": e.target,
                        "type": e.type.value,
                        "label": e.label,
                        "weight": e.weight,
                    }
                    for e in edges
                ],
            }

    def batch_write_node_metrics(
        self, project_id: str, updates: Mapping[str, Mapping[str, Any]]
    ) -> int:
        with self._lock:
            known = self._code_nodes.get(project_id, {})
            stored = self._node_metrics.setdefault(project_id, {})
            written = 0
            for node_id, props in updates.items():
                if node_id not in known:
                    continue
                stored.setdefault(node_id, {}).update(props)
                written += 1
            return written

    def get_note(self, note_id: str) -> Note | None:
        with self._lock:
            note = self._notes.get(note_id)
            return replace(note) if note is not None else None

    def get_outgoing_synapses(self, note_id: str) -> list[tuple[str, float]]:
        with self._lock:
            return list(self._outgoing.get(note_id, {}).items())

    def get_incoming_synapses(self, note_id: str) -> list[tuple[str, float]]:
        with self._lock:
            return list(self._incoming.get(note_id, {}).items())

    def upsert_synapse(self, source_id: str, target_id: str, weight_delta: float) -> float:
        with self._lock:
            weight = self._outgoing.get(source_id, {}).get(target_id, 0.0) + weight_delta
            self._put_synapse(source_id, target_id, weight)
            return weight

    def increment_energy(self, note_id: str, delta: float) -> float | None:
        with self._lock:
            note = self._notes.get(note_id)
            if note is None:
                return None
            note.energy += delta
            return note.energy

    def get_notes_for_files(self, project_id: str, file_paths: Sequence[str]) -> list[str]:
        with self._lock:
            result: list[str] = []
            for path in file_paths:
                for nid in self._file_links.get((project_id, path), []):
                    if nid not in result:
                        result.append(nid)
            return result

    # ------------------------------------------------------------------
    # VectorSearch
    # ------------------------------------------------------------------

    def top_k_similar(
        self, query_embedding: Sequence[float], k: int
    ) -> list[tuple[str, float]]:
        """Cosine similarity against every note that has an embedding."""
        with self._lock:
            candidates = [(n.id, n.embedding) for n in self._notes.values() if n.embedding]
        if not candidates or k <= 0:
            return []

        query = np.asarray(query_embedding, dtype=np.float64)
        query_norm = np.linalg.norm(query)
        if query_norm == 0.0:
            return []

        scored: list[tuple[str, float]] = []
        for note_id, embedding in candidates:
            vector = np.asarray(embedding, dtype=np.float64)
            if vector.shape != query.shape:
                logger.debug("Skipping note %s: embedding size mismatch", note_id)
                continue
            norm = np.linalg.norm(vector)
            if norm == 0.0:
                continue
            scored.append((note_id, float(np.dot(query, vector) / (query_norm * norm))))

        scored.sort(key=lambda item: (-item[1], item[0]))
        return scored[:k]
