"""Storage abstraction for Synapse Graph.

Defines the :class:`GraphStore` and :class:`VectorSearch` protocols that
every concrete backend (Neo4j, in-memory) must satisfy.  The engines only
ever talk to these protocols; backends are injected at construction.

Concurrency guarantees are delegated to the backend: a single
:meth:`GraphStore.fetch_project_graph` call reads one snapshot, and
:meth:`GraphStore.increment_energy` / :meth:`GraphStore.upsert_synapse` are
atomic per record.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

from synapse_graph.core.graph.model import GraphScope
from synapse_graph.core.neurons.model import Note


@runtime_checkable
class GraphStore(Protocol):
    """Protocol that every Synapse Graph store backend must implement."""

    def fetch_project_graph(
        self, project_id: str, scope: GraphScope = GraphScope.ALL
    ) -> dict[str, list[dict[str, Any]]]:
        """Return the code graph of *project_id* restricted to *scope*.

        Returns:
            ``{"nodes": [...], "edges": [...]}`` where each node record has
            ``id``, ``type``, ``name`` and ``path`` and each edge record has
            ``source``, ``target``, ``type``, ``label`` and ``weight``.
        """
        ...

    def batch_write_node_metrics(
        self, project_id: str, updates: Mapping[str, Mapping[str, Any]]
    ) -> int:
        """Write property updates keyed by node ID in one batch.

        Returns:
            The number of nodes updated.
        """
        ...

    def get_note(self, note_id: str) -> Note | None:
        """Return a single note by ID, or ``None`` if not found."""
        ...

    def get_outgoing_synapses(self, note_id: str) -> list[tuple[str, float]]:
        """Return ``(target_id, weight)`` for every synapse leaving *note_id*."""
        ...

    def get_incoming_synapses(self, note_id: str) -> list[tuple[str, float]]:
        """Return ``(source_id, weight)`` for every synapse entering *note_id*."""
        ...

    def upsert_synapse(self, source_id: str, target_id: str, weight_delta: float) -> float:
        """Add *weight_delta* to a synapse, creating it with that weight if absent.

        Returns:
            The new weight.
        """
        ...

    def increment_energy(self, note_id: str, delta: float) -> float | None:
        """Atomically add *delta* to a note's energy.

        Returns:
            The new energy, or ``None`` if the note does not exist.
        """
        ...

    def get_notes_for_files(self, project_id: str, file_paths: Sequence[str]) -> list[str]:
        """Return IDs of notes linked to any of *file_paths* in *project_id*."""
        ...


@runtime_checkable
class VectorSearch(Protocol):
    """Nearest-neighbour search over note embeddings."""

    def top_k_similar(
        self, query_embedding: Sequence[float], k: int
    ) -> list[tuple[str, float]]:
        """Return up to *k* ``(note_id, similarity)`` pairs, best first."""
        ...
