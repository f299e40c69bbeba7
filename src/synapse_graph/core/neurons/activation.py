"""Spreading-activation retrieval over the neuron graph.

A query runs in three phases:

1. **Seed**: vector search returns the ``initial_k`` notes most similar to
   the query embedding; their similarity is their initial activation.
2. **Spread**: activation flows breadth-first along synapses for up to
   ``max_hops`` hops.  A neighbour receives
   ``parent_activation * synapse_weight * neighbour_energy * decay_per_hop``.
   A node keeps the maximum score it received over all paths and is only
   expanded again when that maximum strictly improves, which bounds the
   walk on cyclic graphs.
3. **Rank**: per note, the larger of the seed and spread scores is kept,
   notes under ``min_activation`` are dropped and the rest sorted by score.

Notes with energy below ``min_energy`` (dead neurons) neither receive nor
pass on activation.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from synapse_graph.core.embeddings.provider import EmbeddingProvider
from synapse_graph.core.exceptions import RetrievalError
from synapse_graph.core.neurons.config import SpreadingActivationConfig
from synapse_graph.core.neurons.model import ActivatedNote, ActivationSource, Note
from synapse_graph.core.neurons.reinforcement import AutoReinforcementEngine
from synapse_graph.core.storage.base import GraphStore, VectorSearch

logger = logging.getLogger(__name__)

# (note_id, activation, path from seed, synapse weights along path)
_FrontierEntry = tuple[str, float, tuple[str, ...], tuple[float, ...]]


class _QueryRun:
    """State of one query: note cache and best scores seen so far."""

    def __init__(self, store: GraphStore, config: SpreadingActivationConfig) -> None:
        self._store = store
        self.config = config
        self._notes: dict[str, Note | None] = {}

    def note(self, note_id: str) -> Note | None:
        if note_id not in self._notes:
            self._notes[note_id] = self._store.get_note(note_id)
        return self._notes[note_id]

    def energy(self, note_id: str) -> float | None:
        note = self.note(note_id)
        return None if note is None else note.energy

    def is_alive(self, note_id: str) -> bool:
        energy = self.energy(note_id)
        return energy is not None and energy >= self.config.min_energy

    def neighbors(self, note_id: str) -> list[tuple[str, float]]:
        links = list(self._store.get_outgoing_synapses(note_id))
        if self.config.bidirectional:
            links.extend(self._store.get_incoming_synapses(note_id))
        return links

    def seed(self, hits: Sequence[tuple[str, float]]) -> dict[str, float]:
        seeds: dict[str, float] = {}
        for note_id, similarity in hits:
            if not self.is_alive(note_id):
                continue
            score = float(similarity)
            if note_id not in seeds or score > seeds[note_id]:
                seeds[note_id] = score
        return seeds

    def spread(
        self, seeds: dict[str, float]
    ) -> dict[str, tuple[float, ActivationSource]]:
        decay = self.config.decay_per_hop
        activation: dict[str, float] = dict(seeds)
        best: dict[str, tuple[float, ActivationSource]] = {}

        frontier: list[_FrontierEntry] = [
            (nid, score, (nid,), ())
            for nid, score in sorted(seeds.items(), key=lambda kv: (-kv[1], kv[0]))
        ]

        for hop in range(1, self.config.max_hops + 1):
            next_frontier: dict[str, _FrontierEntry] = {}
            for parent, parent_score, path, weights in frontier:
                for target, weight in self.neighbors(parent):
                    if weight <= 0.0 or not self.is_alive(target):
                        continue
                    score = parent_score * weight * self.energy(target) * decay
                    if score <= activation.get(target, 0.0):
                        continue
                    activation[target] = score
                    new_path = path + (target,)
                    new_weights = weights + (float(weight),)
                    best[target] = (score, ActivationSource.spread(new_path, new_weights))
                    next_frontier[target] = (target, score, new_path, new_weights)

            logger.debug("Hop %d reached %d notes", hop, len(next_frontier))
            if not next_frontier:
                break
            frontier = list(next_frontier.values())

        return best

    def rank(
        self,
        seeds: dict[str, float],
        spread: dict[str, tuple[float, ActivationSource]],
    ) -> list[ActivatedNote]:
        merged: dict[str, tuple[float, ActivationSource]] = {
            nid: (score, ActivationSource.seed()) for nid, score in seeds.items()
        }
        for nid, (score, source) in spread.items():
            if nid not in merged or score > merged[nid][0]:
                merged[nid] = (score, source)

        ranked = sorted(
            (
                (nid, score, source)
                for nid, (score, source) in merged.items()
                if score >= self.config.min_activation
            ),
            key=lambda item: (-item[1], item[0]),
        )
        return [
            ActivatedNote(note_id=nid, score=score, source=source, note=self.note(nid))
            for nid, score, source in ranked[: self.config.max_results]
        ]


class SpreadingActivationEngine:
    """Retrieves notes by seeding with vector search and spreading along synapses.

    The engine holds no per-query state, so queries may run concurrently.

    Args:
        store: Store serving notes and synapses.
        vector_search: Nearest-neighbour search over note embeddings.
        embedder: Needed only for :meth:`activate` (text queries).
        config: Default query parameters.
        reinforcement: When given, every successful result is handed to
            :meth:`AutoReinforcementEngine.on_search` without waiting.
    """

    def __init__(
        self,
        store: GraphStore,
        vector_search: VectorSearch,
        embedder: EmbeddingProvider | None = None,
        config: SpreadingActivationConfig | None = None,
        reinforcement: AutoReinforcementEngine | None = None,
    ) -> None:
        self._store = store
        self._vector_search = vector_search
        self._embedder = embedder
        self.config = config or SpreadingActivationConfig()
        self._reinforcement = reinforcement

    def activate(
        self, query: str, config: SpreadingActivationConfig | None = None
    ) -> list[ActivatedNote]:
        """Embed *query* and run :meth:`activate_embedding`.

        Raises:
            RetrievalError: If no embedder is configured or embedding fails.
        """
        if self._embedder is None:
            raise RetrievalError("No embedding provider configured for text queries")
        try:
            embedding = self._embedder.embed_text(query)
        except Exception as exc:
            raise RetrievalError(
                "Failed to embed query", {"model": self._embedder.model_name()}
            ) from exc
        return self.activate_embedding(embedding, config)

    def activate_embedding(
        self,
        embedding: Sequence[float],
        config: SpreadingActivationConfig | None = None,
    ) -> list[ActivatedNote]:
        """Run the seed, spread and rank phases for *embedding*.

        Returns:
            At most ``max_results`` activated notes, best first, ties broken
            by note ID.

        Raises:
            RetrievalError: If vector search or a store read fails.  No
                partial ranking is returned.
        """
        config = config or self.config
        run = _QueryRun(self._store, config)

        try:
            hits = self._vector_search.top_k_similar(embedding, config.initial_k)
            seeds = run.seed(hits)
            spread = run.spread(seeds)
            results = run.rank(seeds, spread)
        except Exception as exc:
            logger.error("Spreading activation failed: %s", exc)
            raise RetrievalError(
                "Spreading activation failed", {"initial_k": config.initial_k}
            ) from exc

        logger.debug(
            "Activation: %d seeds, %d spread, %d results",
            len(seeds),
            len(spread),
            len(results),
        )

        if self._reinforcement is not None and results:
            self._reinforcement.on_search([r.note_id for r in results])
        return results
