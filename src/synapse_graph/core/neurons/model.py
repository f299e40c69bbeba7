"""Neuron data model: notes and activation results.

A *note* (neuron) carries an ``energy`` gating its participation in
spreading activation.  Synapses are not modelled as objects: stores return them
as ``(neighbour_id, weight)`` pairs per directed edge.
An :class:`ActivatedNote` is one ranked result of a query, with an
:class:`ActivationSource` explaining why it was included.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


@dataclass
class Note:
    """A knowledge note as stored in the graph store."""

    id: str
    content: str
    energy: float = 1.0
    embedding: tuple[float, ...] = ()
    project_id: str | None = None


class SourceKind(Enum):
    SEED = "seed"
    SPREAD = "spread"


@dataclass(frozen=True)
class ActivationSource:
    """Provenance of an activated note.

    Seeds come straight from vector search (``hops == 0``).  Spread results
    record the hop count, the parent note they were reached ``via``, the
    full note-id ``path`` starting at the seed, and the synapse ``weights``
    along that path (one fewer than ``path``).
    """

    kind: SourceKind
    hops: int = 0
    via: str | None = None
    path: tuple[str, ...] = ()
    weights: tuple[float, ...] = ()

    @classmethod
    def seed(cls) -> ActivationSource:
        return cls(kind=SourceKind.SEED)

    @classmethod
    def spread(
        cls, path: tuple[str, ...], weights: tuple[float, ...]
    ) -> ActivationSource:
        return cls(
            kind=SourceKind.SPREAD,
            hops=len(weights),
            via=path[-2] if len(path) >= 2 else None,
            path=path,
            weights=weights,
        )

    @property
    def is_seed(self) -> bool:
        return self.kind is SourceKind.SEED


@dataclass(frozen=True)
class ActivatedNote:
    """A note returned by spreading activation, with its final score."""

    note_id: str
    score: float
    source: ActivationSource = field(default_factory=ActivationSource.seed)
    note: Note | None = None
