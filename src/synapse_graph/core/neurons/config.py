"""Configuration for spreading activation and auto-reinforcement."""

from __future__ import annotations

from dataclasses import dataclass

from synapse_graph.core.exceptions import ConfigurationError


@dataclass(frozen=True)
class SpreadingActivationConfig:
    """Parameters of a spreading-activation query.

    Attributes:
        initial_k: Number of seed notes taken from vector search.
        max_hops: Maximum synapse hops from a seed.
        min_activation: Results scoring below this are dropped.
        decay_per_hop: Multiplier applied at every hop.
        min_energy: Notes below this energy are dead neurons and take no
            part in the query.
        max_results: Maximum number of results returned.
        bidirectional: Also spread against synapse direction.
    """

    initial_k: int = 20
    max_hops: int = 2
    min_activation: float = 0.1
    decay_per_hop: float = 0.5
    min_energy: float = 0.05
    max_results: int = 10
    bidirectional: bool = False

    def __post_init__(self) -> None:
        if self.initial_k < 1:
            raise ConfigurationError(
                "initial_k must be at least 1", {"initial_k": self.initial_k}
            )
        if self.max_hops < 0:
            raise ConfigurationError(
                "max_hops must not be negative", {"max_hops": self.max_hops}
            )
        if self.max_results < 1:
            raise ConfigurationError(
                "max_results must be at least 1", {"max_results": self.max_results}
            )
        if not 0.0 <= self.decay_per_hop <= 1.0:
            raise ConfigurationError(
                "decay_per_hop must be in [0, 1]", {"decay_per_hop": self.decay_per_hop}
            )
        if self.min_activation < 0.0 or self.min_energy < 0.0:
            raise ConfigurationError(
                "thresholds must not be negative",
                {"min_activation": self.min_activation, "min_energy": self.min_energy},
            )


@dataclass(frozen=True)
class AutoReinforcementConfig:
    """Boosts applied by the reinforcement hooks.

    ``enabled`` is the master switch: when false every hook is a no-op.
    ``max_search_notes`` caps how many notes of a search result are
    reinforced, bounding the number of synapse pairs to ``n * (n - 1)``.
    """

    enabled: bool = True
    search_energy_boost: float = 0.05
    search_synapse_boost: float = 0.03
    commit_energy_boost: float = 0.1
    context_energy_boost: float = 0.02
    max_search_notes: int = 10
    max_workers: int = 2

    def __post_init__(self) -> None:
        boosts = {
            "search_energy_boost": self.search_energy_boost,
            "search_synapse_boost": self.search_synapse_boost,
            "commit_energy_boost": self.commit_energy_boost,
            "context_energy_boost": self.context_energy_boost,
        }
        negative = {k: v for k, v in boosts.items() if v < 0.0}
        if negative:
            raise ConfigurationError("boosts must not be negative", negative)
        if self.max_search_notes < 0:
            raise ConfigurationError(
                "max_search_notes must not be negative",
                {"max_search_notes": self.max_search_notes},
            )
        if self.max_workers < 1:
            raise ConfigurationError(
                "max_workers must be at least 1", {"max_workers": self.max_workers}
            )
