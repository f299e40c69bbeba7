"""Result and configuration types for graph analytics.

Results are frozen dataclasses: once an analytics run produces a
:class:`GraphAnalytics` it can be shared read-only between consumers.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType

from synapse_graph.core.exceptions import ConfigurationError


@dataclass(frozen=True)
class AnalyticsConfig:
    """Tuning parameters for the analytics algorithms."""

    pagerank_damping: float = 0.85
    pagerank_tolerance: float = 1e-6
    pagerank_max_iterations: int = 100

    louvain_resolution: float = 1.0
    louvain_max_passes: int = 100
    louvain_max_levels: int = 10

    # Fewer nodes with two or more neighbours than this and the health
    # report's average coupling is reported as 0.0.
    min_clustering_sample: int = 3

    god_function_percentile: float = 0.95

    def __post_init__(self) -> None:
        if not 0.0 < self.pagerank_damping < 1.0:
            raise ConfigurationError(
                "pagerank_damping must be in (0, 1)",
                {"pagerank_damping": self.pagerank_damping},
            )
        if self.pagerank_tolerance <= 0.0:
            raise ConfigurationError(
                "pagerank_tolerance must be positive",
                {"pagerank_tolerance": self.pagerank_tolerance},
            )
        if self.pagerank_max_iterations < 1:
            raise ConfigurationError(
                "pagerank_max_iterations must be at least 1",
                {"pagerank_max_iterations": self.pagerank_max_iterations},
            )
        if self.louvain_resolution <= 0.0:
            raise ConfigurationError(
                "louvain_resolution must be positive",
                {"louvain_resolution": self.louvain_resolution},
            )
        if self.louvain_max_passes < 1 or self.louvain_max_levels < 1:
            raise ConfigurationError(
                "louvain pass and level caps must be at least 1",
                {
                    "louvain_max_passes": self.louvain_max_passes,
                    "louvain_max_levels": self.louvain_max_levels,
                },
            )
        if self.min_clustering_sample < 0:
            raise ConfigurationError(
                "min_clustering_sample must not be negative",
                {"min_clustering_sample": self.min_clustering_sample},
            )
        if not 0.0 <= self.god_function_percentile <= 1.0:
            raise ConfigurationError(
                "god_function_percentile must be in [0, 1]",
                {"god_function_percentile": self.god_function_percentile},
            )


@dataclass(frozen=True)
class NodeMetrics:
    """Per-node scores produced by an analytics run."""

    pagerank: float = 0.0
    betweenness: float = 0.0
    clustering_coefficient: float = 0.0
    community_id: int = 0
    component_id: int = 0
    in_degree: int = 0
    out_degree: int = 0


@dataclass(frozen=True)
class CommunityInfo:
    """A community detected by Louvain."""

    id: int
    members: frozenset[str]
    label: str = ""

    @property
    def size(self) -> int:
        return len(self.members)


@dataclass(frozen=True)
class ComponentInfo:
    """A weakly connected component.  ``is_main`` marks the largest one."""

    id: int
    members: frozenset[str]
    is_main: bool = False

    @property
    def size(self) -> int:
        return len(self.members)


@dataclass(frozen=True)
class CodeHealthReport:
    """Global health metrics derived from the graph structure.

    - ``god_functions``: nodes whose total degree reaches the configured
      percentile.
    - ``circular_dependencies``: strongly connected components larger than
      one node.
    - ``orphan_files``: file nodes without any edge.
    - ``avg_coupling`` / ``max_coupling``: mean and max clustering
      coefficient over nodes with at least two neighbours.
    """

    god_functions: tuple[str, ...] = ()
    circular_dependencies: tuple[tuple[str, ...], ...] = ()
    orphan_files: tuple[str, ...] = ()
    avg_coupling: float = 0.0
    max_coupling: float = 0.0


@dataclass(frozen=True)
class GraphAnalytics:
    """Aggregate result of an analytics run over one :class:`CodeGraph`."""

    metrics: Mapping[str, NodeMetrics] = field(
        default_factory=lambda: MappingProxyType({})
    )
    communities: tuple[CommunityInfo, ...] = ()
    components: tuple[ComponentInfo, ...] = ()
    health: CodeHealthReport = field(default_factory=CodeHealthReport)
    modularity: float = 0.0
    node_count: int = 0
    edge_count: int = 0
    duration_seconds: float = 0.0

    def __post_init__(self) -> None:
        if not isinstance(self.metrics, MappingProxyType):
            object.__setattr__(self, "metrics", MappingProxyType(dict(self.metrics)))

    @classmethod
    def empty(cls, duration_seconds: float = 0.0) -> GraphAnalytics:
        """The zero-valued result returned for graphs without nodes."""
        return cls(duration_seconds=duration_seconds)

    def community_of(self, node_id: str) -> CommunityInfo | None:
        """Return the community containing *node_id*, or ``None``."""
        metrics = self.metrics.get(node_id)
        if metrics is None:
            return None
        for community in self.communities:
            if community.id == metrics.community_id:
                return community
        return None


@dataclass(frozen=True)
class ProjectAnalytics:
    """File-graph and function-graph analytics computed for one project."""

    project_id: str
    file_analytics: GraphAnalytics
    function_analytics: GraphAnalytics
    computed_at: datetime
