"""Analytics orchestrator for Synapse Graph.

Runs every graph algorithm over one extracted :class:`CodeGraph` and
assembles a :class:`GraphAnalytics` result, then persists it.

Algorithms executed by :func:`compute_all`, in order:
    1. PageRank
    2. Betweenness centrality
    3. Louvain community detection
    4. Clustering coefficient
    5. Weakly connected components
    6. Degrees and code health report

The algorithms only share the immutable graph.  The store is written once,
after every algorithm has succeeded; a failed run leaves the store untouched.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import datetime, timezone

import igraph as ig

from synapse_graph.core.analytics.centrality import (
    compute_betweenness,
    compute_clustering,
)
from synapse_graph.core.analytics.community import detect_communities
from synapse_graph.core.analytics.components import compute_components
from synapse_graph.core.analytics.extraction import GraphExtractor
from synapse_graph.core.analytics.health import compute_health
from synapse_graph.core.analytics.models import (
    AnalyticsConfig,
    GraphAnalytics,
    NodeMetrics,
    ProjectAnalytics,
)
from synapse_graph.core.analytics.pagerank import compute_pagerank
from synapse_graph.core.analytics.writer import AnalyticsWriter
from synapse_graph.core.exceptions import AnalyticsError
from synapse_graph.core.graph.graph import CodeGraph
from synapse_graph.core.graph.model import GraphScope
from synapse_graph.core.storage.base import GraphStore

logger = logging.getLogger(__name__)


def _check_partition(graph: CodeGraph, assignment: dict[str, int], what: str) -> None:
    if len(assignment) != graph.node_count or any(
        node.id not in assignment for node in graph.iter_nodes()
    ):
        raise AnalyticsError(
            f"{what} assignment is not a partition of the node set",
            {"nodes": graph.node_count, "assigned": len(assignment)},
        )


def compute_all(graph: CodeGraph, config: AnalyticsConfig | None = None) -> GraphAnalytics:
    """Run all analytics algorithms over *graph*.

    Parameters
    ----------
    graph:
        The graph to analyse.  It is not modified.
    config:
        Algorithm parameters; defaults to :class:`AnalyticsConfig`.

    Returns
    -------
    GraphAnalytics
        Per-node metrics, communities, components and the health report.
        A graph without nodes yields :meth:`GraphAnalytics.empty`.

    Raises
    ------
    AnalyticsError
        If the graph library fails or a partition invariant is violated.
    """
    config = config or AnalyticsConfig()
    start = time.monotonic()

    if graph.node_count == 0:
        return GraphAnalytics.empty(duration_seconds=time.monotonic() - start)

    try:
        pagerank = compute_pagerank(graph, config)
        betweenness = compute_betweenness(graph)
        communities = detect_communities(graph, config)
        clustering = compute_clustering(graph)
        component_map, components = compute_components(graph)
    except ig.InternalError as exc:
        raise AnalyticsError(
            "Graph library failure during analytics",
            {"nodes": graph.node_count, "edges": graph.edge_count},
        ) from exc

    _check_partition(graph, communities.node_to_community, "Community")
    _check_partition(graph, component_map, "Component")

    metrics: dict[str, NodeMetrics] = {}
    for idx, node in enumerate(graph.iter_nodes()):
        metrics[node.id] = NodeMetrics(
            pagerank=pagerank.get(node.id, 0.0),
            betweenness=betweenness.get(node.id, 0.0),
            clustering_coefficient=clustering.get(node.id, 0.0),
            community_id=communities.node_to_community[node.id],
            component_id=component_map[node.id],
            in_degree=graph.in_degree(idx),
            out_degree=graph.out_degree(idx),
        )

    health = compute_health(graph, metrics, config)
    duration = time.monotonic() - start

    logger.info(
        "Analytics computed: %d nodes, %d edges, %d communities, %d components in %.2fs",
        graph.node_count,
        graph.edge_count,
        len(communities.communities),
        len(components),
        duration,
    )
    return GraphAnalytics(
        metrics=metrics,
        communities=tuple(communities.communities),
        components=tuple(components),
        health=health,
        modularity=communities.modularity,
        node_count=graph.node_count,
        edge_count=graph.edge_count,
        duration_seconds=duration,
    )


class GraphAnalyticsEngine:
    """Extract, compute and write analytics for a project.

    The engine keeps no per-run state, so concurrent runs (for the same or
    different projects) never interfere with each other.
    """

    def __init__(
        self,
        store: GraphStore,
        config: AnalyticsConfig | None = None,
        progress_callback: Callable[[str, float], None] | None = None,
    ) -> None:
        self.config = config or AnalyticsConfig()
        self._extractor = GraphExtractor(store)
        self._writer = AnalyticsWriter(store)
        self._progress_callback = progress_callback

    def _report(self, phase: str, pct: float) -> None:
        if self._progress_callback is not None:
            self._progress_callback(phase, pct)

    def analyze_graph(
        self, project_id: str, scope: GraphScope = GraphScope.ALL
    ) -> GraphAnalytics:
        """Run the extract -> compute -> write pipeline for one scope.

        Raises:
            ExtractionError: If the store cannot be read.
            AnalyticsError: If the computation hits an exceptional state.
            StorageError: If the final write fails.
        """
        self._report(f"Extracting {scope.value} graph", 0.0)
        graph = self._extractor.extract(project_id, scope=scope)
        self._report(f"Extracting {scope.value} graph", 1.0)

        self._report(f"Computing {scope.value} analytics", 0.0)
        analytics = compute_all(graph, self.config)
        self._report(f"Computing {scope.value} analytics", 1.0)

        self._report(f"Writing {scope.value} analytics", 0.0)
        self._writer.write(project_id, analytics)
        self._report(f"Writing {scope.value} analytics", 1.0)
        return analytics

    def analyze_file_graph(self, project_id: str) -> GraphAnalytics:
        return self.analyze_graph(project_id, scope=GraphScope.FILES)

    def analyze_function_graph(self, project_id: str) -> GraphAnalytics:
        return self.analyze_graph(project_id, scope=GraphScope.FUNCTIONS)

    def analyze_project(self, project_id: str) -> ProjectAnalytics:
        """Analyse both the file import graph and the function call graph."""
        file_analytics = self.analyze_file_graph(project_id)
        function_analytics = self.analyze_function_graph(project_id)
        logger.info(
            "Project %s analysed: %d file nodes, %d function nodes",
            project_id,
            file_analytics.node_count,
            function_analytics.node_count,
        )
        return ProjectAnalytics(
            project_id=project_id,
            file_analytics=file_analytics,
            function_analytics=function_analytics,
            computed_at=datetime.now(tz=timezone.utc),
        )
