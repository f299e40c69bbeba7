"""Code health report derived from graph structure and node metrics."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from synapse_graph.core.analytics.components import find_cycles
from synapse_graph.core.analytics.models import (
    AnalyticsConfig,
    CodeHealthReport,
    NodeMetrics,
)
from synapse_graph.core.graph.graph import CodeGraph
from synapse_graph.core.graph.model import CodeNodeType

logger = logging.getLogger(__name__)


def _god_functions(
    graph: CodeGraph, metrics: Mapping[str, NodeMetrics], percentile: float
) -> list[str]:
    """Nodes whose total degree reaches the *percentile* of all degrees.

    Nodes without any edge never qualify.  Ordered by degree descending,
    then node order.
    """
    degrees: list[tuple[int, int, str]] = []
    for idx, node in enumerate(graph.iter_nodes()):
        m = metrics.get(node.id)
        if m is None:
            continue
        degrees.append((m.in_degree + m.out_degree, idx, node.id))
    if not degrees:
        return []

    ascending = sorted(d for d, _, _ in degrees)
    threshold = ascending[min(int(percentile * len(ascending)), len(ascending) - 1)]

    hubs = [(d, idx, nid) for d, idx, nid in degrees if d >= threshold and d > 0]
    hubs.sort(key=lambda item: (-item[0], item[1]))
    return [nid for _, _, nid in hubs]


def _orphan_files(graph: CodeGraph) -> list[str]:
    return [
        node.id
        for idx, node in enumerate(graph.iter_nodes())
        if node.type is CodeNodeType.FILE
        and graph.in_degree(idx) == 0
        and graph.out_degree(idx) == 0
    ]


def compute_health(
    graph: CodeGraph,
    metrics: Mapping[str, NodeMetrics],
    config: AnalyticsConfig,
) -> CodeHealthReport:
    """Build a :class:`CodeHealthReport` for *graph*.

    Coupling is measured by the clustering coefficient of nodes with at least
    two distinct neighbours.  When fewer than ``config.min_clustering_sample``
    such nodes exist the average is reported as 0.0.

    Args:
        graph: The analysed graph.
        metrics: Node metrics of the same run (degrees and clustering are read).
        config: Supplies ``god_function_percentile`` and
            ``min_clustering_sample``.

    Returns:
        The health report.  An empty graph yields an all-zero report.
    """
    if graph.node_count == 0:
        return CodeHealthReport()

    god_functions = _god_functions(graph, metrics, config.god_function_percentile)
    cycles = find_cycles(graph)
    orphans = _orphan_files(graph)

    sample = [
        metrics[node.id].clustering_coefficient
        for idx, node in enumerate(graph.iter_nodes())
        if node.id in metrics and len(graph.undirected_neighbors(idx)) >= 2
    ]
    max_coupling = max(sample, default=0.0)
    avg_coupling = 0.0
    if sample and len(sample) >= config.min_clustering_sample:
        avg_coupling = sum(sample) / len(sample)

    logger.debug(
        "Health: %d god functions, %d cycles, %d orphan files",
        len(god_functions),
        len(cycles),
        len(orphans),
    )
    return CodeHealthReport(
        god_functions=tuple(god_functions),
        circular_dependencies=tuple(tuple(cycle) for cycle in cycles),
        orphan_files=tuple(orphans),
        avg_coupling=avg_coupling,
        max_coupling=max_coupling,
    )
