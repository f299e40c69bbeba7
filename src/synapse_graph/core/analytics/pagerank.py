"""PageRank by power iteration.

Random-surfer formulation: every iteration gives each node the teleport
share ``(1 - d) / n``, spreads ``d * rank / out_degree`` along each outgoing
edge and spreads the rank of dangling nodes (no outgoing edges) uniformly over
all nodes.  Iteration stops once the L1 distance between two successive rank
vectors drops below the tolerance, or at the iteration cap.
"""

from __future__ import annotations

import logging

from synapse_graph.core.analytics.models import AnalyticsConfig
from synapse_graph.core.graph.graph import CodeGraph

logger = logging.getLogger(__name__)


def compute_pagerank(graph: CodeGraph, config: AnalyticsConfig) -> dict[str, float]:
    """Compute PageRank scores for all nodes in *graph*.

    Hitting ``config.pagerank_max_iterations`` before convergence is not an
    error; the last rank vector is returned.  Scores are renormalised so they
    sum to 1.0.

    Returns:
        A mapping of node ID to PageRank score.
    """
    n = graph.node_count
    if n == 0:
        return {}

    damping = config.pagerank_damping
    teleport = (1.0 - damping) / n

    out_degrees = [graph.out_degree(i) for i in range(n)]
    successors = [graph.successors(i) for i in range(n)]
    dangling = [i for i in range(n) if out_degrees[i] == 0]

    scores = [1.0 / n] * n
    converged = False
    iterations = 0

    for iterations in range(1, config.pagerank_max_iterations + 1):
        dangling_mass = damping * sum(scores[i] for i in dangling) / n
        new_scores = [teleport + dangling_mass] * n

        for i in range(n):
            degree = out_degrees[i]
            if degree == 0:
                continue
            share = damping * scores[i] / degree
            for j in successors[i]:
                new_scores[j] += share

        diff = sum(abs(a - b) for a, b in zip(scores, new_scores))
        scores = new_scores
        if diff < config.pagerank_tolerance:
            converged = True
            break

    if not converged:
        logger.debug(
            "PageRank did not converge within %d iterations (n=%d)", iterations, n
        )

    total = sum(scores)
    if total > 0.0:
        scores = [s / total for s in scores]

    return {graph.node_at(i).id: scores[i] for i in range(n)}
