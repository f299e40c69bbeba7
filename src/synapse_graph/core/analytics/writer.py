"""Persists analytics results back onto the graph store's nodes."""

from __future__ import annotations

import logging
from typing import Any

from synapse_graph.core.analytics.models import GraphAnalytics
from synapse_graph.core.storage.base import GraphStore

logger = logging.getLogger(__name__)


class AnalyticsWriter:
    """Writes :class:`GraphAnalytics` metrics in a single batch.

    Writing the same analytics twice overwrites the same properties, so a
    re-run is idempotent.  Store errors propagate to the caller.
    """

    def __init__(self, store: GraphStore) -> None:
        self._store = store

    @staticmethod
    def build_updates(analytics: GraphAnalytics) -> dict[str, dict[str, Any]]:
        """Map each node ID to the properties written for it."""
        labels = {c.id: c.label for c in analytics.communities}
        updates: dict[str, dict[str, Any]] = {}
        for node_id, m in analytics.metrics.items():
            updates[node_id] = {
                "pagerank": m.pagerank,
                "betweenness": m.betweenness,
                "clustering_coefficient": m.clustering_coefficient,
                "community_id": m.community_id,
                "community_label": labels.get(m.community_id, ""),
                "component_id": m.component_id,
                "in_degree": m.in_degree,
                "out_degree": m.out_degree,
            }
        return updates

    def write(self, project_id: str, analytics: GraphAnalytics) -> int:
        """Write *analytics* for *project_id*.

        Returns:
            The number of nodes updated (0 when there is nothing to write).
        """
        updates = self.build_updates(analytics)
        if not updates:
            logger.debug("No metrics to write for project %s", project_id)
            return 0

        written = self._store.batch_write_node_metrics(project_id, updates)
        logger.info("Wrote analytics for %d nodes in project %s", written, project_id)
        return written
