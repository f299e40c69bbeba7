"""Tests for PageRank power iteration."""

from __future__ import annotations

import pytest

from synapse_graph.core.analytics.models import AnalyticsConfig
from synapse_graph.core.analytics.pagerank import compute_pagerank
from synapse_graph.core.graph.graph import CodeGraph
from synapse_graph.core.graph.model import CodeEdge, CodeNode, CodeNodeType

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _build(node_ids: list[str], edges: list[tuple[str, str]]) -> CodeGraph:
    graph = CodeGraph()
    for nid in node_ids:
        graph.add_node(CodeNode(id=nid, type=CodeNodeType.FUNCTION, name=nid))
    for src, tgt in edges:
        graph.add_edge(CodeEdge(source=src, target=tgt))
    return graph


GRAPHS = {
    "cycle": (["a", "b", "c"], [("a", "b"), ("b", "c"), ("c", "a")]),
    "star_in": (["hub", "x", "y", "z"], [("x", "hub"), ("y", "hub"), ("z", "hub")]),
    "dangling": (["a", "b", "c"], [("a", "b")]),
    "self_loop": (["a", "b"], [("a", "a"), ("a", "b")]),
    "no_edges": (["a", "b", "c", "d"], []),
    "parallel": (["a", "b"], [("a", "b"), ("a", "b"), ("b", "a")]),
}


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestPageRank:
    def test_empty_graph(self) -> None:
        assert compute_pagerank(CodeGraph(), AnalyticsConfig()) == {}

    def test_single_node(self) -> None:
        scores = compute_pagerank(_build(["solo"], []), AnalyticsConfig())
        assert scores == {"solo": pytest.approx(1.0)}

    @pytest.mark.parametrize("name", sorted(GRAPHS))
    def test_sums_to_one_and_non_negative(self, name: str) -> None:
        nodes, edges = GRAPHS[name]
        scores = compute_pagerank(_build(nodes, edges), AnalyticsConfig())
        assert set(scores) == set(nodes)
        assert sum(scores.values()) == pytest.approx(1.0, abs=1e-9)
        assert all(v >= 0.0 for v in scores.values())

    def test_symmetric_cycle_is_uniform(self) -> None:
        nodes, edges = GRAPHS["cycle"]
        scores = compute_pagerank(_build(nodes, edges), AnalyticsConfig())
        for value in scores.values():
            assert value == pytest.approx(1 / 3, abs=1e-6)

    def test_hub_ranks_highest(self) -> None:
        nodes, edges = GRAPHS["star_in"]
        scores = compute_pagerank(_build(nodes, edges), AnalyticsConfig())
        assert max(scores, key=scores.get) == "hub"
        assert scores["x"] == pytest.approx(scores["y"])

    def test_no_edges_is_uniform(self) -> None:
        nodes, edges = GRAPHS["no_edges"]
        scores = compute_pagerank(_build(nodes, edges), AnalyticsConfig())
        assert all(v == pytest.approx(0.25) for v in scores.values())

    def test_iteration_cap_is_not_an_error(self) -> None:
        nodes, edges = GRAPHS["star_in"]
        config = AnalyticsConfig(pagerank_max_iterations=1, pagerank_tolerance=1e-15)
        scores = compute_pagerank(_build(nodes, edges), config)
        assert sum(scores.values()) == pytest.approx(1.0)

    def test_deterministic(self) -> None:
        nodes, edges = GRAPHS["dangling"]
        graph = _build(nodes, edges)
        assert compute_pagerank(graph, AnalyticsConfig()) == compute_pagerank(
            graph, AnalyticsConfig()
        )
