"""Tests for the code health report."""

from __future__ import annotations

import pytest

from synapse_graph.core.analytics.engine import compute_all
from synapse_graph.core.analytics.health import compute_health
from synapse_graph.core.analytics.models import (
    AnalyticsConfig,
    CodeHealthReport,
    NodeMetrics,
)
from synapse_graph.core.graph.graph import CodeGraph
from synapse_graph.core.graph.model import CodeEdge, CodeNode, CodeNodeType


def _build(
    nodes: list[tuple[str, CodeNodeType]], edges: list[tuple[str, str]]
) -> CodeGraph:
    graph = CodeGraph()
    for nid, node_type in nodes:
        graph.add_node(CodeNode(id=nid, type=node_type, name=nid, path=f"src/{nid}.py"))
    for src, tgt in edges:
        graph.add_edge(CodeEdge(source=src, target=tgt))
    return graph


F = CodeNodeType.FUNCTION


class TestGodFunctions:
    def test_star_center(self) -> None:
        graph = _build(
            [("hub", F), ("a", F), ("b", F), ("c", F), ("d", F)],
            [("a", "hub"), ("b", "hub"), ("hub", "c"), ("hub", "d")],
        )
        health = compute_all(graph).health
        assert health.god_functions == ("hub",)

    def test_isolated_nodes_never_qualify(self) -> None:
        graph = _build([("a", F), ("b", F)], [])
        assert compute_all(graph).health.god_functions == ()

    def test_ordered_by_degree(self) -> None:
        graph = _build([("a", F), ("b", F)], [])
        metrics = {
            "a": NodeMetrics(in_degree=1, out_degree=1),
            "b": NodeMetrics(in_degree=3, out_degree=2),
        }
        report = compute_health(graph, metrics, AnalyticsConfig(god_function_percentile=0.0))
        assert report.god_functions == ("b", "a")


class TestCycles:
    def test_circular_imports(self) -> None:
        fl = CodeNodeType.FILE
        graph = _build(
            [("a", fl), ("b", fl), ("c", fl)],
            [("a", "b"), ("b", "a"), ("b", "c")],
        )
        assert compute_all(graph).health.circular_dependencies == (("a", "b"),)


class TestOrphans:
    def test_isolated_file_is_orphan(self) -> None:
        fl = CodeNodeType.FILE
        graph = _build(
            [("main", fl), ("util", fl), ("orphan", fl), ("lonely_fn", F)],
            [("main", "util")],
        )
        assert compute_all(graph).health.orphan_files == ("orphan",)


class TestCoupling:
    def test_triangle_coupling(self) -> None:
        graph = _build([("a", F), ("b", F), ("c", F)], [("a", "b"), ("b", "c"), ("c", "a")])
        health = compute_all(graph).health
        assert health.avg_coupling == pytest.approx(1.0)
        assert health.max_coupling == pytest.approx(1.0)

    def test_small_sample_reports_zero_average(self) -> None:
        graph = _build([("a", F), ("b", F), ("c", F)], [("a", "b"), ("b", "c"), ("c", "a")])
        health = compute_all(graph, AnalyticsConfig(min_clustering_sample=4)).health
        assert health.avg_coupling == 0.0
        assert health.max_coupling == pytest.approx(1.0)

    def test_low_degree_nodes_excluded_from_average(self) -> None:
        # Triangle plus a pendant: the pendant (coefficient 0) is not sampled.
        graph = _build(
            [("a", F), ("b", F), ("c", F), ("d", F)],
            [("a", "b"), ("b", "c"), ("c", "a"), ("a", "d")],
        )
        health = compute_all(graph).health
        assert health.avg_coupling == pytest.approx((1 / 3 + 1.0 + 1.0) / 3)


class TestEmpty:
    def test_empty_graph(self) -> None:
        assert compute_health(CodeGraph(), {}, AnalyticsConfig()) == CodeHealthReport()
