"""End-to-end tests: analytics and retrieval over the in-memory store."""

from __future__ import annotations

import asyncio
import itertools

import pytest

from synapse_graph.config.settings import Settings
from synapse_graph.core.graph.model import (
    CodeEdge,
    CodeEdgeType,
    CodeNode,
    CodeNodeType,
    generate_id,
)
from synapse_graph.core.neurons.config import SpreadingActivationConfig
from synapse_graph.core.neurons.model import Note
from synapse_graph.core.storage.memory_backend import InMemoryStore
from synapse_graph.runtime import build_runtime

PROJECT = "demo"

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def _add_clique(store: InMemoryStore, package: str) -> list[str]:
    ids = []
    for i in range(5):
        path = f"src/{package}/m{i}.py"
        node_id = generate_id(CodeNodeType.FILE, path)
        store.add_code_node(
            PROJECT, CodeNode(id=node_id, type=CodeNodeType.FILE, name=f"m{i}.py", path=path)
        )
        ids.append(node_id)
    for source, target in itertools.combinations(ids, 2):
        store.add_code_edge(
            PROJECT, CodeEdge(source=source, target=target, type=CodeEdgeType.IMPORTS)
        )
    return ids


def _add_call_star(store: InMemoryStore) -> str:
    hub = generate_id(CodeNodeType.FUNCTION, "src/core/hub.py", "dispatch")
    store.add_code_node(
        PROJECT,
        CodeNode(id=hub, type=CodeNodeType.FUNCTION, name="dispatch", path="src/core/hub.py"),
    )
    for i in range(6):
        leaf = generate_id(CodeNodeType.FUNCTION, "src/core/handlers.py", f"handle_{i}")
        store.add_code_node(
            PROJECT,
            CodeNode(
                id=leaf,
                type=CodeNodeType.FUNCTION,
                name=f"handle_{i}",
                path="src/core/handlers.py",
            ),
        )
        store.add_code_edge(PROJECT, CodeEdge(source=hub, target=leaf, type=CodeEdgeType.CALLS))
    return hub


@pytest.fixture()
def store() -> InMemoryStore:
    s = InMemoryStore()
    _add_clique(s, "auth")
    _add_clique(s, "billing")
    _add_call_star(s)
    return s


@pytest.fixture()
def runtime(store: InMemoryStore):
    rt = build_runtime(
        Settings(embedding_provider="mock", embedding_dimensions=32), store=store
    )
    yield rt
    rt.close()


# ---------------------------------------------------------------------------
# Analytics
# ---------------------------------------------------------------------------


class TestProjectAnalytics:
    def test_file_graph(self, runtime, store: InMemoryStore) -> None:
        result = runtime.analytics.analyze_project(PROJECT)
        files = result.file_analytics

        assert files.node_count == 10
        assert files.edge_count == 20
        assert sorted(c.size for c in files.components) == [5, 5]
        assert [c.is_main for c in files.components] == [True, False]

        assert len(files.communities) == 2
        assert {c.members for c in files.communities} == {c.members for c in files.components}
        assert {c.label for c in files.communities} == {"Auth", "Billing"}
        assert files.modularity == pytest.approx(0.5)

        assert sum(m.pagerank for m in files.metrics.values()) == pytest.approx(1.0)
        assert files.health.circular_dependencies == ()
        assert files.health.orphan_files == ()

    def test_function_graph(self, runtime) -> None:
        functions = runtime.analytics.analyze_project(PROJECT).function_analytics
        hub = generate_id(CodeNodeType.FUNCTION, "src/core/hub.py", "dispatch")

        assert functions.node_count == 7
        assert functions.health.god_functions == (hub,)
        assert functions.metrics[hub].out_degree == 6

    def test_metrics_written_back(self, runtime, store: InMemoryStore) -> None:
        result = runtime.analytics.analyze_project(PROJECT)
        node_id = next(iter(result.file_analytics.metrics))
        written = store.get_node_metrics(PROJECT, node_id)

        expected = result.file_analytics.metrics[node_id]
        assert written["pagerank"] == pytest.approx(expected.pagerank)
        assert written["community_id"] == expected.community_id
        assert written["community_label"] in {"Auth", "Billing"}
        assert written["component_id"] == expected.component_id

    @pytest.mark.asyncio
    async def test_debounced_recompute(self, runtime) -> None:
        completed = []
        debouncer = runtime.create_debouncer(on_complete=completed.append)
        debouncer.debounce_seconds = 0.05
        debouncer.start()
        for _ in range(3):
            debouncer.trigger(PROJECT)
        await asyncio.sleep(0.5)
        await debouncer.stop()

        assert [r.project_id for r in completed] == [PROJECT]
        assert completed[0].file_analytics.node_count == 10


# ---------------------------------------------------------------------------
# Retrieval
# ---------------------------------------------------------------------------


class TestRetrieval:
    def test_activation_reinforces_results(self, runtime, store: InMemoryStore) -> None:
        texts = {
            "n-login": "login flow validates the session token",
            "n-token": "session tokens expire after one hour",
            "n-invoice": "invoices are generated monthly",
        }
        for nid, text in texts.items():
            store.add_note(
                Note(id=nid, content=text, embedding=tuple(runtime.embedder.embed_text(text)))
            )
        store.set_synapse("n-login", "n-token", 0.9)

        results = runtime.activation.activate(
            texts["n-login"],
            SpreadingActivationConfig(initial_k=1, min_activation=0.0),
        )

        assert [r.note_id for r in results] == ["n-login", "n-token"]
        assert results[0].source.is_seed
        assert results[1].source.via == "n-login"
        assert results[1].score == pytest.approx(results[0].score * 0.9 * 0.5)

        # Wait for the dispatched reinforcement.
        runtime.reinforcement.close(wait=True)
        assert store.get_note("n-login").energy == pytest.approx(1.05)
        assert store.get_synapse("n-login", "n-token") == pytest.approx(0.93)
        assert store.get_synapse("n-token", "n-login") == pytest.approx(0.03)
        assert store.get_note("n-invoice").energy == pytest.approx(1.0)
