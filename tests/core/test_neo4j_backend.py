"""Tests for the Neo4j store, run against a mocked driver."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from synapse_graph.core.exceptions import StorageError
from synapse_graph.core.graph.model import GraphScope
from synapse_graph.core.storage.base import GraphStore, VectorSearch
from synapse_graph.core.storage.neo4j_backend import Neo4jStore

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


class FakeTx:
    """Replays queued row lists, one per ``run`` call, and records queries."""

    def __init__(self, results: list[list[dict]]) -> None:
        self._results = list(results)
        self.calls: list[tuple[str, dict]] = []

    def run(self, query: str, **params):
        self.calls.append((query, params))
        result = MagicMock()
        result.data.return_value = self._results.pop(0) if self._results else []
        return result


def _store(*results: list[dict]) -> tuple[Neo4jStore, FakeTx, MagicMock]:
    tx = FakeTx(list(results))
    session = MagicMock()
    session.execute_read.side_effect = lambda work: work(tx)
    session.execute_write.side_effect = lambda work: work(tx)
    driver = MagicMock()
    driver.session.return_value.__enter__.return_value = session
    return Neo4jStore(driver=driver), tx, session


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestProtocols:
    def test_satisfies_protocols(self) -> None:
        store, _, _ = _store()
        assert isinstance(store, GraphStore)
        assert isinstance(store, VectorSearch)


class TestFetchProjectGraph:
    def test_single_read_transaction(self) -> None:
        nodes = [{"id": "f1", "type": "File", "name": "a.py", "path": "src/a.py"}]
        edges = [{"source": "f1", "target": "f1", "type": "IMPORTS", "weight": 1.0}]
        store, tx, session = _store(nodes, edges)

        payload = store.fetch_project_graph("p1", scope=GraphScope.FILES)

        assert payload == {"nodes": nodes, "edges": edges}
        session.execute_read.assert_called_once()
        assert len(tx.calls) == 2
        assert tx.calls[0][1] == {"project_id": "p1", "labels": ["File"]}
        assert tx.calls[1][1]["rel_types"] == ["IMPORTS"]

    def test_function_scope_labels(self) -> None:
        store, tx, _ = _store([], [])
        store.fetch_project_graph("p1", scope=GraphScope.FUNCTIONS)
        assert tx.calls[0][1]["labels"] == ["Function", "Method"]
        assert tx.calls[1][1]["rel_types"] == ["CALLS"]

    def test_driver_failure_becomes_storage_error(self) -> None:
        store, _, session = _store()
        session.execute_read.side_effect = RuntimeError("connection refused")
        with pytest.raises(StorageError) as excinfo:
            store.fetch_project_graph("p1")
        assert isinstance(excinfo.value.__cause__, RuntimeError)


class TestWrites:
    def test_batch_write_is_one_unwind(self) -> None:
        store, tx, session = _store([{"written": 2}])

        written = store.batch_write_node_metrics(
            "p1", {"a": {"pagerank": 0.5}, "b": {"pagerank": 0.5}}
        )

        assert written == 2
        session.execute_write.assert_called_once()
        query, params = tx.calls[0]
        assert "UNWIND $batch" in query
        assert params["batch"] == [
            {"id": "a", "props": {"pagerank": 0.5}},
            {"id": "b", "props": {"pagerank": 0.5}},
        ]

    def test_empty_batch_skips_database(self) -> None:
        store, _, session = _store()
        assert store.batch_write_node_metrics("p1", {}) == 0
        session.execute_write.assert_not_called()

    def test_upsert_synapse(self) -> None:
        store, tx, _ = _store([{"weight": 0.53}])
        assert store.upsert_synapse("a", "b", 0.03) == pytest.approx(0.53)
        query, params = tx.calls[0]
        assert "MERGE" in query
        assert params == {"source_id": "a", "target_id": "b", "delta": 0.03}

    def test_upsert_synapse_missing_notes(self) -> None:
        store, _, _ = _store([])
        with pytest.raises(StorageError):
            store.upsert_synapse("a", "b", 0.03)

    def test_increment_energy(self) -> None:
        store, tx, _ = _store([{"energy": 1.1}], [])
        assert store.increment_energy("n1", 0.1) == pytest.approx(1.1)
        assert store.increment_energy("missing", 0.1) is None
        assert "coalesce(n.energy, 0.0) + $delta" in tx.calls[0][0]


class TestReads:
    def test_get_note(self) -> None:
        row = {
            "id": "n1",
            "content": "hello",
            "energy": 0.7,
            "embedding": [0.1, 0.2],
            "project_id": "p1",
        }
        store, _, _ = _store([row])
        note = store.get_note("n1")
        assert note.id == "n1"
        assert note.energy == pytest.approx(0.7)
        assert note.embedding == (0.1, 0.2)

    def test_get_missing_note(self) -> None:
        store, _, _ = _store([])
        assert store.get_note("nope") is None

    def test_synapses(self) -> None:
        store, _, _ = _store([{"id": "b", "weight": 0.4}], [{"id": "c", "weight": 0.2}])
        assert store.get_outgoing_synapses("a") == [("b", 0.4)]
        assert store.get_incoming_synapses("a") == [("c", 0.2)]

    def test_notes_for_files(self) -> None:
        store, tx, _ = _store([{"id": "n1"}, {"id": "n2"}])
        assert store.get_notes_for_files("p1", ["src/a.py"]) == ["n1", "n2"]
        assert tx.calls[0][1] == {"project_id": "p1", "paths": ["src/a.py"]}

    def test_top_k_similar(self) -> None:
        store, tx, _ = _store([{"id": "n1", "score": 0.9}, {"id": "n2", "score": 0.5}])
        assert store.top_k_similar([1, 0], 2) == [("n1", 0.9), ("n2", 0.5)]
        params = tx.calls[0][1]
        assert params == {"index": "note_embeddings", "k": 2, "embedding": [1.0, 0.0]}


class TestLifecycle:
    def test_close(self) -> None:
        driver = MagicMock()
        Neo4jStore(driver=driver).close()
        driver.close.assert_called_once()

    def test_database_selection(self) -> None:
        driver = MagicMock()
        store = Neo4jStore(driver=driver, database="graphs")
        store.batch_write_node_metrics("p1", {"a": {"x": 1}})
        driver.session.assert_called_once_with(database="graphs")
