"""Neo4j store for Synapse Graph.

Graph layout expected in the database:

- code nodes carry one of the labels ``File``, ``Function``, ``Method``,
  ``Class``, ``Struct``, ``Trait``, ``Interface``, ``Enum`` and the
  properties ``id``, ``name``, ``path`` and ``project_id``;
- code edges use the relationship types ``IMPORTS``, ``CALLS``, ``DEFINES``,
  ``CONTAINS``, ``EXTENDS``, ``IMPLEMENTS``, ``USES_TYPE`` with an optional
  ``weight`` property;
- notes are ``(:Note {id, content, energy, embedding, project_id})`` joined
  by ``[:SYNAPSE {weight}]`` and attached to files with ``[:LINKED_TO]``;
- note embeddings are served by a vector index (``note_embeddings`` by
  default).
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from synapse_graph.core.exceptions import StorageError
from synapse_graph.core.graph.model import GraphScope
from synapse_graph.core.neurons.model import Note

logger = logging.getLogger(__name__)

_FETCH_NODES = """
MATCH (n {project_id: $project_id})
WITH n, [l IN labels(n) WHERE l IN $labels] AS matched
WHERE size(matched) > 0
RETURN n.id AS id, matched[0] AS type, n.name AS name, coalesce(n.path, '') AS path
ORDER BY id
"""

_FETCH_EDGES = """
MATCH (a {project_id: $project_id})-[r]->(b {project_id: $project_id})
WHERE type(r) IN $rel_types
  AND any(l IN labels(a) WHERE l IN $labels)
  AND any(l IN labels(b) WHERE l IN $labels)
RETURN a.id AS source, b.id AS target, type(r) AS type,
       coalesce(r.weight, 1.0) AS weight
ORDER BY source, target, type
"""

_WRITE_METRICS = """
UNWIND $batch AS row
MATCH (n {id: row.id, project_id: $project_id})
SET n += row.props
RETURN count(n) AS written
"""

_GET_NOTE = """
MATCH (n:Note {id: $id})
RETURN n.id AS id, n.content AS content, coalesce(n.energy, 0.0) AS energy,
       n.embedding AS embedding, n.project_id AS project_id
"""

_OUTGOING = """
MATCH (:Note {id: $id})-[s:SYNAPSE]->(t:Note)
RETURN t.id AS id, s.weight AS weight
ORDER BY id
"""

_INCOMING = """
MATCH (src:Note)-[s:SYNAPSE]->(:Note {id: $id})
RETURN src.id AS id, s.weight AS weight
ORDER BY id
"""

_UPSERT_SYNAPSE = """
MATCH (a:Note {id: $source_id}), (b:Note {id: $target_id})
MERGE (a)-[s:SYNAPSE]->(b)
ON CREATE SET s.weight = $delta
ON MATCH SET s.weight = coalesce(s.weight, 0.0) + $delta
RETURN s.weight AS weight
"""

_INCREMENT_ENERGY = """
MATCH (n:Note {id: $id})
SET n.energy = coalesce(n.energy, 0.0) + $delta
RETURN n.energy AS energy
"""

_NOTES_FOR_FILES = """
MATCH (n:Note)-[:LINKED_TO]->(f:File {project_id: $project_id})
WHERE f.path IN $paths
RETURN DISTINCT n.id AS id
ORDER BY id
"""

_VECTOR_SEARCH = """
CALL db.index.vector.queryNodes($index, $k, $embedding) YIELD node, score
RETURN node.id AS id, score
ORDER BY score DESC, id
"""


class Neo4jStore:
    """:class:`GraphStore` and :class:`VectorSearch` backed by Neo4j.

    Args:
        uri: Bolt URI of the database.
        user: Username.
        password: Password.
        vector_index: Name of the note embedding vector index.
        database: Optional database name (default database when ``None``).
        driver: An already-built driver; *uri*, *user* and *password* are
            ignored when given.
    """

    def __init__(
        self,
        uri: str = "bolt://localhost:7687",
        user: str = "neo4j",
        password: str = "password",
        vector_index: str = "note_embeddings",
        database: str | None = None,
        driver: Any = None,
    ) -> None:
        if driver is None:
            try:
                from neo4j import GraphDatabase
            except ImportError:
                raise ImportError(
                    "The 'neo4j' package is required for this backend. "
                    "Install it with: pip install synapse-graph[neo4j]"
                )
            driver = GraphDatabase.driver(uri, auth=(user, password))
        self._driver = driver
        self._database = database
        self._vector_index = vector_index

    def close(self) -> None:
        """Close the Neo4j driver connection."""
        self._driver.close()

    # ------------------------------------------------------------------
    # Transaction helpers
    # ------------------------------------------------------------------

    def _session(self):
        if self._database is None:
            return self._driver.session()
        return self._driver.session(database=self._database)

    def _execute(self, mode: str, work: Callable[[Any], Any]) -> Any:
        """Run *work* in a managed read or write transaction."""
        try:
            with self._session() as session:
                if mode == "read":
                    return session.execute_read(work)
                return session.execute_write(work)
        except StorageError:
            raise
        except Exception as exc:
            logger.error("Neo4j %s transaction failed: %s", mode, exc)
            raise StorageError(f"Neo4j {mode} transaction failed", {"mode": mode}) from exc

    @staticmethod
    def _rows(tx, query: str, **params: Any) -> list[dict[str, Any]]:
        return tx.run(query, **params).data()

    # ------------------------------------------------------------------
    # GraphStore
    # ------------------------------------------------------------------

    def fetch_project_graph(
        self, project_id: str, scope: GraphScope = GraphScope.ALL
    ) -> dict[str, list[dict[str, Any]]]:
        labels = sorted(t.value.capitalize() for t in scope.node_types)
        rel_types = sorted(t.value.upper() for t in scope.edge_types)

        def _work(tx) -> dict[str, list[dict[str, Any]]]:
            # Both reads share one transaction, hence one snapshot.
            nodes = self._rows(tx, _FETCH_NODES, project_id=project_id, labels=labels)
            edges = self._rows(
                tx,
                _FETCH_EDGES,
                project_id=project_id,
                labels=labels,
                rel_types=rel_types,
            )
            return {"nodes": nodes, "edges": edges}

        return self._execute("read", _work)

    def batch_write_node_metrics(
        self, project_id: str, updates: Mapping[str, Mapping[str, Any]]
    ) -> int:
        if not updates:
            return 0
        batch = [{"id": nid, "props": dict(props)} for nid, props in updates.items()]

        def _work(tx) -> int:
            rows = self._rows(tx, _WRITE_METRICS, batch=batch, project_id=project_id)
            return int(rows[0]["written"]) if rows else 0

        return self._execute("write", _work)

    def get_note(self, note_id: str) -> Note | None:
        def _work(tx) -> Note | None:
            rows = self._rows(tx, _GET_NOTE, id=note_id)
            if not rows:
                return None
            row = rows[0]
            return Note(
                id=row["id"],
                content=row.get("content") or "",
                energy=float(row.get("energy") or 0.0),
                embedding=tuple(row.get("embedding") or ()),
                project_id=row.get("project_id"),
            )

        return self._execute("read", _work)

    def _synapses(self, query: str, note_id: str) -> list[tuple[str, float]]:
        def _work(tx) -> list[tuple[str, float]]:
            rows = self._rows(tx, query, id=note_id)
            return [(r["id"], float(r["weight"] or 0.0)) for r in rows]

        return self._execute("read", _work)

    def get_outgoing_synapses(self, note_id: str) -> list[tuple[str, float]]:
        return self._synapses(_OUTGOING, note_id)

    def get_incoming_synapses(self, note_id: str) -> list[tuple[str, float]]:
        return self._synapses(_INCOMING, note_id)

    def upsert_synapse(self, source_id: str, target_id: str, weight_delta: float) -> float:
        def _work(tx) -> float:
            rows = self._rows(
                tx,
                _UPSERT_SYNAPSE,
                source_id=source_id,
                target_id=target_id,
                delta=weight_delta,
            )
            if not rows:
                raise StorageError(
                    "Cannot create synapse between missing notes",
                    {"source_id": source_id, "target_id": target_id},
                )
            return float(rows[0]["weight"])

        return self._execute("write", _work)

    def increment_energy(self, note_id: str, delta: float) -> float | None:
        def _work(tx) -> float | None:
            rows = self._rows(tx, _INCREMENT_ENERGY, id=note_id, delta=delta)
            return float(rows[0]["energy"]) if rows else None

        return self._execute("write", _work)

    def get_notes_for_files(self, project_id: str, file_paths: Sequence[str]) -> list[str]:
        if not file_paths:
            return []

        def _work(tx) -> list[str]:
            rows = self._rows(
                tx, _NOTES_FOR_FILES, project_id=project_id, paths=list(file_paths)
            )
            return [r["id"] for r in rows]

        return self._execute("read", _work)

    # ------------------------------------------------------------------
    # VectorSearch
    # ------------------------------------------------------------------

    def top_k_similar(
        self, query_embedding: Sequence[float], k: int
    ) -> list[tuple[str, float]]:
        if k <= 0:
            return []
        embedding = [float(x) for x in query_embedding]

        def _work(tx) -> list[tuple[str, float]]:
            rows = self._rows(
                tx, _VECTOR_SEARCH, index=self._vector_index, k=k, embedding=embedding
            )
            return [(r["id"], float(r["score"])) for r in rows]

        return self._execute("read", _work)
