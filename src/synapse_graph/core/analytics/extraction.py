"""Extraction of a project's code graph from the graph store.

The store is read exactly once per extraction, so the resulting
:class:`CodeGraph` reflects a single snapshot.  Records are validated before
anything is added: a malformed record aborts the whole extraction rather
than yielding a partial graph.
"""

from __future__ import annotations

import logging
from numbers import Real
from typing import Any

from synapse_graph.core.exceptions import ExtractionError
from synapse_graph.core.graph.graph import CodeGraph
from synapse_graph.core.graph.model import (
    CodeEdge,
    CodeEdgeType,
    CodeNode,
    CodeNodeType,
    GraphScope,
)
from synapse_graph.core.storage.base import GraphStore

logger = logging.getLogger(__name__)


def _parse_enum(enum_cls: type, raw: Any, what: str, record: dict) -> Any:
    if isinstance(raw, enum_cls):
        return raw
    if not isinstance(raw, str):
        raise ExtractionError(f"{what} record has no type", {"record": record})
    try:
        return enum_cls(raw.lower())
    except ValueError as exc:
        raise ExtractionError(
            f"Unknown {what} type {raw!r}", {"record": record}
        ) from exc


def _parse_node(record: Any, project_id: str) -> CodeNode:
    if not isinstance(record, dict):
        raise ExtractionError("Node record is not a mapping", {"record": record})
    node_id = record.get("id")
    if not isinstance(node_id, str) or not node_id:
        raise ExtractionError("Node record has no id", {"record": record})
    node_type = _parse_enum(CodeNodeType, record.get("type"), "node", record)
    return CodeNode(
        id=node_id,
        type=node_type,
        name=record.get("name") or node_id,
        path=record.get("path") or "",
        project_id=project_id,
    )


def _parse_edge(record: Any) -> CodeEdge:
    if not isinstance(record, dict):
        raise ExtractionError("Edge record is not a mapping", {"record": record})
    source = record.get("source")
    target = record.get("target")
    if not isinstance(source, str) or not source or not isinstance(target, str) or not target:
        raise ExtractionError("Edge record needs source and target", {"record": record})
    edge_type = _parse_enum(CodeEdgeType, record.get("type"), "edge", record)

    weight = record.get("weight")
    if weight is None:
        weight = 1.0
    elif isinstance(weight, bool) or not isinstance(weight, Real) or weight < 0:
        raise ExtractionError(
            "Edge weight must be a non-negative number", {"record": record}
        )

    return CodeEdge(
        source=source,
        target=target,
        type=edge_type,
        label=record.get("label") or "",
        weight=float(weight),
    )


class GraphExtractor:
    """Builds a :class:`CodeGraph` for one project from a :class:`GraphStore`."""

    def __init__(self, store: GraphStore) -> None:
        self._store = store

    def extract(self, project_id: str, scope: GraphScope = GraphScope.ALL) -> CodeGraph:
        """Fetch and validate the *scope* subgraph of *project_id*.

        Edges whose endpoints were not returned as nodes are skipped.
        Isolated nodes are kept.

        Raises:
            ExtractionError: If the store call fails or a record is malformed.
        """
        try:
            payload = self._store.fetch_project_graph(project_id, scope=scope)
        except Exception as exc:
            logger.error("Failed to fetch graph for project %s: %s", project_id, exc)
            raise ExtractionError(
                f"Failed to fetch graph for project {project_id}",
                {"project_id": project_id, "scope": scope.value},
            ) from exc

        if not isinstance(payload, dict):
            raise ExtractionError(
                "Store returned a malformed graph payload", {"project_id": project_id}
            )

        nodes = [_parse_node(r, project_id) for r in payload.get("nodes") or []]
        edges = [_parse_edge(r) for r in payload.get("edges") or []]

        graph = CodeGraph()
        for node in nodes:
            graph.add_node(node)

        skipped = 0
        for edge in edges:
            if graph.add_edge(edge) is None:
                skipped += 1

        if skipped:
            logger.debug(
                "Skipped %d edges with unknown endpoints in project %s",
                skipped,
                project_id,
            )
        stats = graph.stats()
        logger.debug(
            "Extracted %s graph for project %s: %d nodes, %d edges",
            scope.value,
            project_id,
            stats["nodes"],
            stats["edges"],
        )
        return graph

    def extract_file_graph(self, project_id: str) -> CodeGraph:
        """File nodes connected by imports edges."""
        return self.extract(project_id, scope=GraphScope.FILES)

    def extract_function_graph(self, project_id: str) -> CodeGraph:
        """Function and method nodes connected by calls edges."""
        return self.extract(project_id, scope=GraphScope.FUNCTIONS)
