"""Weakly and strongly connected components of a :class:`CodeGraph`."""

from __future__ import annotations

import logging

from synapse_graph.core.analytics.models import ComponentInfo
from synapse_graph.core.graph.graph import CodeGraph

logger = logging.getLogger(__name__)


def _group_members(membership: list[int]) -> list[list[int]]:
    groups: dict[int, list[int]] = {}
    for idx, label in enumerate(membership):
        groups.setdefault(label, []).append(idx)
    return list(groups.values())


def compute_components(
    graph: CodeGraph,
) -> tuple[dict[str, int], list[ComponentInfo]]:
    """Identify weakly connected components (edges treated as undirected).

    Every node is assigned exactly one component.  Component IDs are
    assigned by size, largest first, ties broken by the lowest node index
    in the component; component ``0`` is flagged ``is_main``.  Isolated
    nodes form singleton components.

    Returns:
        ``(node_id -> component_id, components)`` with the component list
        ordered by ID.
    """
    if graph.node_count == 0:
        return {}, []

    clustering = graph.to_igraph().connected_components(mode="weak")
    groups = _group_members(list(clustering.membership))
    groups.sort(key=lambda members: (-len(members), members[0]))

    node_map: dict[str, int] = {}
    components: list[ComponentInfo] = []
    for component_id, members in enumerate(groups):
        member_ids = [graph.node_at(i).id for i in members]
        for node_id in member_ids:
            node_map[node_id] = component_id
        components.append(
            ComponentInfo(
                id=component_id,
                members=frozenset(member_ids),
                is_main=component_id == 0,
            )
        )

    logger.debug(
        "Found %d weakly connected components (largest: %d nodes)",
        len(components),
        components[0].size,
    )
    return node_map, components


def find_cycles(graph: CodeGraph) -> list[list[str]]:
    """Return strongly connected components with more than one node.

    Each entry lists the node IDs of one dependency cycle in node order.
    """
    if graph.node_count == 0:
        return []

    clustering = graph.to_igraph().connected_components(mode="strong")
    cycles = [
        [graph.node_at(i).id for i in members]
        for members in _group_members(list(clustering.membership))
        if len(members) > 1
    ]
    cycles.sort(key=lambda ids: (-len(ids), graph.index_of(ids[0])))
    return cycles
