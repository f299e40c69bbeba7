"""Community detection for Synapse Graph (Louvain).

Partitions the undirected, weighted projection of a :class:`CodeGraph` into
communities of tightly connected nodes by greedy modularity optimisation:

1. **Local moving**: each node in turn moves to the neighbouring community
   with the largest positive modularity gain, until a full pass moves
   nothing or the pass cap is reached.
2. **Aggregation**: every community collapses into a super-node (internal
   weight becomes a self loop) and local moving repeats on the coarse graph.

A level that does not improve modularity is discarded and the search stops.
Candidate communities are scanned in ascending ID order and only a strictly
better gain replaces the current best, so equal gains resolve to the lowest
community ID and identical input always gives identical output.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from pathlib import PurePosixPath

from synapse_graph.core.analytics.models import AnalyticsConfig, CommunityInfo
from synapse_graph.core.graph.graph import CodeGraph

logger = logging.getLogger(__name__)

_EPSILON = 1e-12

# Level graph: symmetric adjacency without self entries plus self-loop weights.
Adjacency = list[dict[int, float]]


@dataclass
class CommunityResult:
    """Output of :func:`detect_communities`."""

    node_to_community: dict[str, int] = field(default_factory=dict)
    communities: list[CommunityInfo] = field(default_factory=list)
    modularity: float = 0.0


def build_adjacency(graph: CodeGraph) -> tuple[Adjacency, list[float]]:
    """Project *graph* onto an undirected weighted graph.

    Edges in both directions between two nodes add up; parallel edges add up.
    """
    n = graph.node_count
    adj: Adjacency = [{} for _ in range(n)]
    loops = [0.0] * n
    for eidx, (src, tgt) in enumerate(graph.iter_edge_ends()):
        weight = graph.edge_weight(eidx)
        if src == tgt:
            loops[src] += weight
            continue
        adj[src][tgt] = adj[src].get(tgt, 0.0) + weight
        adj[tgt][src] = adj[tgt].get(src, 0.0) + weight
    return adj, loops


def _strengths(adj: Adjacency, loops: list[float]) -> list[float]:
    return [sum(neighbors.values()) + 2.0 * loop for neighbors, loop in zip(adj, loops)]


def modularity(
    adj: Adjacency,
    loops: list[float],
    membership: list[int],
    resolution: float = 1.0,
) -> float:
    """Newman modularity of *membership* over a level graph.

    Returns 0.0 when the graph carries no edge weight.
    """
    strengths = _strengths(adj, loops)
    m2 = sum(strengths)
    if m2 <= 0.0:
        return 0.0

    internal: dict[int, float] = {}
    totals: dict[int, float] = {}
    for i, comm in enumerate(membership):
        totals[comm] = totals.get(comm, 0.0) + strengths[i]
        inside = 2.0 * loops[i]
        for j, weight in adj[i].items():
            if membership[j] == comm:
                inside += weight
        internal[comm] = internal.get(comm, 0.0) + inside

    return sum(
        internal[comm] / m2 - resolution * (totals[comm] / m2) ** 2 for comm in totals
    )


def _local_moving(
    adj: Adjacency,
    strengths: list[float],
    m2: float,
    resolution: float,
    max_passes: int,
) -> tuple[list[int], bool]:
    """Run phase 1 on a level graph.  Returns ``(membership, moved_any)``."""
    n = len(adj)
    community = list(range(n))
    totals = list(strengths)
    moved_any = False

    for _ in range(max_passes):
        moved = False
        for i in range(n):
            current = community[i]
            ki = strengths[i]

            links: dict[int, float] = {}
            for j, weight in adj[i].items():
                comm = community[j]
                links[comm] = links.get(comm, 0.0) + weight

            totals[current] -= ki
            best = current
            best_gain = links.get(current, 0.0) - resolution * totals[current] * ki / m2
            for comm in sorted(links):
                if comm == current:
                    continue
                gain = links[comm] - resolution * totals[comm] * ki / m2
                if gain > best_gain + _EPSILON:
                    best, best_gain = comm, gain
            totals[best] += ki

            if best != current:
                community[i] = best
                moved = True

        if not moved:
            break
        moved_any = True

    return community, moved_any


def _aggregate(
    adj: Adjacency, loops: list[float], community: list[int]
) -> tuple[Adjacency, list[float], list[int]]:
    """Phase 2: collapse each community into one super-node.

    Super-nodes are numbered by first appearance in node order.  Returns the
    coarse adjacency, its self loops and the node -> super-node map.
    """
    relabel: dict[int, int] = {}
    for comm in community:
        if comm not in relabel:
            relabel[comm] = len(relabel)

    k = len(relabel)
    new_adj: Adjacency = [{} for _ in range(k)]
    new_loops = [0.0] * k
    for i, neighbors in enumerate(adj):
        ci = relabel[community[i]]
        new_loops[ci] += loops[i]
        for j, weight in neighbors.items():
            cj = relabel[community[j]]
            if ci == cj:
                # Each internal pair is visited from both ends.
                new_loops[ci] += weight / 2.0
            else:
                new_adj[ci][cj] = new_adj[ci].get(cj, 0.0) + weight

    return new_adj, new_loops, [relabel[c] for c in community]


def generate_label(graph: CodeGraph, member_ids: list[str]) -> str:
    """Generate a heuristic label for a community based on member paths.

    Strategy:
    - Extract the parent directory from each member's ``path``.
    - If all members share the same directory, use that directory name.
    - Otherwise, combine the two most frequent directories with ``+``.

    Falls back to the member name for singletons and to ``"Cluster"`` when
    no paths are available.
    """
    directories: list[str] = []
    for nid in member_ids:
        node = graph.get_node(nid)
        if node is not None and node.path:
            parent = PurePosixPath(node.path).parent.name
            if parent:
                directories.append(parent)

    if not directories:
        if len(member_ids) == 1:
            node = graph.get_node(member_ids[0])
            if node is not None and node.name:
                return node.name
        return "Cluster"

    counts = Counter(directories)
    most_common = counts.most_common(2)

    if len(most_common) == 1:
        return most_common[0][0].capitalize()

    label = f"{most_common[0][0]}+{most_common[1][0]}"
    return label.capitalize()


def _build_result(
    graph: CodeGraph, membership: list[int], score: float
) -> CommunityResult:
    groups: dict[int, list[int]] = {}
    for idx, comm in enumerate(membership):
        groups.setdefault(comm, []).append(idx)
    ordered = sorted(groups.values(), key=lambda members: (-len(members), members[0]))

    result = CommunityResult(modularity=score)
    for community_id, members in enumerate(ordered):
        member_ids = [graph.node_at(i).id for i in members]
        for node_id in member_ids:
            result.node_to_community[node_id] = community_id
        label = generate_label(graph, member_ids)
        result.communities.append(
            CommunityInfo(id=community_id, members=frozenset(member_ids), label=label)
        )
        logger.debug(
            "Community %d: %r with %d members", community_id, label, len(member_ids)
        )
    return result


def detect_communities(graph: CodeGraph, config: AnalyticsConfig) -> CommunityResult:
    """Detect communities in *graph* with the Louvain method.

    Every node ends up in exactly one community.  Community IDs are
    contiguous, assigned by size (largest first) and then by the lowest node
    index.  Graphs without edge weight yield one singleton community per
    node and a modularity of 0.0.

    Args:
        graph: The code graph to partition.
        config: Supplies ``louvain_resolution``, ``louvain_max_passes`` and
            ``louvain_max_levels``.

    Returns:
        A :class:`CommunityResult` with the node mapping, the communities and
        the modularity of the final partition.
    """
    n = graph.node_count
    if n == 0:
        return CommunityResult()

    resolution = config.louvain_resolution
    adj, loops = build_adjacency(graph)
    m2 = sum(_strengths(adj, loops))
    membership = list(range(n))

    if m2 <= 0.0:
        logger.debug("Graph has no edge weight, every node is its own community")
        return _build_result(graph, membership, 0.0)

    best_q = modularity(adj, loops, membership, resolution)
    level_adj, level_loops = adj, loops

    for level in range(config.louvain_max_levels):
        strengths = _strengths(level_adj, level_loops)
        community, moved = _local_moving(
            level_adj, strengths, m2, resolution, config.louvain_max_passes
        )
        if not moved:
            break

        q = modularity(level_adj, level_loops, community, resolution)
        if q <= best_q + _EPSILON:
            logger.debug("Louvain level %d brought no improvement, stopping", level)
            break

        level_adj, level_loops, node_to_super = _aggregate(
            level_adj, level_loops, community
        )
        membership = [node_to_super[s] for s in membership]
        best_q = q
        logger.debug(
            "Louvain level %d: %d communities, modularity=%.4f",
            level,
            len(level_adj),
            q,
        )

    result = _build_result(graph, membership, best_q)
    logger.info(
        "Community detection complete: %d communities (modularity=%.3f)",
        len(result.communities),
        best_q,
    )
    return result
