"""Topological ordering of features with a manual sort-order tie-break."""

from __future__ import annotations

import heapq
from collections.abc import Collection, Mapping
from datetime import date

from replan.logger import get_logger
from replan.models import DependencyEdge, Feature

from .graph import DependencyGraph

logger = get_logger()


def _sort_key(feature: Feature) -> tuple[int, date, str]:
    """Tie-break for features with no ordering constraint between them."""
    return (feature.sort_order, feature.start_date, feature.id)


def kahn_order(
    graph: DependencyGraph,
    features: Mapping[str, Feature],
    subset: Collection[str] | None = None,
) -> tuple[list[str], list[str]]:
    """Kahn's algorithm with a ready queue ordered by (sort_order, start_date, id).

    Args:
        graph: Dependency graph for the project
        features: Feature lookup by ID (supplies the tie-break key)
        subset: Optional set of IDs to order; edges leaving the subset are ignored

    Returns:
        Tuple of (ordered IDs, IDs that could not be ordered because of a cycle)
    """
    members = set(graph.node_ids if subset is None else subset)

    in_degree = dict.fromkeys(members, 0)
    for feature_id in members:
        for succ_id in graph.successors[feature_id]:
            if succ_id in members:
                in_degree[succ_id] += 1

    ready = [(_sort_key(features[fid]), fid) for fid, degree in in_degree.items() if degree == 0]
    heapq.heapify(ready)
    result: list[str] = []

    while ready:
        _, feature_id = heapq.heappop(ready)
        result.append(feature_id)

        for succ_id in graph.successors[feature_id]:
            if succ_id not in members:
                continue
            in_degree[succ_id] -= 1
            if in_degree[succ_id] == 0:
                heapq.heappush(ready, (_sort_key(features[succ_id]), succ_id))

    placed = set(result)
    blocked = sorted(
        (fid for fid in members if fid not in placed), key=lambda fid: _sort_key(features[fid])
    )
    if blocked:
        logger.warning(f"Dependency cycle among features: {', '.join(blocked)}")
    return result, blocked


def topological_sort(features: list[Feature], edges: list[DependencyEdge]) -> list[Feature]:
    """Order features so that every predecessor precedes its successors.

    Features with no ordering constraint between them are ordered by
    ascending sort_order (then start date, then ID). If the edges contain a
    cycle, the features on it are appended at the end in tie-break order.

    Raises:
        MissingReferenceError: If an edge references an unknown feature
    """
    if len(features) <= 1:
        return list(features)

    feature_map = {feature.id: feature for feature in features}
    graph = DependencyGraph.build(feature_map, edges)
    ordered, blocked = kahn_order(graph, feature_map)
    return [feature_map[fid] for fid in ordered + blocked]


def last_in_chain(features: list[Feature], edges: list[DependencyEdge]) -> Feature | None:
    """The deterministic default feature to chain a new feature after.

    Returns:
        The last feature in topological order, or None if there are no features
    """
    ordered = topological_sort(features, edges)
    return ordered[-1] if ordered else None
