"""Cascade propagation of end-date extensions through finish-to-start edges."""

from __future__ import annotations

import copy
from collections.abc import MutableMapping
from datetime import date

from replan.exceptions import MissingReferenceError
from replan.logger import get_logger
from replan.models import DependencyEdge, Feature

from .bounds import clamp_move
from .config import TimelineBounds
from .core import FeatureUpdate, end_from_duration, next_day, span_days
from .graph import DependencyGraph
from .topo import kahn_order

logger = get_logger()


class CascadePropagator:
    """Pushes successors later when a feature's end date moves out.

    The propagator works on a mutable feature map (an in-memory snapshot)
    and updates it as it goes, so that a caller can run several cascades
    against the same working state.

    Traversal is an explicit work-list over the subgraph reachable from the
    changed feature, guarded by a visited set, and then evaluated in
    topological order of that subgraph. A successor is only evaluated when
    at least one of its predecessors was the source or was itself shifted;
    its required start is the latest ``end + 1`` across all of its
    predecessors.
    """

    def __init__(
        self,
        graph: DependencyGraph,
        features: MutableMapping[str, Feature],
        bounds: TimelineBounds | None = None,
    ):
        """Initialize the propagator.

        Args:
            graph: Dependency graph for the project
            features: Working feature map, mutated in place
            bounds: Optional timeline window; shifts are clamped to it
        """
        self.graph = graph
        self.features = features
        self.bounds = bounds

    def propagate(self, source_id: str, new_end: date | None = None) -> list[FeatureUpdate]:
        """Cascade from source_id to all transitively affected successors.

        Args:
            source_id: The feature whose end date changed
            new_end: The new end date; if given, it is applied to the source
                first (its duration follows). The source's own update is not
                included in the result.

        Returns:
            Updates for every shifted successor, in topological order
        """
        source = self.features[source_id]
        if new_end is not None and new_end != source.end_date:
            source.end_date = new_end
            source.duration = span_days(source.start_date, new_end)

        affected = self.graph.reachable_from(source_id)
        if not affected:
            return []

        order, blocked = kahn_order(self.graph, self.features, subset=affected)
        for feature_id in blocked:
            logger.warning(f"Skipping '{feature_id}': it sits on a dependency cycle")

        shifted: set[str] = {source_id}
        updates: list[FeatureUpdate] = []

        for feature_id in order:
            preds = self.graph.predecessors[feature_id]
            if not any(pred_id in shifted for pred_id in preds):
                logger.debug(f"  '{feature_id}': no shifted predecessor, not evaluated")
                continue

            feature = self.features[feature_id]
            latest_end = max(self.features[pred_id].end_date for pred_id in preds)
            required_start = next_day(latest_end)
            logger.checks(
                f"  '{feature_id}': starts {feature.start_date}, required on/after {required_start}"
            )
            if feature.start_date >= required_start:
                continue

            new_start, shifted_end = self._place(required_start, feature.duration)
            if new_start <= feature.start_date:
                logger.checks(
                    f"  '{feature_id}': pinned at timeline end, left at {feature.start_date}"
                )
                continue

            logger.changes(
                f"Cascade: '{feature_id}' {feature.start_date}..{feature.end_date} -> "
                f"{new_start}..{shifted_end}"
            )
            feature.start_date = new_start
            feature.end_date = shifted_end
            feature.duration = span_days(new_start, shifted_end)
            shifted.add(feature_id)
            updates.append(
                FeatureUpdate(
                    id=feature_id,
                    start_date=new_start,
                    end_date=shifted_end,
                    duration=feature.duration,
                )
            )

        return updates

    def _place(self, start: date, duration: int) -> tuple[date, date]:
        """Compute new dates for a shifted feature, clamped when bounds are set."""
        if self.bounds is None:
            return start, end_from_duration(start, duration)
        return clamp_move(start, duration, self.bounds)


def cascade(
    feature_id: str,
    new_end: date,
    features: list[Feature],
    edges: list[DependencyEdge],
    bounds: TimelineBounds | None = None,
) -> list[FeatureUpdate]:
    """Compute the cascade caused by moving one feature's end date.

    The inputs are not modified.

    Args:
        feature_id: The feature whose end date changed
        new_end: Its new end date
        features: All features of the project
        edges: All dependency edges of the project
        bounds: Optional timeline window to clamp shifted features to

    Returns:
        Ordered updates for every transitively affected successor

    Raises:
        MissingReferenceError: If an edge or feature_id references an unknown feature
    """
    working = {feature.id: copy.copy(feature) for feature in features}
    graph = DependencyGraph.build(working, edges)
    if feature_id not in working:
        raise MissingReferenceError(f"Unknown feature: {feature_id}")
    return CascadePropagator(graph, working, bounds).propagate(feature_id, new_end)
