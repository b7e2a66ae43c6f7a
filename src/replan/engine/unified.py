"""Unified reflow: the single entry point invoked after every mutation."""

from __future__ import annotations

import copy
from collections.abc import Collection, Mapping
from datetime import date

from replan.exceptions import MissingReferenceError
from replan.logger import get_logger
from replan.models import Feature, ProjectSnapshot

from .bounds import clamp_move, clamp_resize
from .cascade import CascadePropagator
from .config import ReflowConfig, ReflowMode, TimelineBounds
from .core import (
    DurationExpansion,
    FeatureOverride,
    FeatureUpdate,
    ReflowResult,
    end_from_duration,
    next_day,
    span_days,
)
from .durations import apply_expansion, derive_team_date_updates, group_tracks, reconcile_duration
from .graph import DependencyGraph
from .merge import apply_reflow
from .topo import kahn_order

logger = get_logger()


class UnifiedReflow:
    """Restores every scheduling invariant for one project snapshot.

    Each run works on a private copy of the snapshot:
    1. Apply caller overrides (already-known durations, dragged starts)
    2. Pull every feature back inside the timeline window
    3. Grow features to their longest team track
    4. Walk features in topological order and cascade from every feature
       whose successors no longer satisfy finish-to-start
    5. Re-pin team tracks to their (possibly moved) parent features
    6. Diff against the snapshot to produce the three update sets

    The snapshot itself is never modified, so repeated runs on the same
    input give the same result.
    """

    def __init__(self, snapshot: ProjectSnapshot, config: ReflowConfig | None = None):
        """Initialize the orchestrator.

        Args:
            snapshot: Features, edges and team tracks of a single project
            config: Optional reflow configuration (mode, timeline bounds)

        Raises:
            MissingReferenceError: If an edge or track references an unknown feature
        """
        self.snapshot = snapshot
        self.config = config or ReflowConfig()
        self.bounds = self.config.timeline if self.config.clamp_to_timeline else None
        feature_ids = snapshot.get_all_ids()
        self.graph = DependencyGraph.build(feature_ids, snapshot.edges)
        self.tracks_by_feature = group_tracks(snapshot.team_tracks, feature_ids)

    def run(
        self,
        overrides: Mapping[str, FeatureOverride] | None = None,
        skip_ids: Collection[str] | None = None,
    ) -> ReflowResult:
        """Run the reflow.

        Args:
            overrides: Values to apply to features before reflowing, by feature ID
            skip_ids: Features whose own update the caller has already applied,
                either in the snapshot or through overrides. Their update is
                reported only if the reflow moves them beyond that value.

        Returns:
            ReflowResult with feature updates, duration expansions and team date updates

        Raises:
            MissingReferenceError: If an override references an unknown feature
        """
        skip = set(skip_ids or ())
        working = {feature.id: copy.copy(feature) for feature in self.snapshot.features}
        order, blocked = kahn_order(self.graph, working)
        walk_order = order + blocked

        logger.debug(f"Reflow '{self.snapshot.project_id}': {len(working)} features")

        if overrides:
            self._apply_overrides(working, overrides)
        applied = {
            feature_id: _dates(working[feature_id]) for feature_id in skip if feature_id in working
        }

        if self.bounds is not None:
            self._clamp_to_timeline(working, walk_order, self.bounds)

        expansions = self._expand_durations(working, walk_order)

        if self.config.mode == ReflowMode.TIGHT:
            self._chain_tight(working, order)
        else:
            self._cascade_push(working, order)

        feature_updates = self._diff_features(working, walk_order, applied)
        team_date_updates = derive_team_date_updates(working, self.snapshot.team_tracks)

        return ReflowResult(
            feature_updates=feature_updates,
            duration_expansions=expansions,
            team_date_updates=team_date_updates,
        )

    def _apply_overrides(
        self, working: dict[str, Feature], overrides: Mapping[str, FeatureOverride]
    ) -> None:
        """Apply caller-known values: a new start is a move, a new duration is a resize."""
        for feature_id, override in overrides.items():
            feature = working.get(feature_id)
            if feature is None:
                raise MissingReferenceError(f"Override references unknown feature: {feature_id}")

            start = override.start_date if override.start_date is not None else feature.start_date
            duration = override.duration if override.duration is not None else feature.duration
            if override.start_date is not None and self.bounds is not None:
                start, end = clamp_move(start, duration, self.bounds)
            else:
                end = end_from_duration(start, duration)
            if override.duration is not None and self.bounds is not None:
                start, end = clamp_resize(start, end, self.bounds)

            logger.debug(f"  override '{feature_id}': {start}..{end}")
            feature.start_date = start
            feature.end_date = end
            feature.duration = span_days(start, end)

    def _clamp_to_timeline(
        self, working: dict[str, Feature], walk_order: list[str], bounds: TimelineBounds
    ) -> None:
        """Shift every feature that lies outside the window back inside it."""
        for feature_id in walk_order:
            feature = working[feature_id]
            start, end = clamp_move(feature.start_date, feature.duration, bounds)
            if (start, end) == (feature.start_date, feature.end_date):
                continue
            logger.changes(
                f"Clamp: '{feature_id}' {feature.start_date}..{feature.end_date} -> {start}..{end}"
            )
            feature.start_date = start
            feature.end_date = end
            feature.duration = span_days(start, end)

    def _expand_durations(
        self, working: dict[str, Feature], walk_order: list[str]
    ) -> list[DurationExpansion]:
        """Grow every feature that is shorter than its longest team track."""
        expansions: list[DurationExpansion] = []
        for feature_id in walk_order:
            tracks = self.tracks_by_feature.get(feature_id)
            if not tracks:
                continue
            _, expansion = reconcile_duration(working[feature_id], tracks)
            if expansion is None:
                continue
            before = working[feature_id].duration
            apply_expansion(working[feature_id], expansion, self.bounds)
            if working[feature_id].duration == before:
                # Already capped at the timeline end
                continue
            expansions.append(expansion)
        return expansions

    def _cascade_push(self, working: dict[str, Feature], order: list[str]) -> None:
        """Cascade from each feature whose successors start too early."""
        propagator = CascadePropagator(self.graph, working, self.bounds)
        for feature_id in order:
            end = working[feature_id].end_date
            violated = [
                succ_id
                for succ_id in self.graph.successors[feature_id]
                if working[succ_id].start_date <= end
            ]
            if not violated:
                continue
            logger.checks(f"'{feature_id}' ends {end}; violated by {', '.join(violated)}")
            propagator.propagate(feature_id)

    def _chain_tight(self, working: dict[str, Feature], order: list[str]) -> None:
        """Snap every chained feature to the day after its latest predecessor ends."""
        for feature_id in order:
            preds = self.graph.predecessors[feature_id]
            if not preds:
                continue
            feature = working[feature_id]
            required_start = next_day(max(working[pred_id].end_date for pred_id in preds))
            if feature.start_date == required_start:
                continue
            if self.bounds is not None:
                start, end = clamp_move(required_start, feature.duration, self.bounds)
            else:
                start, end = required_start, end_from_duration(required_start, feature.duration)
            logger.changes(f"Chain: '{feature_id}' {feature.start_date} -> {start}")
            feature.start_date = start
            feature.end_date = end
            feature.duration = span_days(start, end)

    def _diff_features(
        self,
        working: dict[str, Feature],
        walk_order: list[str],
        applied: Mapping[str, tuple[date, date, int]],
    ) -> list[FeatureUpdate]:
        """Produce an update for every feature whose dates differ from the snapshot.

        A skipped feature is left out only while it still holds exactly the
        values the caller applied.
        """
        original = self.snapshot.feature_map()
        updates: list[FeatureUpdate] = []
        for feature_id in walk_order:
            after = _dates(working[feature_id])
            if _dates(original[feature_id]) == after:
                continue
            if applied.get(feature_id) == after:
                logger.debug(f"  '{feature_id}' already applied by caller, not emitted")
                continue
            start, end, duration = after
            updates.append(
                FeatureUpdate(id=feature_id, start_date=start, end_date=end, duration=duration)
            )
        return updates


def _dates(feature: Feature) -> tuple[date, date, int]:
    return feature.start_date, feature.end_date, feature.duration


def unified_reflow(
    snapshot: ProjectSnapshot,
    *,
    overrides: Mapping[str, FeatureOverride] | None = None,
    skip_ids: Collection[str] | None = None,
    config: ReflowConfig | None = None,
) -> ReflowResult:
    """Reflow a whole project snapshot.

    Args:
        snapshot: Features, edges and team tracks of one project
        overrides: Values to apply to features before reflowing, by feature ID
        skip_ids: Features whose own update the caller has already applied
        config: Optional reflow configuration

    Returns:
        ReflowResult with the three update sets; empty when the snapshot is
        already consistent
    """
    return UnifiedReflow(snapshot, config).run(overrides=overrides, skip_ids=skip_ids)


def converge(
    snapshot: ProjectSnapshot, config: ReflowConfig | None = None
) -> tuple[ProjectSnapshot, int]:
    """Re-run the reflow, applying each result, until a pass produces no updates.

    Returns:
        Tuple of (stable snapshot, number of passes run including the final empty one)
    """
    config = config or ReflowConfig()
    current = snapshot
    for pass_number in range(1, config.max_passes + 1):
        result = unified_reflow(current, config=config)
        if result.is_empty:
            logger.debug(f"Converged after {pass_number} pass(es)")
            return current, pass_number
        current = apply_reflow(current, result)

    logger.warning(f"Reflow did not converge within {config.max_passes} passes")
    return current, config.max_passes
