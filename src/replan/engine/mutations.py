"""Mutations: apply a direct edit, then reflow the whole project.

Every function here is pure. It takes a snapshot, returns a new snapshot
with the edit and every cascaded update merged in, and reports what
changed so the caller can persist it and notify clients.
"""

from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass, field

from replan.exceptions import CircularDependencyError, MissingReferenceError, ValidationError
from replan.logger import get_logger
from replan.models import DependencyEdge, ProjectSnapshot, TeamTrack

from .config import ReflowConfig
from .core import FeatureOverride, FeatureUpdate, ReflowResult, TeamProjection, end_from_duration
from .edits import FeatureEdit, resolve_edit
from .graph import DependencyGraph
from .merge import apply_feature_updates, apply_reflow, copy_snapshot
from .per_team import project_per_team
from .unified import unified_reflow

logger = get_logger()


def _default_projections() -> list[TeamProjection]:
    return []


@dataclass
class MutationResult:
    """Outcome of a mutation."""

    snapshot: ProjectSnapshot  # Snapshot with the edit and all cascaded updates merged
    reflow: ReflowResult  # Cascaded updates, for persistence and client caches
    direct_update: FeatureUpdate | None = None  # The edited feature's own new dates
    team_projections: list[TeamProjection] = field(default_factory=_default_projections)


def _commit(
    edited: ProjectSnapshot,
    config: ReflowConfig | None,
    skip_ids: Collection[str] = (),
    direct_update: FeatureUpdate | None = None,
    with_team_projections: bool = False,
) -> MutationResult:
    """Reflow a snapshot that already holds the direct edit and merge the result."""
    reflow = unified_reflow(edited, skip_ids=skip_ids, config=config)
    merged = apply_reflow(edited, reflow)
    projections = project_per_team(merged, config=config) if with_team_projections else []
    return MutationResult(
        snapshot=merged,
        reflow=reflow,
        direct_update=direct_update,
        team_projections=projections,
    )


def _require_feature(snapshot: ProjectSnapshot, feature_id: str) -> None:
    if snapshot.get_feature(feature_id) is None:
        raise MissingReferenceError(f"Unknown feature: {feature_id}")


def edit_feature(
    snapshot: ProjectSnapshot,
    feature_id: str,
    edit: FeatureEdit,
    config: ReflowConfig | None = None,
) -> MutationResult:
    """Apply a move/resize/date edit to one feature and cascade it.

    The edited feature is passed to the reflow as already applied, so its
    own update is reported once (as direct_update). It shows up again in the
    reflow's feature updates only when the reflow changes it further, for
    example when it was moved before a predecessor ends or shrunk below its
    longest team track.

    Raises:
        MissingReferenceError: If the feature does not exist
    """
    config = config or ReflowConfig()
    feature = snapshot.get_feature(feature_id)
    if feature is None:
        raise MissingReferenceError(f"Unknown feature: {feature_id}")

    bounds = config.timeline if config.clamp_to_timeline else None
    direct = resolve_edit(feature, edit, bounds)
    logger.changes(f"Edit: '{feature_id}' -> {direct.start_date}..{direct.end_date}")

    edited = apply_feature_updates(snapshot, [direct])
    return _commit(edited, config, skip_ids={feature_id}, direct_update=direct)


def preview_edit(
    snapshot: ProjectSnapshot,
    feature_id: str,
    edit: FeatureEdit,
    config: ReflowConfig | None = None,
) -> ReflowResult:
    """Compute what an edit would cascade to, without committing it (drag preview).

    The edited feature's own update is included in the result.
    """
    config = config or ReflowConfig()
    feature = snapshot.get_feature(feature_id)
    if feature is None:
        raise MissingReferenceError(f"Unknown feature: {feature_id}")

    bounds = config.timeline if config.clamp_to_timeline else None
    direct = resolve_edit(feature, edit, bounds)
    override = FeatureOverride(start_date=direct.start_date, duration=direct.duration)
    return unified_reflow(snapshot, overrides={feature_id: override}, config=config)


def add_dependency(
    snapshot: ProjectSnapshot,
    predecessor_id: str,
    successor_id: str,
    config: ReflowConfig | None = None,
) -> MutationResult:
    """Add a finish-to-start edge and push the successor chain if needed.

    Raises:
        MissingReferenceError: If either feature does not exist
        CircularDependencyError: If the edge would create a cycle (including a self-edge)
        ValidationError: If the edge already exists
    """
    _require_feature(snapshot, predecessor_id)
    _require_feature(snapshot, successor_id)

    edge = DependencyEdge(predecessor_id=predecessor_id, successor_id=successor_id)
    if edge in snapshot.edges:
        raise ValidationError(f"Dependency already exists: {edge}")

    if predecessor_id == successor_id:
        raise CircularDependencyError(f"A feature cannot depend on itself: {predecessor_id}")

    graph = DependencyGraph.build(snapshot.get_all_ids(), snapshot.edges)
    if graph.would_create_cycle(predecessor_id, successor_id):
        raise CircularDependencyError(
            f"Dependency {edge} would create a cycle: {successor_id} already leads to "
            f"{predecessor_id}"
        )

    logger.changes(f"Link: {edge}")
    edited = copy_snapshot(snapshot)
    edited.edges.append(edge)
    return _commit(edited, config)


def remove_dependency(
    snapshot: ProjectSnapshot,
    predecessor_id: str,
    successor_id: str,
    config: ReflowConfig | None = None,
) -> MutationResult:
    """Remove an edge and reflow.

    Successors are never pulled earlier in push mode, so removing an edge
    usually produces no cascaded updates.

    Raises:
        ValidationError: If the edge does not exist
    """
    edge = DependencyEdge(predecessor_id=predecessor_id, successor_id=successor_id)
    if edge not in snapshot.edges:
        raise ValidationError(f"No such dependency: {edge}")

    logger.changes(f"Unlink: {edge}")
    edited = copy_snapshot(snapshot)
    edited.edges = [existing for existing in edited.edges if existing != edge]
    return _commit(edited, config)


def upsert_team_track(
    snapshot: ProjectSnapshot,
    feature_id: str,
    team_id: str,
    duration: int,
    config: ReflowConfig | None = None,
) -> MutationResult:
    """Create or update a team's track on a feature, then reflow.

    The track is pinned to the feature's start. If it is now the longest
    track and exceeds the feature, the feature expands and its successors
    cascade. Per-team projections are computed on the result.

    Raises:
        MissingReferenceError: If the feature does not exist
        ValidationError: If duration is less than 1
    """
    if duration < 1:
        raise ValidationError(f"Track duration must be at least 1 day, got {duration}")
    feature = snapshot.get_feature(feature_id)
    if feature is None:
        raise MissingReferenceError(f"Unknown feature: {feature_id}")

    track = TeamTrack(
        feature_id=feature_id,
        team_id=team_id,
        duration=duration,
        start_date=feature.start_date,
        end_date=end_from_duration(feature.start_date, duration),
    )
    logger.changes(f"Track: '{feature_id}'/{team_id} = {duration} days")

    edited = copy_snapshot(snapshot)
    edited.team_tracks = [t for t in edited.team_tracks if t.key != track.key] + [track]
    return _commit(edited, config, with_team_projections=True)


def remove_team_track(
    snapshot: ProjectSnapshot,
    feature_id: str,
    team_id: str,
    config: ReflowConfig | None = None,
) -> MutationResult:
    """Delete a team's track on a feature, then reflow.

    The parent feature keeps its duration even if the removed track was the
    one that expanded it.

    Raises:
        ValidationError: If the track does not exist
    """
    if snapshot.get_track(feature_id, team_id) is None:
        raise ValidationError(f"No track for team '{team_id}' on feature '{feature_id}'")

    logger.changes(f"Untrack: '{feature_id}'/{team_id}")
    edited = copy_snapshot(snapshot)
    edited.team_tracks = [t for t in edited.team_tracks if t.key != (feature_id, team_id)]
    return _commit(edited, config, with_team_projections=True)
