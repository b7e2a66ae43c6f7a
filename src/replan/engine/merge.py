"""Merging engine results back into a snapshot, keyed by entity ID."""

from __future__ import annotations

import copy
from collections.abc import Iterable
from dataclasses import replace

from replan.models import ProjectSnapshot, TeamTrack

from .core import FeatureUpdate, ReflowResult, TeamDateUpdate, TeamProjection


def copy_snapshot(snapshot: ProjectSnapshot) -> ProjectSnapshot:
    """Copy a snapshot so that its features, tracks and lists can be changed independently."""
    return ProjectSnapshot(
        project_id=snapshot.project_id,
        features=[copy.copy(feature) for feature in snapshot.features],
        edges=list(snapshot.edges),
        team_tracks=[copy.copy(track) for track in snapshot.team_tracks],
        milestones=[copy.copy(milestone) for milestone in snapshot.milestones],
    )


def apply_feature_updates(
    snapshot: ProjectSnapshot, updates: Iterable[FeatureUpdate]
) -> ProjectSnapshot:
    """Return a new snapshot with feature dates replaced by the given updates."""
    by_id = {update.id: update for update in updates}
    merged = copy_snapshot(snapshot)
    merged.features = [
        replace(
            feature,
            start_date=by_id[feature.id].start_date,
            end_date=by_id[feature.id].end_date,
            duration=by_id[feature.id].duration,
        )
        if feature.id in by_id
        else feature
        for feature in merged.features
    ]
    return merged


def apply_team_date_updates(
    snapshot: ProjectSnapshot, updates: Iterable[TeamDateUpdate]
) -> ProjectSnapshot:
    """Return a new snapshot with team track dates replaced by the given updates."""
    by_key = {(update.feature_id, update.team_id): update for update in updates}
    merged = copy_snapshot(snapshot)
    tracks: list[TeamTrack] = []
    for track in merged.team_tracks:
        update = by_key.get(track.key)
        if update is None:
            tracks.append(track)
            continue
        tracks.append(
            replace(
                track,
                start_date=update.start_date,
                end_date=update.end_date,
                duration=update.duration,
            )
        )
    merged.team_tracks = tracks
    return merged


def apply_reflow(snapshot: ProjectSnapshot, result: ReflowResult) -> ProjectSnapshot:
    """Merge a reflow result into a snapshot.

    Feature updates and team date updates are applied. Duration expansions
    are records only: the expanded dates already travel in the feature
    updates, except for features the caller asked to skip.
    """
    merged = apply_feature_updates(snapshot, result.feature_updates)
    return apply_team_date_updates(merged, result.team_date_updates)


def apply_team_projections(
    snapshot: ProjectSnapshot, projections: Iterable[TeamProjection]
) -> ProjectSnapshot:
    """Merge per-team projections into the snapshot's team tracks."""
    updates = [update for projection in projections for update in projection.updates]
    return apply_team_date_updates(snapshot, updates)
