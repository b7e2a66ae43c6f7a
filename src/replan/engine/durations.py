"""Reconciliation of feature durations against their team tracks."""

from __future__ import annotations

from collections.abc import Collection, Iterable, Mapping

from replan.exceptions import MissingReferenceError
from replan.logger import get_logger
from replan.models import Feature, TeamTrack

from .bounds import clamp_resize
from .config import TimelineBounds
from .core import DurationExpansion, TeamDateUpdate, end_from_duration, span_days

logger = get_logger()


def group_tracks(
    tracks: Iterable[TeamTrack], feature_ids: Collection[str]
) -> dict[str, list[TeamTrack]]:
    """Group team tracks by feature ID.

    Raises:
        MissingReferenceError: If a track references an unknown feature
    """
    grouped: dict[str, list[TeamTrack]] = {}
    for track in tracks:
        if track.feature_id not in feature_ids:
            raise MissingReferenceError(
                f"Team track for team '{track.team_id}' references unknown feature: "
                f"{track.feature_id}"
            )
        grouped.setdefault(track.feature_id, []).append(track)
    return grouped


def reconcile_duration(
    feature: Feature, tracks: Iterable[TeamTrack]
) -> tuple[int, DurationExpansion | None]:
    """Compute a feature's effective minimum duration from its team tracks.

    The reconciler only ever grows a feature: a feature longer than all of
    its tracks keeps its duration.

    Returns:
        Tuple of (effective duration, expansion record or None if no growth is needed)
    """
    longest = max((track.duration for track in tracks), default=0)
    effective = max(feature.duration, longest)
    logger.checks(
        f"  '{feature.id}': duration {feature.duration}, longest track {longest or '-'}"
    )
    if effective > feature.duration:
        return effective, DurationExpansion(
            id=feature.id, old_duration=feature.duration, new_duration=effective
        )
    return effective, None


def apply_expansion(
    feature: Feature, expansion: DurationExpansion, bounds: TimelineBounds | None = None
) -> None:
    """Grow a feature in place: end date recomputed from its start and the new duration.

    Expansion is a resize, so with bounds set the end date is capped at the
    end of the timeline.
    """
    start = feature.start_date
    end = end_from_duration(start, expansion.new_duration)
    if bounds is not None:
        start, end = clamp_resize(start, end, bounds)
        if span_days(start, end) < expansion.new_duration:
            logger.warning(
                f"Feature '{feature.id}' capped at timeline end {bounds.end}; "
                f"needs {expansion.new_duration} days"
            )
    logger.changes(
        f"Expand: '{feature.id}' {expansion.old_duration} -> {span_days(start, end)} days "
        f"(ends {end})"
    )
    feature.start_date = start
    feature.end_date = end
    feature.duration = span_days(start, end)


def derive_track_dates(feature: Feature, track: TeamTrack) -> TeamDateUpdate:
    """Pin a track to its parent feature's start and derive its end from its duration."""
    return TeamDateUpdate(
        team_id=track.team_id,
        feature_id=track.feature_id,
        start_date=feature.start_date,
        end_date=end_from_duration(feature.start_date, track.duration),
        duration=track.duration,
    )


def derive_team_date_updates(
    features: Mapping[str, Feature], tracks: Iterable[TeamTrack]
) -> list[TeamDateUpdate]:
    """Derive pinned dates for every track whose stored dates are stale.

    Returns:
        One update per track whose derived start or end differs from its stored dates
    """
    updates: list[TeamDateUpdate] = []
    for track in tracks:
        derived = derive_track_dates(features[track.feature_id], track)
        if derived.start_date == track.start_date and derived.end_date == track.end_date:
            continue
        logger.changes(
            f"Track: '{track.feature_id}'/{track.team_id} -> "
            f"{derived.start_date}..{derived.end_date}"
        )
        updates.append(derived)
    return updates
