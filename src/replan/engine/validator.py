"""Invariant checks for a project snapshot."""

from __future__ import annotations

from replan.models import ProjectSnapshot

from .config import ReflowConfig
from .core import end_from_duration, next_day, span_days
from .durations import group_tracks
from .graph import DependencyGraph


def check_invariants(snapshot: ProjectSnapshot, config: ReflowConfig | None = None) -> list[str]:
    """Check a snapshot against the invariants every reflow must restore.

    1. For every edge, successor start >= predecessor end + 1 day
    2. For every feature, duration == end - start + 1 (>= 1)
    3. For every feature with team tracks, duration >= max(track durations)
    4. Every team track starts on its parent feature's start date
    5. No feature falls outside the timeline (when clamping is enabled)

    Returns:
        Human-readable violations; empty if the snapshot is consistent

    Raises:
        MissingReferenceError: If an edge or track references an unknown feature
    """
    config = config or ReflowConfig()
    features = snapshot.feature_map()
    graph = DependencyGraph.build(features, snapshot.edges)
    tracks_by_feature = group_tracks(snapshot.team_tracks, features)
    violations: list[str] = []

    for pred_id, succ_ids in graph.successors.items():
        pred = features[pred_id]
        for succ_id in succ_ids:
            succ = features[succ_id]
            if succ.start_date < next_day(pred.end_date):
                violations.append(
                    f"'{succ_id}' starts {succ.start_date} but predecessor '{pred_id}' "
                    f"ends {pred.end_date}"
                )

    for feature in snapshot.features:
        span = span_days(feature.start_date, feature.end_date)
        if span < 1:
            violations.append(
                f"'{feature.id}' ends {feature.end_date} before it starts {feature.start_date}"
            )
        elif feature.duration != span:
            violations.append(
                f"'{feature.id}' has duration {feature.duration} but spans {span} days"
            )

        tracks = tracks_by_feature.get(feature.id, [])
        longest = max((track.duration for track in tracks), default=0)
        if longest > feature.duration:
            violations.append(
                f"'{feature.id}' lasts {feature.duration} days but its longest team track "
                f"needs {longest}"
            )
        for track in tracks:
            if track.start_date != feature.start_date:
                violations.append(
                    f"Track '{feature.id}'/{track.team_id} starts {track.start_date}, "
                    f"feature starts {feature.start_date}"
                )
            elif track.end_date != end_from_duration(track.start_date, track.duration):
                violations.append(
                    f"Track '{feature.id}'/{track.team_id} ends {track.end_date}, "
                    f"expected {end_from_duration(track.start_date, track.duration)}"
                )

        if config.clamp_to_timeline:
            bounds = config.timeline
            if feature.start_date < bounds.start or feature.end_date > bounds.end:
                violations.append(
                    f"'{feature.id}' ({feature.start_date}..{feature.end_date}) is outside "
                    f"the timeline {bounds.start}..{bounds.end}"
                )

    return violations
