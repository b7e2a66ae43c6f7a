"""Per-team projection: one virtual timeline per team over the shared dependency graph."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date

from replan.exceptions import MissingReferenceError
from replan.logger import get_logger
from replan.models import ProjectSnapshot

from .bounds import clamp_move
from .config import ReflowConfig, TimelineBounds
from .core import TeamDateUpdate, TeamProjection, end_from_duration, next_day
from .graph import DependencyGraph
from .topo import kahn_order

logger = get_logger()


class PerTeamProjector:
    """Projects each team's own timeline over the project's dependency graph.

    For a team, every feature's duration is replaced by that team's track
    duration where one exists; features the team does not work on keep
    their own duration so the chain stays connected. The virtual schedule
    is tightly chained: root features keep their canonical start and every
    chained feature starts the day after its latest predecessor ends.

    Results are written only to that team's track rows, never to the
    canonical features, so team timelines may diverge from the project
    timeline and from each other.
    """

    def __init__(self, snapshot: ProjectSnapshot, config: ReflowConfig | None = None):
        """Initialize the projector.

        Raises:
            MissingReferenceError: If an edge references an unknown feature
        """
        self.snapshot = snapshot
        self.config = config or ReflowConfig()
        self.bounds: TimelineBounds | None = (
            self.config.timeline if self.config.clamp_to_timeline else None
        )
        self.features = snapshot.feature_map()
        self.graph = DependencyGraph.build(self.features, snapshot.edges)
        ordered, blocked = kahn_order(self.graph, self.features)
        self.order = ordered
        self.blocked = blocked

    def project(
        self, team_durations: Mapping[str, Mapping[str, int]] | None = None
    ) -> list[TeamProjection]:
        """Project every team that has at least one track in the project.

        Args:
            team_durations: Team ID -> (feature ID -> track duration). Defaults
                to the durations of the snapshot's own team tracks.

        Returns:
            One projection per team, in team ID order

        Raises:
            MissingReferenceError: If a duration references an unknown feature
        """
        if team_durations is None:
            team_durations = self.snapshot.team_durations()

        projections: list[TeamProjection] = []
        for team_id in sorted(team_durations):
            durations = team_durations[team_id]
            if not durations:
                logger.debug(f"Team '{team_id}' has no tracks, skipped")
                continue
            for feature_id in durations:
                if feature_id not in self.features:
                    raise MissingReferenceError(
                        f"Team '{team_id}' has a track on unknown feature: {feature_id}"
                    )
            projections.append(self.project_team(team_id, durations))
        return projections

    def project_team(self, team_id: str, durations: Mapping[str, int]) -> TeamProjection:
        """Build one team's virtual schedule and diff it against its stored tracks."""
        starts: dict[str, date] = {}
        ends: dict[str, date] = {}

        for feature_id in self.order:
            feature = self.features[feature_id]
            duration = durations.get(feature_id, feature.duration)
            preds = self.graph.predecessors[feature_id]
            if preds:
                start = next_day(max(ends[pred_id] for pred_id in preds))
            else:
                start = feature.start_date
            starts[feature_id], ends[feature_id] = self._place(start, duration)

        for feature_id in self.blocked:
            feature = self.features[feature_id]
            duration = durations.get(feature_id, feature.duration)
            starts[feature_id], ends[feature_id] = self._place(feature.start_date, duration)

        updates: list[TeamDateUpdate] = []
        for feature_id in self.order + self.blocked:
            if feature_id not in durations:
                continue
            update = TeamDateUpdate(
                team_id=team_id,
                feature_id=feature_id,
                start_date=starts[feature_id],
                end_date=ends[feature_id],
                duration=durations[feature_id],
            )
            if self._is_stored(update):
                continue
            logger.changes(
                f"Team '{team_id}': '{feature_id}' -> {update.start_date}..{update.end_date}"
            )
            updates.append(update)

        return TeamProjection(team_id=team_id, updates=updates)

    def _place(self, start: date, duration: int) -> tuple[date, date]:
        if self.bounds is None:
            return start, end_from_duration(start, duration)
        return clamp_move(start, duration, self.bounds)

    def _is_stored(self, update: TeamDateUpdate) -> bool:
        """True if the track row already holds exactly these values."""
        track = self.snapshot.get_track(update.feature_id, update.team_id)
        if track is None:
            return False
        return (track.start_date, track.end_date, track.duration) == (
            update.start_date,
            update.end_date,
            update.duration,
        )


def project_per_team(
    snapshot: ProjectSnapshot,
    team_durations: Mapping[str, Mapping[str, int]] | None = None,
    config: ReflowConfig | None = None,
) -> list[TeamProjection]:
    """Project a team-specific timeline for every team with tracks in the project.

    Args:
        snapshot: Features and edges of one project (and its stored team tracks)
        team_durations: Optional team ID -> (feature ID -> duration) overrides;
            defaults to the snapshot's team tracks
        config: Optional reflow configuration (timeline bounds)

    Returns:
        One TeamProjection per team that has at least one track
    """
    return PerTeamProjector(snapshot, config).project(team_durations)
