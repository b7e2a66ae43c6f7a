"""Data models for Replan."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from functools import total_ordering

# Duration conversion constants
DAYS_PER_WEEK = 7
DAYS_PER_MONTH = 30
DAYS_PER_YEAR = 365

DURATION_UNIT_DAYS = {
    "d": 1,
    "w": DAYS_PER_WEEK,
    "m": DAYS_PER_MONTH,
    "y": DAYS_PER_YEAR,
}

DEFAULT_MILESTONE_COLOR = "#6366f1"


class FeatureStatus(str, Enum):
    """Lifecycle status of a feature."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class FeaturePriority(str, Enum):
    """Priority of a feature."""

    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


def _positive_days(value: str | int | float, days: float) -> int:
    if days <= 0:
        raise ValueError(f"Invalid duration: {value!r} (must be positive)")
    return math.ceil(days)


def parse_duration(value: str | int | float) -> int:
    """Parse a duration into whole calendar days.

    Supported formats:
    - 5 or "5" - 5 days
    - "5d" - 5 days
    - "2w" - 14 days
    - "1.5m" - 45 days
    - "1y" - 365 days

    Fractional results are rounded up, so any positive value is at least 1 day.

    Raises:
        ValueError: If the value cannot be parsed or is not positive
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return _positive_days(value, value)

    text = value.strip().lower()
    if re.match(r"^-?\d+(\.\d+)?$", text):
        return _positive_days(value, float(text))

    match = re.match(r"^([\d.]+)\s*([dwmy])$", text)
    if not match:
        raise ValueError(f"Invalid duration: {value!r} (expected e.g. '5d', '2w', '1.5m', '1y')")

    number, unit = match.groups()
    try:
        num = float(number)
    except ValueError as e:
        raise ValueError(f"Invalid duration: {value!r}") from e
    return _positive_days(value, num * DURATION_UNIT_DAYS[unit])


def format_duration(days: int) -> str:
    """Format a duration in days for display.

    - 30+ days -> months, rounded to the nearest half
    - 7-29 days -> weeks, rounded to the nearest half
    - under 7 days -> days
    """
    if days >= DAYS_PER_MONTH:
        months = round(days / DAYS_PER_MONTH * 2) / 2
        return "1 mo" if months == 1 else f"{months:g} mo"
    if days >= DAYS_PER_WEEK:
        weeks = round(days / DAYS_PER_WEEK * 2) / 2
        return "1 wk" if weeks == 1 else f"{weeks:g} wks"
    return f"{days}d"


@total_ordering
@dataclass(frozen=True)
class DependencyEdge:
    """A finish-to-start constraint: the successor starts after the predecessor ends."""

    predecessor_id: str
    successor_id: str

    @classmethod
    def parse(cls, edge_str: str) -> DependencyEdge:
        """Parse an edge string of the form "predecessor -> successor".

        Raises:
            ValueError: If the string is not a valid edge
        """
        match = re.match(r"^\s*(\S+)\s*->\s*(\S+)\s*$", edge_str)
        if not match:
            raise ValueError(
                f"Invalid dependency '{edge_str}' (expected 'predecessor -> successor')"
            )
        predecessor_id, successor_id = match.groups()
        return cls(predecessor_id=predecessor_id, successor_id=successor_id)

    def __str__(self) -> str:
        return f"{self.predecessor_id} -> {self.successor_id}"

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, DependencyEdge):
            return NotImplemented
        return (self.predecessor_id, self.successor_id) < (
            other.predecessor_id,
            other.successor_id,
        )


@dataclass
class Feature:
    """A schedulable work item belonging to a milestone."""

    id: str
    milestone_id: str | None
    start_date: date
    end_date: date
    duration: int
    title: str = ""
    status: FeatureStatus = FeatureStatus.NOT_STARTED
    priority: FeaturePriority = FeaturePriority.NONE
    sort_order: int = 0


@dataclass
class TeamTrack:
    """A per-team duration for a feature, pinned to the feature's start date."""

    feature_id: str
    team_id: str
    duration: int
    start_date: date
    end_date: date

    @property
    def key(self) -> tuple[str, str]:
        """Identity of the track: (feature_id, team_id)."""
        return (self.feature_id, self.team_id)


@dataclass
class Milestone:
    """A named, colored grouping of features (not part of the constraint graph)."""

    id: str
    name: str
    color: str = DEFAULT_MILESTONE_COLOR
    start_date: date | None = None
    end_date: date | None = None


def _default_features() -> list[Feature]:
    return []


def _default_edges() -> list[DependencyEdge]:
    return []


def _default_tracks() -> list[TeamTrack]:
    return []


def _default_milestones() -> list[Milestone]:
    return []


@dataclass
class ProjectSnapshot:
    """A self-contained view of one project: features, edges, team tracks."""

    project_id: str
    features: list[Feature] = field(default_factory=_default_features)
    edges: list[DependencyEdge] = field(default_factory=_default_edges)
    team_tracks: list[TeamTrack] = field(default_factory=_default_tracks)
    milestones: list[Milestone] = field(default_factory=_default_milestones)

    def get_all_ids(self) -> set[str]:
        """Get all feature IDs in the snapshot."""
        return {feature.id for feature in self.features}

    def feature_map(self) -> dict[str, Feature]:
        """Map feature ID to feature."""
        return {feature.id: feature for feature in self.features}

    def get_feature(self, feature_id: str) -> Feature | None:
        """Get a feature by its ID."""
        for feature in self.features:
            if feature.id == feature_id:
                return feature
        return None

    def tracks_for(self, feature_id: str) -> list[TeamTrack]:
        """Get all team tracks attached to a feature."""
        return [track for track in self.team_tracks if track.feature_id == feature_id]

    def get_track(self, feature_id: str, team_id: str) -> TeamTrack | None:
        """Get the track for a (feature, team) pair."""
        for track in self.team_tracks:
            if track.feature_id == feature_id and track.team_id == team_id:
                return track
        return None

    def team_durations(self) -> dict[str, dict[str, int]]:
        """Map team ID to a map of feature ID -> that team's track duration."""
        durations: dict[str, dict[str, int]] = {}
        for track in self.team_tracks:
            durations.setdefault(track.team_id, {})[track.feature_id] = track.duration
        return durations
