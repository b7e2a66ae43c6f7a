"""Core dataclasses and date helpers for the reflow engine."""

from dataclasses import dataclass, field
from datetime import date, timedelta


def days_between(start: date, end: date) -> int:
    """Whole calendar days from start to end (end - start)."""
    return (end - start).days


def span_days(start: date, end: date) -> int:
    """Inclusive duration of a date range: end - start + 1."""
    return days_between(start, end) + 1


def end_from_duration(start: date, duration: int) -> date:
    """Inclusive end date for a range starting at start and lasting duration days."""
    return start + timedelta(days=duration - 1)


def start_from_duration(end: date, duration: int) -> date:
    """Inclusive start date for a range ending at end and lasting duration days."""
    return end - timedelta(days=duration - 1)


def next_day(day: date) -> date:
    """The day after day (earliest start allowed after a predecessor ends)."""
    return day + timedelta(days=1)


@dataclass
class FeatureUpdate:
    """New dates for a feature, produced by a cascade or reflow."""

    id: str
    start_date: date
    end_date: date
    duration: int


@dataclass
class DurationExpansion:
    """A feature grown to accommodate its longest team track."""

    id: str
    old_duration: int
    new_duration: int


@dataclass
class TeamDateUpdate:
    """New dates for a team track."""

    team_id: str
    feature_id: str
    start_date: date
    end_date: date
    duration: int


@dataclass
class FeatureOverride:
    """Caller-supplied values applied to a feature before reflow.

    Used for values the caller already knows (a just-written duration, a
    dragged start date) so the engine does not need a read-after-write.
    """

    start_date: date | None = None
    duration: int | None = None


def _default_feature_updates() -> list[FeatureUpdate]:
    return []


def _default_expansions() -> list[DurationExpansion]:
    return []


def _default_team_updates() -> list[TeamDateUpdate]:
    return []


@dataclass
class ReflowResult:
    """The three update sets produced by a reflow."""

    feature_updates: list[FeatureUpdate] = field(default_factory=_default_feature_updates)
    duration_expansions: list[DurationExpansion] = field(default_factory=_default_expansions)
    team_date_updates: list[TeamDateUpdate] = field(default_factory=_default_team_updates)

    @property
    def is_empty(self) -> bool:
        """True if the reflow produced no updates at all."""
        return not (self.feature_updates or self.duration_expansions or self.team_date_updates)


@dataclass
class TeamProjection:
    """A team-specific timeline produced by the per-team projector."""

    team_id: str
    updates: list[TeamDateUpdate] = field(default_factory=_default_team_updates)
