"""Pytest configuration and fixtures for replan tests."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, timedelta

import pytest

from replan import context
from replan.engine import ReflowConfig, check_invariants
from replan.logger import reset_logger
from replan.models import DependencyEdge, Feature, ProjectSnapshot, TeamTrack

DAY_ONE = date(2025, 1, 1)


def day(n: int) -> date:
    """Calendar date of project day n (day 1 is 2025-01-01)."""
    return DAY_ONE + timedelta(days=n - 1)


def feature(
    feature_id: str,
    start_day: int,
    end_day: int,
    *,
    sort_order: int = 0,
    milestone: str | None = None,
) -> Feature:
    """Create a feature spanning project days start_day..end_day (inclusive)."""
    return Feature(
        id=feature_id,
        milestone_id=milestone,
        start_date=day(start_day),
        end_date=day(end_day),
        duration=end_day - start_day + 1,
        sort_order=sort_order,
    )


def edges(*edge_strs: str) -> list[DependencyEdge]:
    """Create edges from "a -> b" strings."""
    return [DependencyEdge.parse(s) for s in edge_strs]


def track(feature_id: str, team_id: str, duration: int, start_day: int) -> TeamTrack:
    """Create a team track pinned to start_day."""
    return TeamTrack(
        feature_id=feature_id,
        team_id=team_id,
        duration=duration,
        start_date=day(start_day),
        end_date=day(start_day + duration - 1),
    )


def snapshot(
    features: Iterable[Feature],
    edge_list: Iterable[DependencyEdge] = (),
    tracks: Iterable[TeamTrack] = (),
) -> ProjectSnapshot:
    """Build a single-project snapshot."""
    return ProjectSnapshot(
        project_id="proj",
        features=list(features),
        edges=list(edge_list),
        team_tracks=list(tracks),
    )


def dates_of(snap: ProjectSnapshot, feature_id: str) -> tuple[date, date]:
    """(start, end) of a feature in a snapshot."""
    found = snap.get_feature(feature_id)
    assert found is not None, f"missing feature {feature_id}"
    return found.start_date, found.end_date


def assert_consistent(snap: ProjectSnapshot, config: ReflowConfig | None = None) -> None:
    """Assert that a snapshot satisfies every scheduling invariant."""
    violations = check_invariants(snap, config)
    assert violations == [], "\n".join(violations)


@pytest.fixture(autouse=True)
def clean_global_state() -> Iterable[None]:
    """Reset the logger and the --config context around each test."""
    reset_logger()
    context.reset()
    yield
    reset_logger()
    context.reset()
