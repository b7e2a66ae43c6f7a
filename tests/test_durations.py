"""Tests for duration reconciliation against team tracks."""

import pytest

from replan.engine import TimelineBounds, derive_track_dates, reconcile_duration
from replan.engine.core import DurationExpansion
from replan.engine.durations import apply_expansion, derive_team_date_updates, group_tracks
from replan.exceptions import MissingReferenceError
from tests.conftest import day, feature, track


class TestReconcileDuration:
    """Test computing a feature's effective duration."""

    def test_expands_to_longest_track(self) -> None:
        f = feature("F", 1, 5)
        effective, expansion = reconcile_duration(
            f, [track("F", "web", 3, 1), track("F", "api", 8, 1)]
        )
        assert effective == 8
        assert expansion == DurationExpansion(id="F", old_duration=5, new_duration=8)

    def test_never_shrinks(self) -> None:
        """A feature longer than all its tracks keeps its duration."""
        effective, expansion = reconcile_duration(feature("F", 1, 10), [track("F", "web", 4, 1)])
        assert effective == 10
        assert expansion is None

    def test_no_tracks(self) -> None:
        effective, expansion = reconcile_duration(feature("F", 1, 5), [])
        assert effective == 5
        assert expansion is None


class TestApplyExpansion:
    """Test growing a feature in place."""

    def test_end_recomputed_from_start(self) -> None:
        f = feature("F", 1, 5)
        apply_expansion(f, DurationExpansion(id="F", old_duration=5, new_duration=8))
        assert (f.start_date, f.end_date, f.duration) == (day(1), day(8), 8)

    def test_capped_at_timeline_end(self) -> None:
        """Expansion is a resize: the end is capped, the start stays."""
        f = feature("F", 15, 19)
        bounds = TimelineBounds(start=day(1), end=day(20))
        apply_expansion(f, DurationExpansion(id="F", old_duration=5, new_duration=10), bounds)
        assert (f.start_date, f.end_date, f.duration) == (day(15), day(20), 6)


class TestTrackDates:
    """Test pinning team tracks to their parent feature."""

    def test_pinned_to_feature_start(self) -> None:
        """A moved feature drags its tracks along; each keeps its own duration."""
        f = feature("F", 10, 17)
        update = derive_track_dates(f, track("F", "web", 3, 1))
        assert update.start_date == day(10)
        assert update.end_date == day(12)
        assert update.duration == 3
        assert (update.team_id, update.feature_id) == ("web", "F")

    def test_only_stale_tracks_updated(self) -> None:
        features = {"F": feature("F", 10, 17), "G": feature("G", 1, 4)}
        tracks = [track("F", "web", 3, 1), track("F", "api", 8, 10), track("G", "web", 2, 1)]

        updates = derive_team_date_updates(features, tracks)

        assert [(u.feature_id, u.team_id) for u in updates] == [("F", "web")]

    def test_group_tracks_unknown_feature(self) -> None:
        with pytest.raises(MissingReferenceError, match="ghost"):
            group_tracks([track("ghost", "web", 3, 1)], {"F"})
