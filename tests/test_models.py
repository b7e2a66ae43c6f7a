"""Tests for data models and duration helpers."""

from datetime import date

import pytest

from replan.models import (
    DependencyEdge,
    FeatureStatus,
    Milestone,
    ProjectSnapshot,
    format_duration,
    parse_duration,
)

from tests.conftest import feature, track


class TestParseDuration:
    """Test duration parsing."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (5, 5),
            ("5", 5),
            ("5d", 5),
            ("2w", 14),
            ("1.5m", 45),
            ("1y", 365),
            ("3 D", 3),
            (2.2, 3),
            (0.5, 1),
            ("0.2w", 2),
        ],
    )
    def test_valid_durations(self, value: str | int | float, expected: int) -> None:
        """Durations are converted to whole days, rounded up, at least one day."""
        assert parse_duration(value) == expected

    @pytest.mark.parametrize("value", ["", "abc", "5x", "w", "1..2d", True])
    def test_invalid_durations(self, value: str | bool) -> None:
        """Malformed durations raise ValueError."""
        with pytest.raises(ValueError, match="Invalid duration"):
            parse_duration(value)

    @pytest.mark.parametrize("value", [0, -5, 0.0, "0", "-2", "0d", "0.0w"])
    def test_non_positive_durations(self, value: str | int | float) -> None:
        """Zero and negative durations are rejected rather than rounded up."""
        with pytest.raises(ValueError, match="must be positive"):
            parse_duration(value)


class TestFormatDuration:
    """Test human-readable duration formatting."""

    @pytest.mark.parametrize(
        ("days", "expected"),
        [
            (1, "1d"),
            (6, "6d"),
            (7, "1 wk"),
            (10, "1.5 wks"),
            (14, "2 wks"),
            (30, "1 mo"),
            (45, "1.5 mo"),
            (60, "2 mo"),
        ],
    )
    def test_format(self, days: int, expected: str) -> None:
        """Weeks and months are rounded to the nearest half."""
        assert format_duration(days) == expected


class TestDependencyEdge:
    """Test dependency edge parsing and ordering."""

    def test_parse(self) -> None:
        edge = DependencyEdge.parse("design -> build")
        assert edge.predecessor_id == "design"
        assert edge.successor_id == "build"
        assert str(edge) == "design -> build"

    def test_parse_without_spaces(self) -> None:
        assert DependencyEdge.parse("a->b") == DependencyEdge("a", "b")

    @pytest.mark.parametrize("text", ["a", "a -> ", "-> b", "a b", "a -> b -> c"])
    def test_parse_invalid(self, text: str) -> None:
        with pytest.raises(ValueError, match="Invalid dependency"):
            DependencyEdge.parse(text)

    def test_edges_are_hashable_and_sortable(self) -> None:
        """Edges can be deduplicated and sorted by (predecessor, successor)."""
        edges = {DependencyEdge("b", "c"), DependencyEdge("a", "c"), DependencyEdge("a", "c")}
        assert sorted(edges) == [DependencyEdge("a", "c"), DependencyEdge("b", "c")]


class TestProjectSnapshot:
    """Test snapshot lookups."""

    def test_lookups(self) -> None:
        snap = ProjectSnapshot(
            project_id="p",
            features=[feature("a", 1, 5), feature("b", 6, 10)],
            team_tracks=[track("a", "web", 3, 1), track("a", "api", 5, 1), track("b", "web", 2, 6)],
            milestones=[Milestone(id="m1", name="Beta")],
        )

        assert snap.get_all_ids() == {"a", "b"}
        assert snap.get_feature("b") is snap.features[1]
        assert snap.get_feature("missing") is None
        assert [t.team_id for t in snap.tracks_for("a")] == ["web", "api"]
        assert snap.get_track("b", "web") is snap.team_tracks[2]
        assert snap.get_track("b", "api") is None
        assert snap.team_durations() == {"web": {"a": 3, "b": 2}, "api": {"a": 5}}

    def test_defaults(self) -> None:
        """New features start not started; milestones get the default color."""
        f = feature("a", 1, 1)
        assert f.status == FeatureStatus.NOT_STARTED
        assert f.duration == 1
        assert f.start_date == date(2025, 1, 1)
        assert Milestone(id="m", name="M").color == "#6366f1"
