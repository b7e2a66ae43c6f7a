"""Tests for direct edits and timeline clamping."""

import pytest

from replan.engine import FeatureEdit, TimelineBounds, clamp_move, clamp_resize, resolve_edit
from tests.conftest import day, feature

BOUNDS = TimelineBounds(start=day(1), end=day(30))


class TestClamping:
    """Test clamping ranges to the timeline window."""

    def test_move_inside_untouched(self) -> None:
        assert clamp_move(day(5), 3, BOUNDS) == (day(5), day(7))

    def test_move_before_start_shifts_right(self) -> None:
        assert clamp_move(day(-4), 10, BOUNDS) == (day(1), day(10))

    def test_move_past_end_shifts_left(self) -> None:
        assert clamp_move(day(25), 10, BOUNDS) == (day(21), day(30))

    def test_move_longer_than_window(self) -> None:
        assert clamp_move(day(5), 45, BOUNDS) == (day(1), day(30))

    def test_resize_caps_edges(self) -> None:
        assert clamp_resize(day(-3), day(40), BOUNDS) == (day(1), day(30))
        assert clamp_resize(day(25), day(35), BOUNDS) == (day(25), day(30))

    def test_resize_keeps_one_day(self) -> None:
        assert clamp_resize(day(40), day(45), BOUNDS) == (day(30), day(30))

    def test_invalid_bounds(self) -> None:
        with pytest.raises(ValueError, match="must not be after"):
            TimelineBounds(start=day(10), end=day(1))


class TestResolveEdit:
    """Test turning edits into new feature dates."""

    def test_move_keeps_duration(self) -> None:
        update = resolve_edit(feature("F", 1, 5), FeatureEdit.move(day(10)))
        assert (update.start_date, update.end_date, update.duration) == (day(10), day(14), 5)

    def test_move_clamped(self) -> None:
        update = resolve_edit(feature("F", 1, 5), FeatureEdit.move(day(28)), BOUNDS)
        assert (update.start_date, update.end_date) == (day(26), day(30))

    def test_resize_start(self) -> None:
        """Dragging the left edge keeps the end fixed."""
        update = resolve_edit(feature("F", 5, 10), FeatureEdit.resize_start(day(2)))
        assert (update.start_date, update.end_date, update.duration) == (day(2), day(10), 9)

    def test_resize_start_past_end(self) -> None:
        """A feature is never shorter than one day."""
        update = resolve_edit(feature("F", 5, 10), FeatureEdit.resize_start(day(15)))
        assert (update.start_date, update.end_date, update.duration) == (day(10), day(10), 1)

    def test_resize_end_by_date(self) -> None:
        update = resolve_edit(feature("F", 5, 10), FeatureEdit.resize_end(end_date=day(20)))
        assert (update.start_date, update.end_date, update.duration) == (day(5), day(20), 16)

    def test_resize_end_by_duration(self) -> None:
        update = resolve_edit(feature("F", 5, 10), FeatureEdit.resize_end(duration=3))
        assert (update.start_date, update.end_date) == (day(5), day(7))

    def test_resize_end_capped(self) -> None:
        update = resolve_edit(feature("F", 25, 28), FeatureEdit.resize_end(duration=20), BOUNDS)
        assert (update.start_date, update.end_date, update.duration) == (day(25), day(30), 6)

    def test_set_dates(self) -> None:
        update = resolve_edit(feature("F", 1, 5), FeatureEdit.set_dates(day(3), day(4)))
        assert (update.start_date, update.end_date, update.duration) == (day(3), day(4), 2)

    def test_missing_values(self) -> None:
        with pytest.raises(ValueError, match="requires"):
            resolve_edit(feature("F", 1, 5), FeatureEdit.resize_end())
