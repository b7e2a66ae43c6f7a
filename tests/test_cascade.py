"""Tests for cascade propagation through finish-to-start dependencies."""

import pytest

from replan.engine import CascadePropagator, DependencyGraph, TimelineBounds, cascade
from replan.exceptions import MissingReferenceError
from tests.conftest import day, edges, feature


class TestCascade:
    """Test pushing successors when a feature's end date moves."""

    def test_simple_chain(self) -> None:
        """Extending F1 to day 8 pushes F2 to days 9-13."""
        features = [feature("F1", 1, 5), feature("F2", 6, 10)]

        updates = cascade("F1", day(8), features, edges("F1 -> F2"))

        assert len(updates) == 1
        assert updates[0].id == "F2"
        assert updates[0].start_date == day(9)
        assert updates[0].end_date == day(13)
        assert updates[0].duration == 5

    def test_inputs_not_modified(self) -> None:
        features = [feature("F1", 1, 5), feature("F2", 6, 10)]
        cascade("F1", day(8), features, edges("F1 -> F2"))
        assert features[0].end_date == day(5)
        assert features[1].start_date == day(6)

    def test_transitive_chain(self) -> None:
        """Shifts ripple through every downstream feature, in order."""
        features = [feature("a", 1, 5), feature("b", 6, 10), feature("c", 11, 12)]

        updates = cascade("a", day(7), features, edges("a -> b", "b -> c"))

        assert [(u.id, u.start_date, u.end_date) for u in updates] == [
            ("b", day(8), day(12)),
            ("c", day(13), day(14)),
        ]

    def test_slack_absorbs_shift(self) -> None:
        """A successor that already starts late enough is left alone, and so is its chain."""
        features = [feature("a", 1, 5), feature("b", 20, 24), feature("c", 25, 26)]
        assert cascade("a", day(10), features, edges("a -> b", "b -> c")) == []

    def test_never_pulls_earlier(self) -> None:
        """Shrinking a predecessor does not move successors back."""
        features = [feature("a", 1, 5), feature("b", 6, 10)]
        assert cascade("a", day(3), features, edges("a -> b")) == []

    def test_diamond_uses_latest_predecessor(self) -> None:
        """C depends on A and B; C lands after whichever ends later."""
        features = [feature("A", 1, 5), feature("B", 1, 5), feature("C", 6, 10)]
        dag = edges("A -> C", "B -> C")

        updates = cascade("B", day(12), features, dag)
        assert [(u.id, u.start_date) for u in updates] == [("C", day(13))]

        # A extending less than B's end does not move C below B's requirement
        features = [feature("A", 1, 5), feature("B", 1, 12), feature("C", 13, 17)]
        assert cascade("A", day(10), features, dag) == []

    def test_diamond_single_update_per_feature(self) -> None:
        """Both paths reach D; D is evaluated once, after both branches shift."""
        features = [
            feature("A", 1, 2),
            feature("B", 3, 4),
            feature("C", 3, 8),
            feature("D", 9, 10),
        ]
        dag = edges("A -> B", "A -> C", "B -> D", "C -> D")

        updates = cascade("A", day(5), features, dag)

        ids = [u.id for u in updates]
        assert ids.count("D") == 1
        by_id = {u.id: u for u in updates}
        assert by_id["B"].start_date == day(6)
        assert by_id["C"].start_date == day(6)
        assert by_id["C"].end_date == day(11)
        assert by_id["D"].start_date == day(12)

    def test_idempotent(self) -> None:
        """Cascading the same end date twice yields no further updates."""
        features = [feature("F1", 1, 5), feature("F2", 6, 10)]
        graph = DependencyGraph.build(["F1", "F2"], edges("F1 -> F2"))
        working = {f.id: f for f in features}
        propagator = CascadePropagator(graph, working)

        first = propagator.propagate("F1", day(8))
        second = propagator.propagate("F1", day(8))

        assert len(first) == 1
        assert second == []
        assert working["F2"].start_date == day(9)

    def test_clamped_to_timeline_end(self) -> None:
        """A shift past the timeline end is pulled back inside, keeping duration."""
        bounds = TimelineBounds(start=day(1), end=day(20))
        features = [feature("a", 1, 11), feature("b", 12, 14)]

        updates = cascade("a", day(18), features, edges("a -> b"), bounds)

        assert [(u.id, u.start_date, u.end_date) for u in updates] == [("b", day(18), day(20))]

    def test_clamp_never_moves_backward(self) -> None:
        """When clamping would not move a feature later, it is left where it is."""
        bounds = TimelineBounds(start=day(1), end=day(20))
        features = [feature("a", 1, 15), feature("b", 16, 20)]
        assert cascade("a", day(18), features, edges("a -> b"), bounds) == []

    def test_cycle_members_skipped(self) -> None:
        """Features on a cycle downstream of the source are skipped, not looped on."""
        features = [feature("a", 1, 5), feature("b", 6, 10), feature("c", 11, 15)]

        updates = cascade("a", day(8), features, edges("a -> b", "b -> c", "c -> b"))

        assert updates == []

    def test_unknown_feature(self) -> None:
        with pytest.raises(MissingReferenceError, match="ghost"):
            cascade("ghost", day(3), [feature("a", 1, 2)], [])
