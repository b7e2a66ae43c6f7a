"""Tests for dependency graph construction and topological ordering."""

import pytest

from replan.engine import DependencyGraph, last_in_chain, topological_sort
from replan.exceptions import MissingReferenceError

from tests.conftest import edges, feature


class TestDependencyGraph:
    """Test graph building and traversal."""

    def test_build(self) -> None:
        graph = DependencyGraph.build(["a", "b", "c"], edges("a -> b", "a -> c", "b -> c"))
        assert graph.successors == {"a": ["b", "c"], "b": ["c"], "c": []}
        assert graph.predecessors == {"a": [], "b": ["a"], "c": ["a", "b"]}

    def test_duplicate_edges_collapsed(self) -> None:
        graph = DependencyGraph.build(["a", "b"], edges("a -> b", "a -> b"))
        assert graph.successors["a"] == ["b"]
        assert graph.predecessors["b"] == ["a"]

    def test_unknown_feature(self) -> None:
        with pytest.raises(MissingReferenceError, match="ghost"):
            DependencyGraph.build(["a"], edges("a -> ghost"))

    def test_reachable_from(self) -> None:
        graph = DependencyGraph.build(["a", "b", "c", "d"], edges("a -> b", "b -> c"))
        assert graph.reachable_from("a") == {"b", "c"}
        assert graph.reachable_from("c") == set()
        assert graph.reachable_from("d") == set()

    def test_would_create_cycle(self) -> None:
        graph = DependencyGraph.build(["a", "b", "c"], edges("a -> b", "b -> c"))
        assert graph.would_create_cycle("c", "a")
        assert graph.would_create_cycle("b", "b")
        assert not graph.would_create_cycle("a", "c")

    def test_find_cycle(self) -> None:
        graph = DependencyGraph.build(["a", "b", "c"], edges("a -> b", "b -> c", "c -> b"))
        assert graph.find_cycle() == ["b", "c", "b"]

    def test_find_cycle_self_edge(self) -> None:
        graph = DependencyGraph.build(["a"], edges("a -> a"))
        assert graph.find_cycle() == ["a", "a"]

    def test_find_cycle_acyclic(self) -> None:
        """A diamond is not a cycle."""
        graph = DependencyGraph.build(
            ["a", "b", "c", "d"], edges("a -> b", "a -> c", "b -> d", "c -> d")
        )
        assert graph.find_cycle() is None


class TestTopologicalSort:
    """Test ordering with the sort-order tie-break."""

    def test_predecessors_first(self) -> None:
        features = [feature("c", 1, 2), feature("b", 1, 2), feature("a", 1, 2)]
        ordered = topological_sort(features, edges("c -> b", "b -> a"))
        assert [f.id for f in ordered] == ["c", "b", "a"]

    def test_tie_break_by_sort_order(self) -> None:
        """Unconstrained features follow sort_order, then start date, then ID."""
        features = [
            feature("late", 10, 12, sort_order=1),
            feature("early", 5, 6, sort_order=1),
            feature("first", 20, 21, sort_order=0),
            feature("also_early", 5, 6, sort_order=1),
        ]
        ordered = topological_sort(features, [])
        assert [f.id for f in ordered] == ["first", "also_early", "early", "late"]

    def test_edge_overrides_sort_order(self) -> None:
        features = [feature("a", 1, 2, sort_order=5), feature("b", 1, 2, sort_order=0)]
        ordered = topological_sort(features, edges("a -> b"))
        assert [f.id for f in ordered] == ["a", "b"]

    def test_cycle_members_appended(self) -> None:
        """Features on a cycle are still returned, after the orderable ones."""
        features = [feature("a", 1, 2), feature("b", 1, 2), feature("c", 1, 2)]
        ordered = topological_sort(features, edges("a -> b", "b -> a"))
        assert [f.id for f in ordered] == ["c", "a", "b"]

    def test_trivial_inputs(self) -> None:
        assert topological_sort([], []) == []
        single = feature("a", 1, 2)
        assert topological_sort([single], []) == [single]

    def test_last_in_chain(self) -> None:
        features = [feature("a", 1, 2), feature("b", 3, 4), feature("c", 1, 2, sort_order=-1)]
        tail = last_in_chain(features, edges("a -> b"))
        assert tail is not None
        assert tail.id == "b"
        assert last_in_chain([], []) is None
