"""Dependency graph construction for a single project."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from replan.exceptions import MissingReferenceError
from replan.models import DependencyEdge


@dataclass
class DependencyGraph:
    """Adjacency (predecessor -> successors) and reverse-adjacency views."""

    successors: dict[str, list[str]]
    predecessors: dict[str, list[str]]

    @classmethod
    def build(cls, feature_ids: Iterable[str], edges: Iterable[DependencyEdge]) -> DependencyGraph:
        """Build the graph for a set of features.

        Duplicate edges are collapsed. Edge order is preserved otherwise.

        Raises:
            MissingReferenceError: If an edge references an unknown feature
        """
        successors: dict[str, list[str]] = {feature_id: [] for feature_id in feature_ids}
        predecessors: dict[str, list[str]] = {feature_id: [] for feature_id in successors}

        seen: set[DependencyEdge] = set()
        for edge in edges:
            if edge.predecessor_id not in successors:
                raise MissingReferenceError(
                    f"Dependency {edge} references unknown feature: {edge.predecessor_id}"
                )
            if edge.successor_id not in successors:
                raise MissingReferenceError(
                    f"Dependency {edge} references unknown feature: {edge.successor_id}"
                )
            if edge in seen:
                continue
            seen.add(edge)
            successors[edge.predecessor_id].append(edge.successor_id)
            predecessors[edge.successor_id].append(edge.predecessor_id)

        return cls(successors=successors, predecessors=predecessors)

    @property
    def node_ids(self) -> list[str]:
        """All feature IDs in the graph."""
        return list(self.successors)

    def reachable_from(self, feature_id: str) -> set[str]:
        """All features transitively downstream of feature_id (excluding itself)."""
        reached: set[str] = set()
        to_process = list(self.successors.get(feature_id, []))

        while to_process:
            current = to_process.pop()
            if current in reached:
                continue
            reached.add(current)
            to_process.extend(self.successors[current])

        reached.discard(feature_id)
        return reached

    def would_create_cycle(self, predecessor_id: str, successor_id: str) -> bool:
        """Check whether adding predecessor -> successor would close a cycle."""
        if predecessor_id == successor_id:
            return True
        return predecessor_id in self.reachable_from(successor_id)

    def find_cycle(self) -> list[str] | None:
        """Find one dependency cycle, if any.

        Returns:
            The cycle as a path of feature IDs whose last element repeats the
            first, or None if the graph is acyclic
        """
        visited: set[str] = set()

        for root in self.successors:
            if root in visited:
                continue
            path: list[str] = [root]
            on_path: set[str] = {root}
            iterators = [iter(self.successors[root])]
            visited.add(root)

            while iterators:
                next_id = next(iterators[-1], None)
                if next_id is None:
                    iterators.pop()
                    on_path.discard(path.pop())
                    continue
                if next_id in on_path:
                    return path[path.index(next_id) :] + [next_id]
                if next_id in visited:
                    continue
                visited.add(next_id)
                path.append(next_id)
                on_path.add(next_id)
                iterators.append(iter(self.successors[next_id]))

        return None
