"""Dependency registry — "function node X read node Y" edges.

Edges are kept twice: forward (X -> its dependencies) so a re-evaluation
can discard all of X's edges at once, and reverse (Y -> its dependents) so
propagation can find who to dirty without scanning every edge. Both sides
are insertion-ordered sets keyed by node id, so reading the same node twice
in one evaluation yields a single edge.
"""

from __future__ import annotations


class DependencyRegistry:
    __slots__ = ("_dependencies", "_dependents")

    def __init__(self) -> None:
        self._dependencies: dict[int, dict[int, None]] = {}
        self._dependents: dict[int, dict[int, None]] = {}

    def add(self, source: int, target: int) -> None:
        """Record that function node `source` read node `target`."""
        self._dependencies.setdefault(source, {})[target] = None
        self._dependents.setdefault(target, {})[source] = None

    def clear_dependencies(self, source: int) -> None:
        """Discard every edge whose source is `source`."""
        for target in self._dependencies.pop(source, ()):
            dependents = self._dependents.get(target)
            if dependents is not None:
                dependents.pop(source, None)
                if not dependents:
                    del self._dependents[target]

    def replace_dependencies(self, source: int, targets) -> None:
        """Make `targets` the complete dependency set of `source`."""
        self.clear_dependencies(source)
        for target in targets:
            self.add(source, target)

    def remove_node(self, node_id: int) -> tuple[int, ...]:
        """Discard every edge touching node_id. Returns its former dependents."""
        self.clear_dependencies(node_id)
        dependents = tuple(self._dependents.pop(node_id, ()))
        for source in dependents:
            dependencies = self._dependencies.get(source)
            if dependencies is not None:
                dependencies.pop(node_id, None)
                if not dependencies:
                    del self._dependencies[source]
        return dependents

    def dependencies_of(self, source: int) -> tuple[int, ...]:
        return tuple(self._dependencies.get(source, ()))

    def dependents_of(self, target: int) -> tuple[int, ...]:
        return tuple(self._dependents.get(target, ()))

    def edge_count(self) -> int:
        return sum(len(targets) for targets in self._dependencies.values())
