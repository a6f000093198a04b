"""Propagation — backward traversal from a changed node.

Every node in the transitive dependent closure is visited, dirtied and
queued for notification exactly once, however many paths lead to it. This
single-visit rule is what keeps diamond-shaped graphs glitch-free.
"""

from __future__ import annotations

from typing import Callable

from incrx.dependencies import DependencyRegistry


def propagate(
    origin: int,
    registry: DependencyRegistry,
    mark_dirty: Callable[[int], None],
) -> list[int]:
    """Dirty everything downstream of origin. Returns visited ids in visit order.

    Visit order is depth-first pre-order: the origin, then each dependent
    followed by its own dependents before the next sibling. An explicit
    worklist of iterators replaces recursion, so graph depth is bounded by
    memory rather than the interpreter's recursion limit.
    """
    visited = {origin}
    order = [origin]
    worklist = [iter(registry.dependents_of(origin))]

    while worklist:
        for dependent in worklist[-1]:
            mark_dirty(dependent)
            if dependent not in visited:
                visited.add(dependent)
                order.append(dependent)
                worklist.append(iter(registry.dependents_of(dependent)))
                break
        else:
            worklist.pop()

    return order
