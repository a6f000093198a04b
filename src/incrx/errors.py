"""Exceptions raised by incrx.

Failures inside user code (computations, equality predicates, observer
callbacks) are never wrapped: they reach the caller unchanged.
"""


class IncrxError(Exception):
    """Base class for errors raised by the engine itself."""


class CycleError(IncrxError):
    """A function node was read while it was already being evaluated."""

    def __init__(self, node_id: int, stack: tuple[int, ...]) -> None:
        self.node_id = node_id
        self.stack = stack
        path = " -> ".join(str(i) for i in (*stack, node_id))
        super().__init__(f"node {node_id} depends on itself: {path}")


class DisposedNodeError(IncrxError):
    """An operation was attempted on a node that has been disposed."""


class ForeignNodeError(IncrxError):
    """A node created by one System was passed to another."""
