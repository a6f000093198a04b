"""System — one independent dependency graph and its public operations.

Reading a node attributes the read to the function node on top of the
execution stack, which is how dependencies are discovered. Writing a
variable dirties every transitively dependent function node once and then
notifies the observers of every node it reached, origin first.

Notification does not recompute anything: a dirty function node recomputes
on its next read. An observer firing means "something upstream changed".

A System is single-threaded. Computations may read other nodes freely;
a computation that reads its own node, directly or through others, raises
CycleError. Writing from inside a computation is the caller's
responsibility and is not guarded.
"""

from __future__ import annotations

import functools
import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator, TypeVar, overload

from incrx import _anchor
from incrx._tracking import Batch, ExecutionStack
from incrx.dependencies import DependencyRegistry
from incrx.errors import CycleError, DisposedNodeError, ForeignNodeError
from incrx.node import Function, Node, Variable, default_eq
from incrx.propagation import propagate
from incrx.subscription import ObserverRegistry, Unsubscribe

T = TypeVar("T")
R = TypeVar("R")

Eq = Callable[[Any, Any], bool]

logger = logging.getLogger("incrx.system")


class System:
    """An engine instance: node store, execution stack, edges and observers."""

    def __init__(self) -> None:
        self._anchor = _anchor.Anchor()
        self._stack = ExecutionStack()
        self._registry = DependencyRegistry()
        self._observers = ObserverRegistry()
        self._batch = Batch()

    # --- Construction ---

    def variable(self, initial: T, *, eq: Eq | None = None, name: str | None = None) -> Variable[T]:
        """Create a source node holding `initial`."""
        node_id = self._anchor.add_variable(initial, eq or default_eq, name)
        return Variable(node_id, self)

    @overload
    def func(self, fn: Callable[[], T], *, eq: Eq | None = None, name: str | None = None) -> Function[T]: ...

    @overload
    def func(
        self, fn: None = None, *, eq: Eq | None = None, name: str | None = None
    ) -> Callable[[Callable[[], T]], Function[T]]: ...

    def func(self, fn=None, *, eq=None, name=None):
        """Create a derived node from a zero-argument computation.

        The computation runs once before this returns, so the node already
        has a cached value and its first set of dependencies.

        Usable directly or as a decorator:

            total = system.func(lambda: price.get() * qty.get())

            @system.func(name="label")
            def label():
                return f"{total.get():.2f}"
        """
        if fn is None:
            return functools.partial(self.func, eq=eq, name=name)
        node_id = self._anchor.add_function(fn, eq or default_eq, name or getattr(fn, "__name__", None))
        node = Function(node_id, self)
        try:
            self.get(node)
        except BaseException:
            # Nobody holds the handle yet, so nothing could ever dispose it.
            self.dispose(node)
            raise
        return node

    # --- Reading ---

    def get(self, node: Node[T]) -> T:
        """Read a node's value, recording the read against the evaluating node."""
        node_id = self._own(node)
        if node_id in self._stack:
            raise CycleError(node_id, self._stack.snapshot())
        self._track(node_id)

        if isinstance(node, Variable):
            return self._anchor.values[node_id]

        if isinstance(node, Function):
            anchor = self._anchor
            if anchor.dirty_flags[node_id] or anchor.cached_values[node_id] is _anchor.UNSET:
                self._evaluate(node_id)
            return anchor.cached_values[node_id]

        raise TypeError(f"expected Variable or Function, got {type(node).__name__}")

    def _track(self, node_id: int) -> None:
        reader = self._stack.top
        if reader is not None:
            self._registry.add(reader, node_id)

    def _evaluate(self, node_id: int) -> None:
        """Recompute a function node and rebuild its dependency edges.

        On failure (computation or equality predicate) the stack is still
        unwound, the node stays dirty, and both its previous cached value and
        the edges of its last completed evaluation are kept, so the next read
        retries and upstream writes still reach it.
        """
        anchor = self._anchor
        completed = self._registry.dependencies_of(node_id)
        self._registry.clear_dependencies(node_id)
        try:
            with self._stack.frame(node_id):
                value = anchor.derivation_fns[node_id]()

            previous = anchor.cached_values[node_id]
            if previous is _anchor.UNSET or not anchor.equality[node_id](previous, value):
                anchor.cached_values[node_id] = value
        except BaseException:
            # Nodes disposed during the failed run no longer exist.
            self._registry.replace_dependencies(
                node_id, [t for t in completed if t not in anchor.disposed]
            )
            raise
        anchor.dirty_flags[node_id] = False

    # --- Writing ---

    def set(self, node: Variable[T], value: T) -> None:
        """Write a variable. Equal values (under the node's predicate) are ignored."""
        node_id = self._own(node)
        if not isinstance(node, Variable):
            raise TypeError(f"only variables can be set, got {node!r}")

        anchor = self._anchor
        if anchor.equality[node_id](anchor.values[node_id], value):
            return
        anchor.values[node_id] = value
        self._changed(node_id)

    def update(self, node: Variable[T], fn: Callable[[T], T]) -> None:
        """Read, transform and write back a variable."""
        self.set(node, fn(self.get(node)))

    def _changed(self, node_id: int) -> None:
        visited = propagate(node_id, self._registry, self._mark_dirty)
        logger.debug("Propagated from node %d: %d node(s) reached", node_id, len(visited))
        if self._batch.active:
            self._batch.defer(visited)
            return
        for visited_id in visited:
            self._observers.notify(visited_id)

    def _mark_dirty(self, node_id: int) -> None:
        self._anchor.dirty_flags[node_id] = True

    # --- Observation ---

    def subscribe(self, node: Node, callback: Callable[[], None]) -> Unsubscribe:
        """Call `callback()` whenever a write reaches `node`. Returns the unsubscriber."""
        node_id = self._own(node)
        return self._observers.subscribe(node_id, callback)

    # --- Batching ---

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Defer notifications until the outermost transaction exits.

        Dependents are still dirtied at each write, so reads inside the block
        are current. Each reached node is notified once per transaction.

            with system.transaction():
                a.set(1)
                b.set(2)
                # observers fire here, after both are set
        """
        self._batch.begin()
        try:
            yield
        finally:
            self._batch.end(self._observers.notify)

    def action(self, fn: Callable[..., R]) -> Callable[..., R]:
        """Decorator: run fn inside a transaction."""

        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            with self.transaction():
                return fn(*args, **kwargs)

        return wrapper

    # --- Disposal ---

    def dispose(self, node: Node) -> None:
        """Remove a node, its edges and its observers from the graph.

        Former dependents are dirtied (not notified); if they still read the
        node, their next evaluation raises DisposedNodeError.
        """
        if node._system is not self:
            raise ForeignNodeError(f"{node!r} belongs to another System")
        node_id = node._id
        if node_id in self._anchor.disposed:
            return
        if node_id in self._stack:
            raise CycleError(node_id, self._stack.snapshot())

        dependents = self._registry.remove_node(node_id)
        for dependent in dependents:
            self._mark_dirty(dependent)
        self._observers.drop(node_id)
        self._batch.discard(node_id)
        self._anchor.remove(node_id)
        logger.debug("Disposed node %d (%d dependent(s) dirtied)", node_id, len(dependents))

    # --- Introspection ---

    def is_dirty(self, node: Function) -> bool:
        node_id = self._own(node)
        return self._anchor.dirty_flags.get(node_id, False)

    def dependencies_of(self, node: Node) -> tuple[int, ...]:
        return self._registry.dependencies_of(self._own(node))

    def dependents_of(self, node: Node) -> tuple[int, ...]:
        return self._registry.dependents_of(self._own(node))

    @property
    def evaluating(self) -> tuple[int, ...]:
        return self._stack.snapshot()

    @property
    def pending_count(self) -> int:
        """Number of nodes waiting for notification in the open transaction."""
        return len(self._batch)

    def _own(self, node: Node) -> int:
        if not isinstance(node, (Variable, Function)):
            raise TypeError(f"expected Variable or Function, got {type(node).__name__}")
        if node._system is not self:
            raise ForeignNodeError(f"{node!r} belongs to another System")
        if node._id in self._anchor.disposed:
            raise DisposedNodeError(f"node {node._id} has been disposed")
        return node._id

    def __len__(self) -> int:
        return len(self._anchor)

    def __repr__(self) -> str:
        return f"System(nodes={len(self._anchor)}, edges={self._registry.edge_count()})"
