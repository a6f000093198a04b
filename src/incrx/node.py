"""Node handles — the two kinds of graph node.

Variable holds a value that only System.set() changes. Function holds a
zero-argument computation whose result is memoized and recomputed on read
once something it read has changed.

All state lives in the owning System's anchor — instances are thin handles
holding an id and a reference to that System.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Generic, TypeVar, Union

from incrx import _anchor

if TYPE_CHECKING:
    from incrx.system import System
    from incrx.subscription import Unsubscribe

T = TypeVar("T")


def default_eq(a: Any, b: Any) -> bool:
    """Identity first, then structural equality."""
    return a is b or a == b


class _Handle:
    __slots__ = ("_id", "_system", "__weakref__")

    def __init__(self, node_id: int, system: System) -> None:
        self._id = node_id
        self._system = system

    @property
    def id(self) -> int:
        return self._id

    @property
    def name(self) -> str | None:
        return self._system._anchor.names.get(self._id)

    @property
    def disposed(self) -> bool:
        return self._id in self._system._anchor.disposed

    def subscribe(self, callback: Callable[[], None]) -> Unsubscribe:
        return self._system.subscribe(self, callback)

    def dispose(self) -> None:
        self._system.dispose(self)

    def _label(self) -> str:
        name = self.name
        return repr(name) if name is not None else f"#{self._id}"


class Variable(_Handle, Generic[T]):
    """A directly writable value holder."""

    __slots__ = ()

    def get(self) -> T:
        """Read the value. If inside an evaluation, registers the dependency."""
        return self._system.get(self)

    def set(self, value: T) -> None:
        self._system.set(self, value)

    def update(self, fn: Callable[[T], T]) -> None:
        self._system.update(self, fn)

    def __repr__(self) -> str:
        if self.disposed:
            return f"Variable({self._label()}, disposed)"
        value = self._system._anchor.values[self._id]
        return f"Variable({self._label()}, {value!r})"


class Function(_Handle, Generic[T]):
    """A memoized value computed from other nodes."""

    __slots__ = ()

    def get(self) -> T:
        """Read the value. Recomputes first if dirty."""
        return self._system.get(self)

    @property
    def dirty(self) -> bool:
        return self._system.is_dirty(self)

    def __repr__(self) -> str:
        if self.disposed:
            return f"Function({self._label()}, disposed)"
        anchor = self._system._anchor
        val = anchor.cached_values[self._id]
        if anchor.dirty_flags[self._id] or val is _anchor.UNSET:
            state = "dirty"
        else:
            state = f"cached={val!r}"
        return f"Function({self._label()}, {state})"


Node = Union[Variable[T], Function[T]]
