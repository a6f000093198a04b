"""Data anchor — plain Python structures that hold all graph state.

One Anchor per System. Node handles are thin: they carry an id and their
owning System, and every piece of node state lives here keyed by that id.
The anchor never references a handle, so handles and graph data cannot
form ownership cycles.
"""

from __future__ import annotations

import itertools
from typing import Any, Callable

VARIABLE = "variable"
FUNCTION = "function"

# Cached value of a function node that has never completed an evaluation.
UNSET: Any = object()


class Anchor:
    __slots__ = (
        "kinds",
        "names",
        "equality",
        "values",
        "cached_values",
        "dirty_flags",
        "derivation_fns",
        "disposed",
        "_id_counter",
    )

    def __init__(self) -> None:
        self.kinds: dict[int, str] = {}
        self.names: dict[int, str | None] = {}
        self.equality: dict[int, Callable[[Any, Any], bool]] = {}

        # Variable state
        self.values: dict[int, Any] = {}

        # Function state
        self.cached_values: dict[int, Any] = {}
        self.dirty_flags: dict[int, bool] = {}
        self.derivation_fns: dict[int, Callable[[], Any]] = {}

        # Ids are never reused, so a disposed id stays recognizable.
        self.disposed: set[int] = set()
        self._id_counter = itertools.count(1)

    def new_id(self) -> int:
        return next(self._id_counter)

    def add_variable(self, value, eq, name) -> int:
        node_id = self.new_id()
        self.kinds[node_id] = VARIABLE
        self.names[node_id] = name
        self.equality[node_id] = eq
        self.values[node_id] = value
        return node_id

    def add_function(self, fn, eq, name) -> int:
        node_id = self.new_id()
        self.kinds[node_id] = FUNCTION
        self.names[node_id] = name
        self.equality[node_id] = eq
        self.derivation_fns[node_id] = fn
        self.cached_values[node_id] = UNSET
        self.dirty_flags[node_id] = True
        return node_id

    def remove(self, node_id: int) -> None:
        """Drop every record of node_id and remember it as disposed."""
        self.kinds.pop(node_id, None)
        self.names.pop(node_id, None)
        self.equality.pop(node_id, None)
        self.values.pop(node_id, None)
        self.cached_values.pop(node_id, None)
        self.dirty_flags.pop(node_id, None)
        self.derivation_fns.pop(node_id, None)
        self.disposed.add(node_id)

    def __len__(self) -> int:
        return len(self.kinds)
