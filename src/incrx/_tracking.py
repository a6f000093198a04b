"""Read attribution and notification batching.

The ExecutionStack records which function nodes are mid-evaluation; every
read is attributed to the top of the stack, which is how dependency edges
are discovered without the computation declaring them.

Batching: writes inside a transaction still dirty their dependents right
away, but the resulting notifications accumulate here and flush once when
the outermost scope exits.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, Iterator


class ExecutionStack:
    """Ordered stack of function node ids currently being evaluated."""

    __slots__ = ("_frames", "_members")

    def __init__(self) -> None:
        self._frames: list[int] = []
        self._members: set[int] = set()

    @property
    def top(self) -> int | None:
        return self._frames[-1] if self._frames else None

    def __contains__(self, node_id: int) -> bool:
        return node_id in self._members

    def snapshot(self) -> tuple[int, ...]:
        return tuple(self._frames)

    @contextmanager
    def frame(self, node_id: int) -> Iterator[None]:
        """Push node_id for the duration of the block; popped on every exit path."""
        self._frames.append(node_id)
        self._members.add(node_id)
        try:
            yield
        finally:
            self._frames.pop()
            self._members.discard(node_id)


class Batch:
    """Nested batch depth plus the notifications deferred while it is open."""

    __slots__ = ("_depth", "_pending")

    def __init__(self) -> None:
        self._depth = 0
        # Insertion-ordered set: first visit wins the position.
        self._pending: dict[int, None] = {}

    @property
    def active(self) -> bool:
        return self._depth > 0

    def begin(self) -> None:
        """Enter a batching scope. Nested batches are supported."""
        self._depth += 1

    def end(self, notify: Callable[[int], None]) -> None:
        """Exit a batching scope. When the outermost scope exits, flush pending nodes."""
        self._depth -= 1
        if self._depth == 0:
            self._flush(notify)

    def defer(self, node_ids) -> None:
        for node_id in node_ids:
            self._pending.setdefault(node_id, None)

    def discard(self, node_id: int) -> None:
        self._pending.pop(node_id, None)

    def _flush(self, notify: Callable[[int], None]) -> None:
        # Callbacks may write again (outside any batch now), which dispatches
        # synchronously; snapshot so those do not interleave with this queue.
        batch = list(self._pending)
        self._pending.clear()
        for node_id in batch:
            notify(node_id)

    def __len__(self) -> int:
        return len(self._pending)
