"""Observer bookkeeping.

Each registration gets its own token, so unsubscribing removes exactly the
registration it was issued for, even when the same callback is registered
several times. Per-node mappings are dicts, which keep registration order.
"""

from __future__ import annotations

import itertools
from typing import Callable

Callback = Callable[[], None]
Unsubscribe = Callable[[], None]


class ObserverRegistry:
    __slots__ = ("_observers", "_tokens")

    def __init__(self) -> None:
        self._observers: dict[int, dict[int, Callback]] = {}
        self._tokens = itertools.count()

    def subscribe(self, node_id: int, callback: Callback) -> Unsubscribe:
        """Register callback on node_id. Returns a function that removes it."""
        token = next(self._tokens)
        self._observers.setdefault(node_id, {})[token] = callback

        def _unsubscribe() -> None:
            observers = self._observers.get(node_id)
            if observers is None:
                return
            observers.pop(token, None)
            if not observers:
                del self._observers[node_id]

        return _unsubscribe

    def notify(self, node_id: int) -> None:
        """Invoke node_id's callbacks synchronously, in registration order."""
        observers = self._observers.get(node_id)
        if not observers:
            return
        # Callbacks may (un)subscribe; this dispatch sees the registrations
        # that existed when it started.
        for callback in list(observers.values()):
            callback()

    def drop(self, node_id: int) -> None:
        self._observers.pop(node_id, None)
