"""Textual integration for incrx. Opt-in — requires textual.

Guarding, NoMatches handling and thread marshaling happen here, not at
callsites. Textual coupling stays in this module; the core engine is
agnostic of any UI. _paused_apps is owned by this module: an id is
present exactly while that app is inside a pause() block.
"""

import logging
import threading
from contextlib import contextmanager

from textual.css.query import NoMatches

logger = logging.getLogger("incrx.textual")

# Module-owned pause state — keyed by id(app) so multiple apps work in tests.
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Suspend guarded observers during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def _guard(app, fn):
    _main = threading.get_ident()

    def _safe():
        try:
            fn()
        except NoMatches:
            logger.debug("Observer skipped: widget not mounted", exc_info=True)

    def _guarded():
        if not is_safe(app):
            return
        if threading.get_ident() != _main:
            app.call_from_thread(_safe)
        else:
            _safe()

    return _guarded


def subscribe(app, node, callback):
    """node.subscribe() that safely bridges to Textual widgets.

    Skips notifications while the app is paused or not running, swallows
    NoMatches from widget queries, and marshals calls made off the
    subscribing thread through call_from_thread. Returns the unsubscriber.
    """
    return node.subscribe(_guard(app, callback))


def reaction(app, node, effect_fn, *, fire_immediately=False):
    """Like subscribe(), but passes the node's recomputed value to effect_fn.

    Usage:
        total = system.func(lambda: price.get() * qty.get())
        stx.reaction(app, total, lambda v: app.query_one("#total").update(f"{v}"))
    """
    guarded = _guard(app, lambda: effect_fn(node.get()))
    unsubscribe = node.subscribe(guarded)
    if fire_immediately:
        guarded()
    return unsubscribe
