"""Tests for incrx.textual — Textual integration layer."""

import threading

import pytest
from textual.css.query import NoMatches

from incrx import System
from incrx import textual as stx


class _MockApp:
    """Minimal mock matching the Textual App interface stx needs."""

    def __init__(self, *, is_running=True):
        self.is_running = is_running
        self._call_from_thread_log = []

    def call_from_thread(self, fn, *args):
        self._call_from_thread_log.append((fn, args))
        fn(*args)


class TestReaction:
    def test_skips_when_not_running(self):
        app = _MockApp(is_running=False)
        s = System()
        o = s.variable(1)
        effects = []
        stx.reaction(app, o, lambda v: effects.append(v))
        o.set(2)
        assert effects == []

    def test_skips_during_pause(self):
        app = _MockApp()
        s = System()
        o = s.variable(1)
        effects = []
        stx.reaction(app, o, lambda v: effects.append(v))
        with stx.pause(app):
            o.set(2)
        assert effects == []

    def test_fires_with_recomputed_value(self):
        app = _MockApp()
        s = System()
        o = s.variable(1)
        doubled = s.func(lambda: o.get() * 2)
        effects = []
        stx.reaction(app, doubled, lambda v: effects.append(v))
        o.set(2)
        assert effects == [4]

    def test_fire_immediately(self):
        app = _MockApp()
        s = System()
        o = s.variable(1)
        effects = []
        stx.reaction(app, o, lambda v: effects.append(v), fire_immediately=True)
        assert effects == [1]

    def test_catches_nomatch(self):
        """NoMatches from widget queries are swallowed."""
        app = _MockApp()
        s = System()
        o = s.variable(1)

        def _raise_nomatch(v):
            raise NoMatches("StatusFooter")

        # Should not raise
        unsubscribe = stx.reaction(app, o, _raise_nomatch)
        o.set(2)
        unsubscribe()

    def test_propagates_real_errors(self):
        """Non-NoMatches exceptions propagate normally."""
        app = _MockApp()
        s = System()
        o = s.variable(1)

        def _raise_value_error(v):
            raise ValueError("boom")

        stx.reaction(app, o, _raise_value_error)
        with pytest.raises(ValueError, match="boom"):
            o.set(2)

    def test_unsubscribe_stops_reaction(self):
        app = _MockApp()
        s = System()
        o = s.variable(1)
        effects = []
        unsubscribe = stx.reaction(app, o, lambda v: effects.append(v))
        o.set(2)
        assert effects == [2]
        unsubscribe()
        o.set(3)
        assert effects == [2]

    def test_thread_marshal(self):
        """Writes from a background thread notify through call_from_thread."""
        app = _MockApp()
        s = System()
        o = s.variable(1)
        effects = []
        stx.reaction(app, o, lambda v: effects.append(v))

        def _bg():
            o.set(2)

        t = threading.Thread(target=_bg)
        t.start()
        t.join()

        assert effects == [2]
        assert len(app._call_from_thread_log) == 1


class TestSubscribe:
    def test_fires_when_safe(self):
        app = _MockApp()
        s = System()
        o = s.variable(1)
        log = []
        stx.subscribe(app, o, lambda: log.append(o.get()))
        o.set(2)
        assert log == [2]

    def test_skips_during_pause(self):
        app = _MockApp()
        s = System()
        o = s.variable(1)
        log = []
        stx.subscribe(app, o, lambda: log.append(o.get()))
        with stx.pause(app):
            o.set(2)
        assert log == []
        o.set(3)
        assert log == [3]

    def test_catches_nomatch(self):
        app = _MockApp()
        s = System()
        o = s.variable(1)
        calls = []

        def _fn():
            calls.append(1)
            raise NoMatches("Widget")

        stx.subscribe(app, o, _fn)
        o.set(2)
        assert calls == [1]


class TestPause:
    def test_pause_restores_on_exception(self):
        app = _MockApp()
        assert stx.is_safe(app)

        with pytest.raises(RuntimeError):
            with stx.pause(app):
                assert not stx.is_safe(app)
                raise RuntimeError("oops")

        # Restored despite exception
        assert stx.is_safe(app)

    def test_pause_does_not_mutate_app(self):
        """Pause state lives in the module, not on the app."""
        app = _MockApp()
        attrs_before = set(vars(app))
        with stx.pause(app):
            attrs_during = set(vars(app))
        attrs_after = set(vars(app))
        assert attrs_before == attrs_during
        assert attrs_before == attrs_after

    def test_multiple_apps_independent(self):
        """Pausing one app does not affect another."""
        app_a = _MockApp()
        app_b = _MockApp()
        with stx.pause(app_a):
            assert not stx.is_safe(app_a)
            assert stx.is_safe(app_b)
