"""Tests for Computed values."""

import pytest

from notifix import ChangeNotifier, Computed, DisposedError, Notifier, TurnQueue, computed


class TestComputed:
    def test_lazy_eval(self, turns):
        call_count = 0
        o = Notifier(5)

        def fn():
            nonlocal call_count
            call_count += 1
            return o.value * 2

        c = Computed(fn, depends=[o])
        assert call_count == 0  # not yet evaluated
        assert not c.initialized
        assert c.value == 10
        assert call_count == 1
        assert c.initialized

    def test_caches_between_changes(self, turns):
        call_count = 0
        o = Notifier(5)

        def fn():
            nonlocal call_count
            call_count += 1
            return o.value * 2

        c = Computed(fn, depends=[o])
        c.value
        c.value
        turns.flush()
        c.value
        assert call_count == 1  # cached, no re-eval

    def test_recomputes_on_dependency_change(self, turns):
        dependency = ChangeNotifier()
        counter = iter(range(10, 20))
        c = Computed(lambda: next(counter), depends=[dependency])
        assert c.value == 10
        dependency.notify_listeners()
        turns.flush()
        assert c.value == 11

    def test_not_subscribed_before_first_read(self, turns):
        o = Notifier(1)
        c = Computed(lambda: o.value, depends=[o])
        assert not o.has_listeners
        c.value
        assert o.has_listeners

    def test_notifies_after_recompute(self, turns):
        o = Notifier(1)
        c = Computed(lambda: o.value + 1, depends=[o])
        seen = []
        c.add_listener(lambda: seen.append(c.value))
        c.value
        o.value = 2
        turns.flush()
        assert seen == [3]

    def test_chained_computed(self, turns):
        o = Notifier(3)
        doubled = Computed(lambda: o.value * 2, depends=[o])
        quadrupled = Computed(lambda: doubled.value * 2, depends=[doubled])
        assert quadrupled.value == 12
        o.value = 5
        turns.flush()
        assert quadrupled.value == 20


class TestComputedFailure:
    def test_initial_failure_propagates_and_retries(self, turns):
        o = Notifier(0)
        attempts = []

        def fn():
            attempts.append(1)
            if len(attempts) == 1:
                raise ValueError("first read fails")
            return o.value

        c = Computed(fn, depends=[o])
        with pytest.raises(ValueError):
            c.value
        assert not c.initialized
        assert not o.has_listeners
        assert c.value == 0
        assert len(attempts) == 2

    def test_recompute_failure_keeps_value(self, turns):
        o = Notifier(1)

        def fn():
            if o.value < 0:
                raise ValueError("negative")
            return o.value

        c = Computed(fn, depends=[o])
        notified = []
        c.add_listener(lambda: notified.append(1))
        assert c.value == 1

        o.value = -1
        with pytest.raises(ValueError, match="negative"):
            turns.flush()
        assert c.value == 1
        assert notified == []

        o.value = 7  # still subscribed, next recompute succeeds
        turns.flush()
        assert c.value == 7
        assert notified == [1]


class TestForceValue:
    def test_force_before_compute(self):
        call_count = 0

        def fn():
            nonlocal call_count
            call_count += 1
            return 5

        c = Computed(fn, depends=[ChangeNotifier()])
        notifications = []
        c.add_listener(lambda: notifications.append(1))
        c.force_value(100)
        assert notifications == [1]  # immediate, no turn needed
        assert call_count == 0

    def test_force_after_compute(self, turns):
        dependency = ChangeNotifier()
        c = Computed(lambda: 5, depends=[dependency])
        notifications = []
        c.add_listener(lambda: notifications.append(1))
        assert c.value == 5
        assert notifications == []

        c.force_value(100)
        assert c.value == 100
        assert notifications == [1]

        dependency.notify_listeners()  # next recompute overwrites the forced value
        turns.flush()
        assert c.value == 5
        assert notifications == [1, 1]


class TestScenario:
    def test_sum_recomputes_once_per_turn(self, turns):
        a = Notifier(1)
        b = Notifier(2)
        calls = 0

        def total():
            nonlocal calls
            calls += 1
            return a.value + b.value

        s = Computed(total, depends=[a, b])
        assert s.value == 3
        assert calls == 1

        a.value = 5
        b.value = 20
        turns.flush()
        assert s.value == 25
        assert calls == 2


class TestLifecycle:
    def test_dispose_detaches(self, turns):
        o = Notifier(1)
        c = Computed(lambda: o.value, depends=[o])
        c.value
        c.dispose()
        assert not o.has_listeners
        o.value = 2
        turns.flush()
        assert c.value == 1

    def test_repr(self):
        def doubled():
            return 4

        c = Computed(doubled, depends=[])
        assert repr(c) == "Computed(doubled, uninitialized)"
        c.value
        assert repr(c) == "Computed(doubled, cached=4)"


class TestComputedDecorator:
    def test_decorator_factory(self, turns):
        o = Notifier(7)

        @computed(depends=[o])
        def doubled():
            return o.value * 2

        assert isinstance(doubled, Computed)
        assert doubled.value == 14
        o.value = 3
        turns.flush()
        assert doubled.value == 6


class TestComputedScheduler:
    def test_injected_scheduler(self, turns):
        private = TurnQueue()
        o = Notifier(1)
        c = Computed(lambda: o.value * 10, depends=[o], scheduler=private)
        assert c.value == 10
        o.value = 2
        turns.flush()  # o notifies, c's recompute goes to its own queue
        assert c.value == 10
        assert len(private) == 1
        private.flush()
        assert c.value == 20


class TestDisposedDependency:
    def test_first_read_fails_and_stays_uninitialized(self):
        live = Notifier(1)
        dead = ChangeNotifier()
        dead.dispose()
        c = Computed(lambda: live.value, depends=[live, dead])
        with pytest.raises(DisposedError):
            c.value
        assert not c.initialized
        assert not live.has_listeners  # partial subscription rolled back
        with pytest.raises(DisposedError):
            c.value
