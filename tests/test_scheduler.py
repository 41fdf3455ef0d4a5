"""
Tests for the deterministic timer queue.
"""

import pytest

from torpedo_arena.scheduler import Scheduler


@pytest.fixture
def scheduler():
    return Scheduler()


class TestScheduleOnce:

    def test_fires_when_due(self, scheduler):
        calls = []
        scheduler.schedule_once(1.0, lambda: calls.append(scheduler.now))

        scheduler.advance(0.5)
        assert calls == []
        scheduler.advance(0.5)
        assert calls == [pytest.approx(1.0)]

        scheduler.advance(5.0)
        assert len(calls) == 1

    def test_fires_after_many_small_steps(self, scheduler):
        """Summed float ticks must not postpone a timer by a whole tick."""
        calls = []
        scheduler.schedule_once(5.0, lambda: calls.append(True))
        for _ in range(300):
            scheduler.advance(1 / 60)
        assert calls == [True]

    def test_due_order_then_scheduling_order(self, scheduler):
        order = []
        scheduler.schedule_once(2.0, lambda: order.append("late"))
        scheduler.schedule_once(1.0, lambda: order.append("first"))
        scheduler.schedule_once(1.0, lambda: order.append("second"))

        scheduler.advance(3.0)
        assert order == ["first", "second", "late"]

    def test_negative_delay_rejected(self, scheduler):
        with pytest.raises(ValueError):
            scheduler.schedule_once(-1.0, lambda: None)

    def test_callback_may_schedule(self, scheduler):
        calls = []
        scheduler.schedule_once(0.5, lambda: scheduler.schedule_once(0.2, lambda: calls.append("chained")))
        scheduler.advance(1.0)
        assert calls == ["chained"]

    def test_callbacks_see_their_own_due_time(self, scheduler):
        seen = []

        def parent():
            seen.append(("parent", scheduler.now))
            scheduler.schedule_once(0.2, lambda: seen.append(("child", scheduler.now)))

        scheduler.schedule_once(0.5, parent)
        scheduler.advance(1.0)

        assert seen == [("parent", pytest.approx(0.5)), ("child", pytest.approx(0.7))]
        assert scheduler.now == pytest.approx(1.0)

    def test_reload_timed_from_callback_not_tick_end(self, scheduler):
        """A timer armed by a callback counts from that callback, even inside a long step."""
        calls = []
        scheduler.schedule_once(1.0, lambda: scheduler.schedule_once(5.0, lambda: calls.append(True)))
        scheduler.advance(3.0)
        scheduler.advance(3.0)
        assert calls == [True]


class TestScheduleRepeating:

    def test_repeats_without_drift(self, scheduler):
        times = []
        scheduler.schedule_repeating(1.0, lambda: times.append(scheduler.now))

        for _ in range(35):
            scheduler.advance(0.1)

        assert len(times) == 3

    def test_several_periods_in_one_advance(self, scheduler):
        calls = []
        scheduler.schedule_repeating(1.0, lambda: calls.append(True))
        scheduler.advance(3.0)
        assert len(calls) == 3

    def test_non_positive_interval_rejected(self, scheduler):
        with pytest.raises(ValueError):
            scheduler.schedule_repeating(0.0, lambda: None)

    def test_callback_may_cancel_itself(self, scheduler):
        calls = []
        handle = None

        def once_only():
            calls.append(True)
            scheduler.cancel(handle)

        handle = scheduler.schedule_repeating(1.0, once_only)
        scheduler.advance(5.0)
        assert calls == [True]


class TestCancellation:

    def test_cancel(self, scheduler):
        calls = []
        handle = scheduler.schedule_once(1.0, lambda: calls.append(True))
        scheduler.cancel(handle)
        scheduler.cancel(handle)
        scheduler.advance(2.0)
        assert calls == []
        assert scheduler.pending == 0

    def test_cancel_owner(self, scheduler):
        calls = []
        owner = object()
        scheduler.schedule_once(1.0, lambda: calls.append("a"), owner=owner)
        scheduler.schedule_repeating(1.0, lambda: calls.append("b"), owner=owner)
        scheduler.schedule_once(1.0, lambda: calls.append("other"))

        assert scheduler.cancel_owner(owner) == 2
        scheduler.advance(2.0)
        assert calls == ["other"]
        assert scheduler.cancel_owner(owner) == 0

    def test_fired_one_shot_no_longer_owned(self, scheduler):
        owner = object()
        scheduler.schedule_once(1.0, lambda: None, owner=owner)
        scheduler.advance(1.0)
        assert scheduler.cancel_owner(owner) == 0

    def test_clear(self, scheduler):
        calls = []
        scheduler.schedule_once(1.0, lambda: calls.append(True))
        scheduler.schedule_repeating(0.5, lambda: calls.append(True), owner="x")
        scheduler.clear()

        assert scheduler.pending == 0
        scheduler.advance(5.0)
        assert calls == []
