from __future__ import annotations

import asyncio
import threading

import pytest

from craft_core.core.scheduler import PeriodicSweeper, ScheduledEventRegistry


def test_sweep_fires_due_events_once(events, clock):
    fired: list[bool] = []
    events.schedule(5, fired.append)

    assert events.sweep(clock.advance(4)) == 0
    assert fired == []

    assert events.sweep(clock.advance(1)) == 1
    assert fired == [True]
    assert len(events) == 0

    assert events.sweep(clock.advance(60)) == 0
    assert fired == [True]


def test_cancelled_event_never_fires(events, clock):
    fired: list[bool] = []
    event = events.schedule(1, fired.append)

    assert events.cancel(event.id) is True
    assert event.cancelled is True
    assert events.cancel(event.id) is False

    events.sweep(clock.advance(10))
    assert fired == []


def test_ties_fire_in_registration_order(events, clock):
    order: list[str] = []
    events.schedule(3, lambda _expired: order.append("first"))
    events.schedule(3, lambda _expired: order.append("second"))
    events.schedule(1, lambda _expired: order.append("earliest"))

    events.sweep(clock.advance(3))
    assert order == ["earliest", "first", "second"]


def test_failing_callback_does_not_stop_sweep(events, clock, caplog):
    fired: list[str] = []

    def boom(_expired):
        raise RuntimeError("callback exploded")

    events.schedule(1, boom)
    events.schedule(1, lambda _expired: fired.append("after"))

    assert events.sweep(clock.advance(1)) == 2
    assert fired == ["after"]
    assert "callback for event" in caplog.text


def test_negative_delay_rejected(events):
    with pytest.raises(ValueError):
        events.schedule(-1, lambda _expired: None)


def test_keyed_events_are_unique_until_fired(events, clock):
    events.schedule(2, lambda _expired: None, key=("steve", "home"))
    with pytest.raises(ValueError):
        events.schedule(2, lambda _expired: None, key=("steve", "home"))

    assert events.find(("steve", "home")) is not None
    events.sweep(clock.advance(2))
    assert events.find(("steve", "home")) is None
    events.schedule(2, lambda _expired: None, key=("steve", "home"))


def test_cancel_key(events, clock):
    fired: list[bool] = []
    events.schedule(2, fired.append, key="k")
    assert events.cancel_key("k") is True
    assert events.cancel_key("k") is False
    events.sweep(clock.advance(5))
    assert fired == []


def test_callback_may_reenter_registry(events, clock):
    fired: list[str] = []

    def reschedule(_expired):
        fired.append("outer")
        events.schedule(1, lambda _e: fired.append("inner"))

    events.schedule(1, reschedule)
    events.sweep(clock.advance(1))
    assert fired == ["outer"]
    events.sweep(clock.advance(1))
    assert fired == ["outer", "inner"]


def test_concurrent_cancel_and_sweep_fire_at_most_once(clock):
    registry = ScheduledEventRegistry("race", clock=clock)
    fired: list[str] = []
    handles = [registry.schedule(0, lambda _e, i=i: fired.append(i)) for i in range(200)]
    cancelled: list[bool] = []

    def cancel_all():
        for handle in handles:
            cancelled.append(registry.cancel(handle.id))

    worker = threading.Thread(target=cancel_all)
    worker.start()
    registry.sweep(clock.advance(1))
    worker.join()

    assert len(fired) + sum(cancelled) == 200
    assert len(set(fired)) == len(fired)


def test_periodic_sweeper_fires_events(clock):
    async def run_test():
        registry = ScheduledEventRegistry("periodic", clock=clock)
        fired: list[bool] = []
        registry.schedule(1, fired.append)
        clock.advance(1)

        sweeper = PeriodicSweeper(registry, 0.01, clock=clock)
        sweeper.start()
        assert sweeper.running
        for _ in range(50):
            if fired:
                break
            await asyncio.sleep(0.01)
        await sweeper.stop()

        assert fired == [True]
        assert not sweeper.running

    asyncio.run(run_test())


def test_periodic_sweeper_rejects_non_positive_interval(events):
    with pytest.raises(ValueError):
        PeriodicSweeper(events, 0)


def test_fire_key_only_fires_that_key(events, clock):
    fired: list[str] = []
    events.schedule(1, lambda _e: fired.append("mine"), key="mine")
    events.schedule(1, lambda _e: fired.append("other"), key="other")
    events.schedule(5, lambda _e: fired.append("later"), key="later")

    clock.advance(1)
    assert events.fire_key("later") is False
    assert events.fire_key("mine") is True
    assert events.fire_key("mine") is False
    assert fired == ["mine"]
    assert events.find("other") is not None
    assert len(events) == 2
