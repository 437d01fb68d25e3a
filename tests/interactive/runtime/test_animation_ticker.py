from __future__ import annotations

from dataclasses import replace
from typing import Any, Callable

import pytest

from fluxtype.core.animation import TICK_STEP, AnimationClock
from fluxtype.core.settings import DEFAULT_SETTINGS
from fluxtype.interactive.runtime.animation_ticker import AnimationTicker

# `AnimationTicker`（pyglet.clock への購読）をテストする。


class _FakeScheduler:
    def __init__(self) -> None:
        self.scheduled: dict[Callable[..., Any], float] = {}
        self.schedule_calls = 0
        self.unschedule_calls = 0

    def schedule_interval(self, func: Callable[..., Any], interval: float, *args: Any) -> None:
        self.schedule_calls += 1
        self.scheduled[func] = float(interval)

    def unschedule(self, func: Callable[..., Any]) -> None:
        self.unschedule_calls += 1
        self.scheduled.pop(func, None)

    def fire(self, n: int = 1) -> None:
        for _ in range(n):
            for func, interval in list(self.scheduled.items()):
                func(interval)


def test_subscribes_only_when_metaballs_move():
    scheduler = _FakeScheduler()
    ticker = AnimationTicker(AnimationClock(), fps=60.0, scheduler=scheduler)

    ticker.sync(replace(DEFAULT_SETTINGS, num_metaballs=0))
    assert not ticker.subscribed
    ticker.sync(replace(DEFAULT_SETTINGS, metaball_speed=0.0))
    assert not ticker.subscribed
    assert scheduler.schedule_calls == 0

    ticker.sync(DEFAULT_SETTINGS)
    assert ticker.subscribed
    assert list(scheduler.scheduled.values()) == [pytest.approx(1.0 / 60.0)]


def test_ticks_advance_clock_and_notify():
    scheduler = _FakeScheduler()
    clock = AnimationClock()
    seen: list[float] = []
    ticker = AnimationTicker(clock, fps=30.0, scheduler=scheduler, on_tick=seen.append)

    ticker.sync(replace(DEFAULT_SETTINGS, metaball_speed=0.5))
    scheduler.fire(4)

    assert clock.ticks == 4
    assert clock.time == pytest.approx(4 * TICK_STEP * 0.5)
    assert seen == pytest.approx([TICK_STEP * 0.5 * i for i in range(1, 5)])


def test_speed_change_does_not_resubscribe():
    scheduler = _FakeScheduler()
    clock = AnimationClock()
    ticker = AnimationTicker(clock, fps=60.0, scheduler=scheduler)

    ticker.sync(replace(DEFAULT_SETTINGS, metaball_speed=0.2))
    ticker.sync(replace(DEFAULT_SETTINGS, metaball_speed=1.0))
    assert scheduler.schedule_calls == 1

    scheduler.fire()
    assert clock.time == pytest.approx(TICK_STEP * 1.0)


def test_stopping_freezes_clock():
    scheduler = _FakeScheduler()
    clock = AnimationClock()
    ticker = AnimationTicker(clock, fps=60.0, scheduler=scheduler)

    ticker.sync(DEFAULT_SETTINGS)
    scheduler.fire(3)
    t = clock.time

    ticker.sync(replace(DEFAULT_SETTINGS, metaball_speed=0.0))
    assert not ticker.subscribed
    assert scheduler.scheduled == {}
    scheduler.fire(5)
    assert clock.time == t


def test_close_is_idempotent():
    scheduler = _FakeScheduler()
    ticker = AnimationTicker(AnimationClock(), fps=60.0, scheduler=scheduler)
    ticker.sync(DEFAULT_SETTINGS)

    ticker.close()
    ticker.close()
    assert scheduler.unschedule_calls == 1
    assert not ticker.subscribed


def test_non_positive_fps_is_rejected():
    with pytest.raises(ValueError):
        AnimationTicker(AnimationClock(), fps=0.0, scheduler=_FakeScheduler())
