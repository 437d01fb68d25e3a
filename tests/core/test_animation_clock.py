"""core.animation の `AnimationClock` をテスト。"""

from __future__ import annotations

from dataclasses import replace

import pytest

from fluxtype.core.animation import TICK_STEP, AnimationClock, animation_active
from fluxtype.core.settings import DEFAULT_SETTINGS


def test_clock_advances_by_step_times_speed() -> None:
    clock = AnimationClock()
    for _ in range(10):
        clock.advance(0.5)
    assert clock.time == pytest.approx(10 * TICK_STEP * 0.5)
    assert clock.ticks == 10


def test_clock_is_monotonic_and_ignores_non_positive_speed() -> None:
    clock = AnimationClock(t0=1.5)
    assert clock.advance(0.0) == 1.5
    assert clock.advance(-2.0) == 1.5
    assert clock.ticks == 0
    assert clock.advance(1.0) > 1.5


@pytest.mark.parametrize(
    ("num", "speed", "expected"),
    [(5, 0.2, True), (0, 0.2, False), (5, 0.0, False), (0, 0.0, False)],
)
def test_animation_active(num: int, speed: float, expected: bool) -> None:
    settings = replace(DEFAULT_SETTINGS, num_metaballs=num, metaball_speed=speed)
    assert animation_active(settings) is expected
