# どこで: `src/fluxtype/interactive/runtime/animation_ticker.py`。
# 何を: AnimationClock をホストのリフレッシュ（pyglet.clock）に購読させ、必要なときだけ進める。
# なぜ: メタボール 0 個や速度 0 のときに見えない処理を回さず、購読の張り直しを 1 か所に閉じ込めるため。

from __future__ import annotations

from typing import Any, Callable, Protocol

import pyglet

from fluxtype.core.animation import AnimationClock, animation_active
from fluxtype.core.settings import TypeSettings


class Scheduler(Protocol):
    """`pyglet.clock` 互換のスケジューラ。"""

    def schedule_interval(self, func: Callable[..., Any], interval: float, *args: Any) -> Any: ...

    def unschedule(self, func: Callable[..., Any]) -> Any: ...


class AnimationTicker:
    """スナップショットに応じてリフレッシュ購読を張る/外す。

    Notes
    -----
    `sync()` は settings を差し替えるたびに呼ぶ。購読中に速度が変わっても張り直さず、
    次の tick から新しい速度で進める。0 境界をまたいだときだけ購読を張る/外す。
    """

    def __init__(
        self,
        clock: AnimationClock,
        *,
        fps: float,
        scheduler: Scheduler | None = None,
        on_tick: Callable[[float], None] | None = None,
    ) -> None:
        _fps = float(fps)
        if _fps <= 0:
            raise ValueError("fps は正の値である必要がある")
        self._clock = clock
        self._interval = 1.0 / _fps
        self._scheduler: Any = pyglet.clock if scheduler is None else scheduler
        self._on_tick = on_tick
        self._settings: TypeSettings | None = None
        self._subscribed = False

    @property
    def subscribed(self) -> bool:
        """リフレッシュ購読中かどうかを返す。"""

        return bool(self._subscribed)

    def sync(self, settings: TypeSettings) -> None:
        """新しいスナップショットに合わせて購読状態を更新する。"""

        self._settings = settings
        active = animation_active(settings)
        if active and not self._subscribed:
            self._scheduler.schedule_interval(self._tick, self._interval)
            self._subscribed = True
        elif not active and self._subscribed:
            self._scheduler.unschedule(self._tick)
            self._subscribed = False

    def _tick(self, dt: float) -> None:
        # pyglet は経過秒 dt を渡すが、時刻はリフレッシュ回数だけで進める。
        settings = self._settings
        if settings is None or not animation_active(settings):
            return
        t = self._clock.advance(settings.metaball_speed)
        on_tick = self._on_tick
        if on_tick is not None:
            on_tick(t)

    def close(self) -> None:
        """購読を外す（何度呼んでもよい）。"""

        if self._subscribed:
            self._scheduler.unschedule(self._tick)
            self._subscribed = False


__all__ = ["AnimationTicker", "Scheduler"]
