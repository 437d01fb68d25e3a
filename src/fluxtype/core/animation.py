# どこで: `src/fluxtype/core/animation.py`。
# 何を: メタボールの周回に使うアニメーション時刻（単調増加のアキュムレータ）を提供する。
# なぜ: 時刻を明示オブジェクトとしてセッションへ注入し、メタボール計算を表示ループ無しで検証できるようにするため。

from __future__ import annotations

from fluxtype.core.settings import TypeSettings

# 1 リフレッシュあたりの時刻増分（metaball_speed 倍する）。
TICK_STEP: float = 0.01


def animation_active(settings: TypeSettings) -> bool:
    """アニメーションを回す必要があるかを返す。"""

    return int(settings.num_metaballs) > 0 and float(settings.metaball_speed) > 0.0


class AnimationClock:
    """リフレッシュごとに進むアニメーション時刻。

    Notes
    -----
    実時間とは無関係で、`advance()` を呼んだ回数と速度だけで決まる。
    """

    def __init__(self, *, t0: float = 0.0) -> None:
        self._time = float(t0)
        self._ticks = 0

    @property
    def time(self) -> float:
        """現在のアニメーション時刻を返す。"""

        return float(self._time)

    @property
    def ticks(self) -> int:
        """時刻を進めたリフレッシュ回数を返す。"""

        return int(self._ticks)

    def advance(self, metaball_speed: float) -> float:
        """時刻を `TICK_STEP * metaball_speed` だけ進め、新しい時刻を返す。

        速度が 0 以下なら何もしない（単調性を保つ）。
        """

        speed = float(metaball_speed)
        if speed <= 0.0:
            return self.time
        self._time += TICK_STEP * speed
        self._ticks += 1
        return self.time


__all__ = ["AnimationClock", "TICK_STEP", "animation_active"]
