"""
どこで: `src/fluxtype/core/metaballs.py`。
何を: 設定から決定的にメタボールのアンカー円を導出し、時刻からアニメーション位置を計算する。
なぜ: 静的配置（seed 依存）と連続アニメーション（clock 依存）を分け、どちらも表示ループ無しで検証できるようにするため。
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from fluxtype.core.rng import pseudo_random
from fluxtype.core.settings import TypeSettings

# キャンバス中心（正規化パーセント単位）。
CENTER: float = 50.0

# 半径は [RADIUS_MIN, RADIUS_MIN + RADIUS_RANGE]。
RADIUS_MIN: float = 20.0
RADIUS_RANGE: float = 60.0

# 速度係数は [SPEED_MIN, SPEED_MIN + SPEED_RANGE]。
SPEED_MIN: float = 0.5
SPEED_RANGE: float = 0.5

# アンカーまわりの周回半径。spread とは独立に固定する。
JITTER_AMPLITUDE: float = 5.0

# 1 アンカーあたり 4 系列の seed を作るための係数。
SEED_OFFSETS: tuple[int, int, int, int] = (100, 200, 300, 400)


@dataclass(frozen=True, slots=True)
class MetaballAnchor:
    """メタボール 1 個分の静的パラメータ。"""

    index: int
    base_x: float
    base_y: float
    radius: float
    phase: float
    speed_factor: float


def derive_anchors(
    num_metaballs: int,
    metaball_spread: float,
    noise_seed: int,
) -> tuple[MetaballAnchor, ...]:
    """アンカー列を index 順に導出して返す。

    Parameters
    ----------
    num_metaballs : int
        個数。0 以下なら空を返す。
    metaball_spread : float
        中心からのばらつき幅（パーセント単位）。各軸 `[-spread/2, +spread/2]`。
    noise_seed : int
        ノイズ stage と共有する seed。

    Returns
    -------
    tuple[MetaballAnchor, ...]
        同じ引数には常に要素単位で同一の列を返す。

    Notes
    -----
    速度係数は 1 本目の draw（x オフセットと同じ seed）を再利用する。
    """

    n = int(num_metaballs)
    if n <= 0:
        return ()

    spread = float(metaball_spread)
    seed = int(noise_seed)
    m1, m2, m3, m4 = SEED_OFFSETS

    out: list[MetaballAnchor] = []
    for i in range(n):
        r1 = pseudo_random(seed * m1 + i)
        r2 = pseudo_random(seed * m2 + i)
        r3 = pseudo_random(seed * m3 + i)
        r4 = pseudo_random(seed * m4 + i)

        out.append(
            MetaballAnchor(
                index=i,
                base_x=CENTER + (r1 - 0.5) * spread,
                base_y=CENTER + (r2 - 0.5) * spread,
                radius=RADIUS_MIN + r3 * RADIUS_RANGE,
                phase=r4 * math.pi * 2.0,
                speed_factor=SPEED_MIN + r1 * SPEED_RANGE,
            )
        )
    return tuple(out)


def animated_position(anchor: MetaballAnchor, clock_time: float) -> tuple[float, float]:
    """時刻 `clock_time` におけるアンカーの周回位置 `(x, y)` を返す。"""

    angle = float(clock_time) * anchor.speed_factor + anchor.phase
    x = anchor.base_x + math.sin(angle) * JITTER_AMPLITUDE
    y = anchor.base_y + math.cos(angle) * JITTER_AMPLITUDE
    return x, y


def animated_positions(anchors: Sequence[MetaballAnchor], clock_time: float) -> np.ndarray:
    """`animated_position` のベクトル版。shape (N, 2) の float64 配列を返す。"""

    if not anchors:
        return np.zeros((0, 2), dtype=np.float64)

    base = np.array([(a.base_x, a.base_y) for a in anchors], dtype=np.float64)
    speed = np.array([a.speed_factor for a in anchors], dtype=np.float64)
    phase = np.array([a.phase for a in anchors], dtype=np.float64)

    angle = float(clock_time) * speed + phase
    offset = np.stack((np.sin(angle), np.cos(angle)), axis=1) * JITTER_AMPLITUDE
    return base + offset


def base_positions(anchors: Sequence[MetaballAnchor]) -> np.ndarray:
    """アンカーの基準位置を shape (N, 2) で返す。"""

    if not anchors:
        return np.zeros((0, 2), dtype=np.float64)
    return np.array([(a.base_x, a.base_y) for a in anchors], dtype=np.float64)


class MetaballField:
    """セッション専有のアンカーキャッシュ。

    `(num_metaballs, metaball_spread, noise_seed)` が変わったら丸ごと再生成する。
    差分更新はしない。
    """

    def __init__(self) -> None:
        self._key: tuple[int, float, int] | None = None
        self._anchors: tuple[MetaballAnchor, ...] = ()

    def anchors_for(self, settings: TypeSettings) -> tuple[MetaballAnchor, ...]:
        """settings に対応するアンカー列を返す（キーが同じならキャッシュ）。"""

        key = (
            int(settings.num_metaballs),
            float(settings.metaball_spread),
            int(settings.noise_seed),
        )
        if key != self._key:
            self._anchors = derive_anchors(*key)
            self._key = key
        return self._anchors

    def positions(self, settings: TypeSettings, clock_time: float) -> np.ndarray:
        """描画用の円中心（パーセント単位、shape (N, 2)）を返す。

        Notes
        -----
        `metaball_speed == 0` のときは基準位置をそのまま返し、完全に静止させる。
        """

        anchors = self.anchors_for(settings)
        if float(settings.metaball_speed) == 0.0:
            return base_positions(anchors)
        return animated_positions(anchors, clock_time)


__all__ = [
    "JITTER_AMPLITUDE",
    "MetaballAnchor",
    "MetaballField",
    "animated_position",
    "animated_positions",
    "base_positions",
    "derive_anchors",
]
