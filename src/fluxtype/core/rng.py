# どこで: `src/fluxtype/core/rng.py`。
# 何を: seed から [0, 1) の擬似乱数を返す純関数を提供する。
# なぜ: メタボール配置をプロセス再起動後も同じ seed で再現するため（暗号用途ではない）。

from __future__ import annotations

import math


def pseudo_random(seed: float) -> float:
    """`frac(sin(seed) * 10000)` を返す。

    Parameters
    ----------
    seed : float
        任意の実数 seed。

    Returns
    -------
    float
        [0, 1) の値。同じ seed には常に同じ値を返す。
    """

    x = math.sin(float(seed)) * 10000.0
    frac = x - math.floor(x)
    # 浮動小数の丸めで 1.0 に張り付くケースを [0, 1) へ戻す。
    return frac if frac < 1.0 else 0.0


__all__ = ["pseudo_random"]
