# どこで: `src/fluxtype/core/parameters/meta.py`。
# 何を: ParamMeta（UI 表示/検証のためのメタ情報）を提供する。
# なぜ: 設定値の型・レンジ・選択肢を一元管理し、検証と AI スキーマ生成で共有するため。

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence


@dataclass(frozen=True, slots=True)
class ParamMeta:
    """パラメータの UI/検証用メタ情報。

    ui_min/ui_max はスライダーのレンジを示すだけで、実値をクランプしない。
    クランプは hard_min/hard_max（None は無制限）で行う。
    """

    kind: str  # "float" | "int" | "bool" | "str" | "font" | "choice" | "color"
    ui_min: Any | None = None
    ui_max: Any | None = None
    choices: Sequence[str] | None = None
    hard_min: float | None = None
    hard_max: float | None = None
