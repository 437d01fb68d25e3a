# どこで: `src/fluxtype/__init__.py`。
# 何を: ルート `fluxtype` パッケージを定義し、主要 API を再エクスポートする。
# なぜ: import 起点を `fluxtype` に統一するため。

from __future__ import annotations

from fluxtype.core.compiler import compile_filter_graph
from fluxtype.core.metaballs import animated_position, derive_anchors
from fluxtype.core.rng import pseudo_random
from fluxtype.core.settings import DEFAULT_SETTINGS, TypeSettings, apply_patch

__all__ = [
    "DEFAULT_SETTINGS",
    "TypeSettings",
    "animated_position",
    "apply_patch",
    "compile_filter_graph",
    "derive_anchors",
    "pseudo_random",
]
