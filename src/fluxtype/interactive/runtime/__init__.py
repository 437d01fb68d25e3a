# どこで: `src/fluxtype/interactive/runtime/__init__.py`。
# 何を: セッションとアニメーション購読の実装をまとめるパッケージ定義。
# なぜ: ホスト側（CLI / プレビュー）の配線と描画パイプラインを分離するため。

from __future__ import annotations

__all__ = []
