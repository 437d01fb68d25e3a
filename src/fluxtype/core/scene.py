"""
どこで: `src/fluxtype/core/scene.py`。
何を: settings・フィルタグラフ・テキスト配置・メタボール円を 1 フレーム分の `Frame` にまとめる。
なぜ: 描画基盤（SVG 出力やプレビュー）が受け取る “最終形” を 1 か所で定義し、依存方向を単純化するため。
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, TypeVar, runtime_checkable

from fluxtype.core.compiler import compile_filter_graph
from fluxtype.core.filter_graph import FilterGraph
from fluxtype.core.metaballs import MetaballField
from fluxtype.core.settings import TypeSettings
from fluxtype.core.text_layout import TextBlock, layout_text


@dataclass(frozen=True, slots=True)
class Circle:
    """メタボール 1 個分の描画用円（中心はキャンバスに対するパーセント）。"""

    cx: float
    cy: float
    r: float
    fill: str | None
    stroke: str | None
    stroke_width: float


@dataclass(frozen=True, slots=True)
class Frame:
    """1 フレーム分の描画入力。"""

    settings: TypeSettings
    graph: FilterGraph
    text: TextBlock
    circles: tuple[Circle, ...]
    clock_time: float


def compose_frame(
    settings: TypeSettings,
    *,
    field: MetaballField,
    clock_time: float,
) -> Frame:
    """1 フレーム分の Frame を組み立てて返す。

    Parameters
    ----------
    settings : TypeSettings
        検証済みスナップショット。
    field : MetaballField
        セッション専有のアンカーキャッシュ。
    clock_time : float
        アニメーション時刻。

    Returns
    -------
    Frame
        `num_metaballs == 0` のとき circles は空。
    """

    anchors = field.anchors_for(settings)
    positions = field.positions(settings, clock_time)

    fill = settings.fill_color if settings.show_fill else None
    stroke = settings.stroke_color if settings.show_stroke else None
    circles = tuple(
        Circle(
            cx=float(xy[0]),
            cy=float(xy[1]),
            r=float(anchor.radius),
            fill=fill,
            stroke=stroke,
            stroke_width=float(settings.stroke_width),
        )
        for anchor, xy in zip(anchors, positions)
    )

    return Frame(
        settings=settings,
        graph=compile_filter_graph(settings),
        text=layout_text(settings),
        circles=circles,
        clock_time=float(clock_time),
    )


T_co = TypeVar("T_co", covariant=True)


@runtime_checkable
class CompositeRenderer(Protocol[T_co]):
    """Frame を実際の画像/文書へ変換する描画基盤。"""

    def render(self, frame: Frame) -> T_co: ...


__all__ = ["Circle", "CompositeRenderer", "Frame", "compose_frame"]
