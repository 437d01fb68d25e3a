# どこで: `src/fluxtype/core/text_layout.py`。
# 何を: 複数行テキストの縦積みレイアウト（行送り・1 行目のオフセット）を計算する。
# なぜ: テキスト描画基盤へ渡す情報を純関数で決め、SVG 以外の基盤でも同じ配置にするため。

from __future__ import annotations

from dataclasses import dataclass

from fluxtype.core.settings import TypeSettings


@dataclass(frozen=True, slots=True)
class TextBlock:
    """キャンバス中心に置くテキストブロック。

    `first_line_dy` は中心から 1 行目ベースラインまでの縦オフセット、
    以降の行は `leading` ずつ下へ送る。
    """

    lines: tuple[str, ...]
    font_family: str
    font_size: float
    letter_spacing: float
    leading: float
    first_line_dy: float
    fill: str | None
    stroke: str | None
    stroke_width: float

    def line_offsets(self) -> tuple[float, ...]:
        """各行の相対 dy（1 行目は first_line_dy、以降は leading）を返す。"""

        return tuple(
            self.first_line_dy if i == 0 else self.leading for i in range(len(self.lines))
        )


def layout_text(settings: TypeSettings) -> TextBlock:
    """settings からテキストブロックを組み立てて返す。"""

    lines = tuple(settings.text.split("\n"))
    leading = float(settings.line_height) * float(settings.font_size)
    first_line_dy = -(len(lines) - 1) * leading / 2.0
    return TextBlock(
        lines=lines,
        font_family=settings.font_family.value,
        font_size=float(settings.font_size),
        letter_spacing=float(settings.letter_spacing),
        leading=leading,
        first_line_dy=first_line_dy,
        fill=settings.fill_color if settings.show_fill else None,
        stroke=settings.stroke_color if settings.show_stroke else None,
        stroke_width=float(settings.stroke_width),
    )


__all__ = ["TextBlock", "layout_text"]
