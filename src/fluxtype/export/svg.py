"""
どこで: `src/fluxtype/export/svg.py`。
何を: Frame（テキスト・メタボール・フィルタグラフ）を SVG 文書へ変換し、保存する関数を提供する。
なぜ: フィルタグラフを SVG フィルタプリミティブとして実体化し、任意の SVG レンダラを描画基盤にするため。
"""

from __future__ import annotations

from pathlib import Path
from typing import Any
from xml.sax.saxutils import escape, quoteattr

from fluxtype.core.filter_graph import FilterGraph, FilterStage, StageOp
from fluxtype.core.scene import Circle, Frame
from fluxtype.core.text_layout import TextBlock

_SVG_NS = "http://www.w3.org/2000/svg"
_XLINK_NS = "http://www.w3.org/1999/xlink"
_FLOAT_DECIMALS = 6

FILTER_ID = "abstract-filter"

FONT_URL = (
    "https://fonts.googleapis.com/css2?family=Space+Grotesk:wght@300;400;700"
    "&family=Syne:wght@400;700;800&family=Inter:wght@400;900&family=Rubik+Mono+One"
    "&family=Oswald:wght@400;700&family=Playfair+Display:ital,wght@0,400;0,700;1,400"
    "&family=Lobster&family=Cinzel:wght@400;700&family=Righteous&display=swap"
)

# stage 引数名 → SVG 属性名。
_ATTR_NAMES: dict[str, str] = {
    "operator": "operator",
    "radius": "radius",
    "type": "type",
    "base_frequency": "baseFrequency",
    "num_octaves": "numOctaves",
    "seed": "seed",
    "scale": "scale",
    "x_channel": "xChannelSelector",
    "y_channel": "yChannelSelector",
    "std_deviation": "stdDeviation",
    "values": "values",
    "surface_scale": "surfaceScale",
    "specular_constant": "specularConstant",
    "specular_exponent": "specularExponent",
    "lighting_color": "lighting-color",
    "k1": "k1",
    "k2": "k2",
    "k3": "k3",
    "k4": "k4",
}


def _fmt(value: float, *, decimals: int = _FLOAT_DECIMALS) -> str:
    """SVG 出力向けに数値を決定的な最短表記の文字列へ変換して返す。"""
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    text = f"{float(value):.{int(decimals)}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text in ("-0", ""):
        return "0"
    return text


def _attr_value(value: Any) -> str:
    if isinstance(value, tuple):
        return " ".join(_attr_value(v) for v in value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return _fmt(value)
    return str(value)


def _attrs(pairs: list[tuple[str, str]]) -> str:
    return "".join(f" {name}={quoteattr(value)}" for name, value in pairs)


def _stage_lines(stage: FilterStage, *, indent: str) -> list[str]:
    """1 stage を SVG フィルタプリミティブの行列へ変換して返す。"""
    tag = stage.op.value
    pairs: list[tuple[str, str]] = []

    if stage.op is not StageOp.MERGE:
        if len(stage.inputs) >= 1:
            pairs.append(("in", stage.inputs[0].name))
        if len(stage.inputs) >= 2:
            pairs.append(("in2", stage.inputs[1].name))

    point_light: tuple[float, ...] | None = None
    for key, value in stage.params:
        if key == "point_light":
            point_light = tuple(value)
            continue
        pairs.append((_ATTR_NAMES.get(key, key), _attr_value(value)))
    pairs.append(("result", stage.output.name))

    open_tag = f"{indent}<{tag}{_attrs(pairs)}"
    if stage.op is StageOp.MERGE:
        lines = [open_tag + ">"]
        for ref in stage.inputs:
            lines.append(f"{indent}  <feMergeNode{_attrs([('in', ref.name)])} />")
        lines.append(f"{indent}</{tag}>")
        return lines
    if point_light is not None:
        x, y, z = point_light
        light = _attrs([("x", _fmt(x)), ("y", _fmt(y)), ("z", _fmt(z))])
        return [open_tag + ">", f"{indent}  <fePointLight{light} />", f"{indent}</{tag}>"]
    return [open_tag + " />"]


def filter_lines(graph: FilterGraph, *, indent: str = "    ") -> list[str]:
    """フィルタグラフを `<filter>` 要素の行列へ変換して返す。"""
    head = _attrs(
        [
            ("id", FILTER_ID),
            ("x", "-50%"),
            ("y", "-50%"),
            ("width", "200%"),
            ("height", "200%"),
            ("color-interpolation-filters", "sRGB"),
        ]
    )
    lines = [f"{indent}<filter{head}>"]
    for stage in graph.stages:
        lines.extend(_stage_lines(stage, indent=indent + "  "))
    lines.append(f"{indent}</filter>")
    return lines


def _text_lines(text: TextBlock, *, indent: str) -> list[str]:
    head = _attrs(
        [
            ("x", "50%"),
            ("y", "50%"),
            ("text-anchor", "middle"),
            ("dominant-baseline", "middle"),
            ("font-family", f"'{text.font_family}'"),
            ("font-size", _fmt(text.font_size)),
            ("letter-spacing", _fmt(text.letter_spacing)),
            ("fill", text.fill or "none"),
            ("stroke", text.stroke or "none"),
            ("stroke-width", _fmt(text.stroke_width)),
            ("xml:space", "preserve"),
        ]
    )
    lines = [f"{indent}<text{head}>"]
    for line, dy in zip(text.lines, text.line_offsets()):
        span = _attrs([("x", "50%"), ("dy", _fmt(dy))])
        lines.append(f"{indent}  <tspan{span}>{escape(line)}</tspan>")
    lines.append(f"{indent}</text>")
    return lines


def _circle_line(circle: Circle, *, indent: str) -> str:
    attrs = _attrs(
        [
            ("cx", f"{_fmt(circle.cx)}%"),
            ("cy", f"{_fmt(circle.cy)}%"),
            ("r", _fmt(circle.r)),
            ("fill", circle.fill or "transparent"),
            ("stroke", circle.stroke or "none"),
            ("stroke-width", _fmt(circle.stroke_width)),
        ]
    )
    return f"{indent}<circle{attrs} />"


def _transform(frame: Frame, *, canvas_size: tuple[int, int]) -> str:
    """テキストブロック中心（= キャンバス中心）まわりの rotate/skew を返す。"""
    s = frame.settings
    cx = _fmt(canvas_size[0] / 2.0)
    cy = _fmt(canvas_size[1] / 2.0)
    return (
        f"translate({cx} {cy}) rotate({_fmt(s.rotation)}) "
        f"skewX({_fmt(s.skew_x)}) skewY({_fmt(s.skew_y)}) translate(-{cx} -{cy})"
    )


def frame_to_svg(
    frame: Frame,
    *,
    canvas_size: tuple[int, int],
    include_background: bool = False,
) -> str:
    """Frame を SVG 文書の文字列へ変換して返す。

    Parameters
    ----------
    frame : Frame
        1 フレーム分の描画入力。
    canvas_size : tuple[int, int]
        キャンバス寸法（px）。
    include_background : bool, optional
        True の場合、背景色の矩形を最背面に描く。

    Returns
    -------
    str
        XML 宣言付きの SVG 文書。
    """
    canvas_w, canvas_h = canvas_size
    if int(canvas_w) <= 0 or int(canvas_h) <= 0:
        raise ValueError("canvas_size は正の値である必要がある")

    lines: list[str] = ['<?xml version="1.0" standalone="no"?>']
    root = _attrs(
        [
            ("xmlns", _SVG_NS),
            ("xmlns:xlink", _XLINK_NS),
            ("viewBox", f"0 0 {int(canvas_w)} {int(canvas_h)}"),
            ("width", str(int(canvas_w))),
            ("height", str(int(canvas_h))),
        ]
    )
    lines.append(f"<svg{root}>")
    lines.append("  <defs>")
    lines.append(f'    <style type="text/css">{escape(f"@import url({FONT_URL!r});")}</style>')
    lines.extend(filter_lines(frame.graph))
    lines.append("  </defs>")

    if include_background:
        bg = _attrs([("width", "100%"), ("height", "100%"), ("fill", frame.settings.background_color)])
        lines.append(f"  <rect{bg} />")

    lines.append(f"  <g{_attrs([('filter', f'url(#{FILTER_ID})')])}>")
    lines.append(f"    <g{_attrs([('transform', _transform(frame, canvas_size=canvas_size))])}>")
    lines.extend(_text_lines(frame.text, indent="      "))
    lines.append("    </g>")
    for circle in frame.circles:
        lines.append(_circle_line(circle, indent="    "))
    lines.append("  </g>")
    lines.append("</svg>")
    return "\n".join(lines) + "\n"


class SvgRenderer:
    """Frame を SVG 文書の文字列へ描画する CompositeRenderer。"""

    def __init__(self, *, canvas_size: tuple[int, int], include_background: bool = False) -> None:
        self._canvas_size = (int(canvas_size[0]), int(canvas_size[1]))
        self._include_background = bool(include_background)

    @property
    def canvas_size(self) -> tuple[int, int]:
        return self._canvas_size

    def render(self, frame: Frame) -> str:
        return frame_to_svg(
            frame,
            canvas_size=self._canvas_size,
            include_background=self._include_background,
        )


def export_svg(
    frame: Frame,
    path: str | Path,
    *,
    canvas_size: tuple[int, int],
    include_background: bool = False,
) -> Path:
    """Frame を SVG として保存し、保存先パスを返す（親ディレクトリは作成する）。"""
    _path = Path(path)
    text = frame_to_svg(frame, canvas_size=canvas_size, include_background=include_background)
    _path.parent.mkdir(parents=True, exist_ok=True)
    with _path.open("w", encoding="utf-8", newline="\n") as f:
        f.write(text)
    return _path


__all__ = ["FILTER_ID", "SvgRenderer", "export_svg", "filter_lines", "frame_to_svg"]
