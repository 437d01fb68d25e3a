# src/fluxtype/core/filter_graph.py
# フィルタグラフ（画像処理 stage の DAG）のノード定義とビルダー。
# バッファ参照を arena への型付きハンドルにし、省略された stage 出力への参照を構造的に防ぐ。

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from math import isfinite
from typing import Any, Mapping, Sequence


class StageOp(str, Enum):
    """stage の演算種別。値は対応する SVG フィルタプリミティブ名。"""

    MORPHOLOGY = "feMorphology"
    TURBULENCE = "feTurbulence"
    DISPLACEMENT_MAP = "feDisplacementMap"
    GAUSSIAN_BLUR = "feGaussianBlur"
    COLOR_MATRIX = "feColorMatrix"
    SPECULAR_LIGHTING = "feSpecularLighting"
    COMPOSITE = "feComposite"
    MERGE = "feMerge"


class Buffer(str, Enum):
    """中間バッファの種別。値はバッファ名（SVG の `result` / `in`）。"""

    SOURCE_GRAPHIC = "SourceGraphic"
    MORPHED = "morphed"
    NOISE = "noise"
    DISTORTED = "distorted"
    BLURRED = "blurred"
    GOO_SHAPE = "gooShape"

    BUMP_MAP = "bumpMap"
    SPECULAR = "specular"
    SPECULAR_MASKED = "specularMasked"
    CHROME = "chrome"

    GLASS_BUMP = "glassBump"
    GLASS_SPECULAR = "glassSpecular"
    TRANSPARENT_BASE = "transparentBase"
    GLASS_SHINE = "glassShine"
    GLASS = "glass"

    GLOW1 = "glow1"
    GLOW2 = "glow2"
    GLOW3 = "glow3"
    NEON = "neon"


@dataclass(frozen=True, slots=True)
class BufferRef:
    """グラフ内 arena の 1 バッファを指すハンドル。"""

    index: int
    buffer: Buffer

    @property
    def name(self) -> str:
        """バッファ名を返す。"""
        return self.buffer.value


def _normalize_value(value: Any) -> Any:
    """stage 引数値を比較可能なプリミティブへ正規化する。

    Raises
    ------
    TypeError
        サポートされない型が渡された場合。
    ValueError
        float の値が NaN/inf の場合。
    """
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (int, float)):
        v = float(value)
        if not isfinite(v):
            raise ValueError("非有限の float は stage 引数に使用できない")
        if isinstance(value, int):
            return int(value)
        # -0.0 を 0.0 に揃える。
        return v if v != 0.0 else 0.0
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)):
        return tuple(_normalize_value(v) for v in value)
    raise TypeError(f"正規化できない stage 引数型: {type(value)!r}")


def normalize_params(params: Mapping[str, Any]) -> tuple[tuple[str, Any], ...]:
    """引数辞書をキー順にソートした `(名前, 正規化値)` タプル列へ変換する。"""
    return tuple((str(name), _normalize_value(params[name])) for name in sorted(params))


_MISSING = object()


@dataclass(frozen=True, slots=True)
class FilterStage:
    """フィルタグラフの 1 ノード。

    Attributes
    ----------
    op : StageOp
        演算種別。
    inputs : tuple[BufferRef, ...]
        入力バッファ（順序に意味がある。merge では背面→前面）。
    params : tuple[tuple[str, Any], ...]
        キー順の正規化済み引数。
    output : BufferRef
        このノードが書き込むバッファ。
    """

    op: StageOp
    inputs: tuple[BufferRef, ...]
    params: tuple[tuple[str, Any], ...]
    output: BufferRef

    @property
    def input_names(self) -> tuple[str, ...]:
        return tuple(ref.name for ref in self.inputs)

    def param(self, name: str, default: Any = _MISSING) -> Any:
        """引数値を名前で引く。"""
        for key, value in self.params:
            if key == name:
                return value
        if default is _MISSING:
            raise KeyError(name)
        return default


@dataclass(frozen=True, slots=True)
class FilterGraph:
    """コンパイル済みのフィルタグラフ。

    `buffers[0]` は常に生の図形（SourceGraphic）。各バッファは 1 度だけ書かれる。
    """

    stages: tuple[FilterStage, ...]
    buffers: tuple[Buffer, ...]
    output: BufferRef

    @property
    def ops(self) -> tuple[StageOp, ...]:
        return tuple(stage.op for stage in self.stages)

    def find(self, op: StageOp) -> tuple[FilterStage, ...]:
        """指定 op の stage を出現順に返す。"""
        return tuple(stage for stage in self.stages if stage.op is op)

    def producer(self, ref: BufferRef) -> FilterStage | None:
        """バッファを書き込む stage を返す。SourceGraphic なら None。"""
        for stage in self.stages:
            if stage.output == ref:
                return stage
        return None

    def ref(self, buffer: Buffer) -> BufferRef:
        """バッファ種別から arena 上のハンドルを返す。

        Raises
        ------
        KeyError
            このグラフで生成されていないバッファの場合。
        """
        try:
            return BufferRef(self.buffers.index(buffer), buffer)
        except ValueError as exc:
            raise KeyError(buffer.value) from exc


class FilterGraphBuilder:
    """stage を順に積んで FilterGraph を組み立てるビルダー。"""

    def __init__(self) -> None:
        self._buffers: list[Buffer] = [Buffer.SOURCE_GRAPHIC]
        self._stages: list[FilterStage] = []

    @property
    def source(self) -> BufferRef:
        """生の図形バッファのハンドル。"""
        return BufferRef(0, Buffer.SOURCE_GRAPHIC)

    def _check_ref(self, ref: BufferRef) -> None:
        i = int(ref.index)
        if i < 0 or i >= len(self._buffers) or self._buffers[i] is not ref.buffer:
            raise ValueError(f"未生成のバッファを参照している: {ref.name!r}")

    def emit(
        self,
        op: StageOp,
        inputs: Sequence[BufferRef],
        output: Buffer,
        **params: Any,
    ) -> BufferRef:
        """stage を 1 つ追加し、その出力バッファのハンドルを返す。

        Raises
        ------
        ValueError
            入力が未生成バッファを指す、または出力バッファが既に書かれている場合。
        """
        for ref in inputs:
            self._check_ref(ref)
        if output in self._buffers:
            raise ValueError(f"バッファは 1 度しか書けない: {output.value!r}")

        out_ref = BufferRef(len(self._buffers), output)
        self._buffers.append(output)
        self._stages.append(
            FilterStage(
                op=op,
                inputs=tuple(inputs),
                params=normalize_params(params),
                output=out_ref,
            )
        )
        return out_ref

    def build(self, output: BufferRef) -> FilterGraph:
        """最終出力を指定して FilterGraph を返す。"""
        self._check_ref(output)
        return FilterGraph(
            stages=tuple(self._stages),
            buffers=tuple(self._buffers),
            output=output,
        )


__all__ = [
    "Buffer",
    "BufferRef",
    "FilterGraph",
    "FilterGraphBuilder",
    "FilterStage",
    "StageOp",
    "normalize_params",
]
