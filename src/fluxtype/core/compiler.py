"""
どこで: `src/fluxtype/core/compiler.py`。
何を: TypeSettings から固定順序のフィルタグラフ（morph → noise → displace → blur → contrast → material）を組み立てる。
なぜ: グラフの構造と引数を設定だけで決まる純関数にし、描画基盤（SVG など）から切り離して検証できるようにするため。
"""

from __future__ import annotations

from fluxtype.core.filter_graph import Buffer, FilterGraph, FilterGraphBuilder, StageOp
from fluxtype.core.materials import alpha_matrix, material_registry
from fluxtype.core.settings import TypeSettings

NUM_OCTAVES = 2

# 変位に使うノイズ場のチャンネル。
X_CHANNEL = "R"
Y_CHANNEL = "G"


def contrast_matrix(contrast: float) -> tuple[float, ...]:
    """blur 後の alpha に掛ける gooey 閾値行列を返す。

    Notes
    -----
    `alpha' = contrast * alpha - contrast * 0.5`。
    blur の減衰を中点で 0 に合わせてから増幅するので、重なった縁は飽和して融合し、
    薄い縁は負になって消える。
    """

    c = float(contrast)
    return alpha_matrix(c, -(c * 0.5))


def compile_filter_graph(settings: TypeSettings) -> FilterGraph:
    """検証済みの settings からフィルタグラフを生成する。

    Parameters
    ----------
    settings : TypeSettings
        `validate_settings()` / `apply_patch()` を通したスナップショット。

    Returns
    -------
    FilterGraph
        stage 列と最終出力。同じ settings には常に等価なグラフを返す。

    Notes
    -----
    - `morph_radius == 0` のとき morphology stage は生成せず、displacement は SourceGraphic を読む。
    - noise / displacement / blur / contrast の 4 stage は常に生成する（blur 0 も省略しない）。
    - 材質ブランチは `texture_mode` でちょうど 1 つだけ適用する。
    """

    b = FilterGraphBuilder()

    shape = b.source
    if settings.morph_radius > 0:
        shape = b.emit(
            StageOp.MORPHOLOGY,
            [shape],
            Buffer.MORPHED,
            operator=settings.morph_operator,
            radius=float(settings.morph_radius),
        )

    # ノイズ場は図形に依存しないテクスチャ生成なので入力を持たない。
    noise = b.emit(
        StageOp.TURBULENCE,
        [],
        Buffer.NOISE,
        type=settings.noise_type,
        base_frequency=(float(settings.distortion_x), float(settings.distortion_y)),
        num_octaves=NUM_OCTAVES,
        seed=int(settings.noise_seed),
    )
    distorted = b.emit(
        StageOp.DISPLACEMENT_MAP,
        [shape, noise],
        Buffer.DISTORTED,
        scale=float(settings.distortion_strength),
        x_channel=X_CHANNEL,
        y_channel=Y_CHANNEL,
    )
    blurred = b.emit(
        StageOp.GAUSSIAN_BLUR,
        [distorted],
        Buffer.BLURRED,
        std_deviation=float(settings.blur_std_dev),
    )
    goo = b.emit(
        StageOp.COLOR_MATRIX,
        [blurred],
        Buffer.GOO_SHAPE,
        type="matrix",
        values=contrast_matrix(settings.contrast),
    )

    branch = material_registry.get(str(settings.texture_mode))
    return b.build(branch(b, goo))


__all__ = ["compile_filter_graph", "contrast_matrix"]
