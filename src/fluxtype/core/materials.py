# src/fluxtype/core/materials.py
# texture_mode ごとの材質ブランチ（gooShape → 最終出力）を登録するレジストリ。
# 材質名からブランチ関数を引き、コンパイラが必ず 1 つだけ適用する。

from __future__ import annotations

from typing import Callable

from fluxtype.core.filter_graph import Buffer, BufferRef, FilterGraphBuilder, StageOp

MaterialFunc = Callable[[FilterGraphBuilder, BufferRef], BufferRef]

# 遠方の点光源（左上奥）。chrome/glass 共通。
POINT_LIGHT: tuple[float, float, float] = (-5000.0, -10000.0, 20000.0)
LIGHT_COLOR = "#ffffff"
SURFACE_SCALE = 5.0

CHROME_BUMP_STD_DEV = 2.0
CHROME_SPECULAR_CONSTANT = 1.2
CHROME_SPECULAR_EXPONENT = 30.0

GLASS_BUMP_STD_DEV = 3.0
GLASS_SPECULAR_CONSTANT = 1.5
GLASS_SPECULAR_EXPONENT = 40.0
GLASS_ALPHA = 0.4

NEON_GLOW_STD_DEVS: tuple[float, float, float] = (2.0, 6.0, 12.0)


class MaterialRegistry:
    """材質名とブランチ関数を対応付けるレジストリ。

    Notes
    -----
    ブランチ関数のシグネチャは ``func(builder, goo) -> BufferRef``。
    goo は contrast remap 済みの `gooShape` ハンドルで、戻り値がグラフの最終出力になる。
    """

    def __init__(self) -> None:
        self._items: dict[str, MaterialFunc] = {}

    def _register(self, name: str, func: MaterialFunc, *, overwrite: bool = False) -> None:
        if not overwrite and name in self._items:
            raise ValueError(f"material '{name}' は既に登録されている")
        self._items[name] = func

    def get(self, name: str) -> MaterialFunc:
        """材質名に対応するブランチ関数を返す。

        Raises
        ------
        KeyError
            未登録の材質名が指定された場合。
        """
        return self._items[name]

    def names(self) -> tuple[str, ...]:
        """登録済みの材質名を登録順に返す。"""
        return tuple(self._items)


material_registry = MaterialRegistry()
"""グローバルな材質レジストリインスタンス。"""


def material(name: str, *, overwrite: bool = False) -> Callable[[MaterialFunc], MaterialFunc]:
    """グローバル材質レジストリ用デコレータ。

    Examples
    --------
    @material("solid")
    def solid(builder, goo):
        return goo
    """

    def decorator(func: MaterialFunc) -> MaterialFunc:
        material_registry._register(str(name), func, overwrite=overwrite)
        return func

    return decorator


def _specular(
    builder: FilterGraphBuilder,
    bump: BufferRef,
    output: Buffer,
    *,
    specular_constant: float,
    specular_exponent: float,
) -> BufferRef:
    return builder.emit(
        StageOp.SPECULAR_LIGHTING,
        [bump],
        output,
        surface_scale=SURFACE_SCALE,
        specular_constant=specular_constant,
        specular_exponent=specular_exponent,
        lighting_color=LIGHT_COLOR,
        point_light=POINT_LIGHT,
    )


@material("solid")
def solid(builder: FilterGraphBuilder, goo: BufferRef) -> BufferRef:
    """gooShape をそのまま最終出力にする（stage を追加しない）。"""
    return goo


@material("chrome")
def chrome(builder: FilterGraphBuilder, goo: BufferRef) -> BufferRef:
    """硬いハイライトの金属調。bump → specular → 輪郭マスク → 加算合成。"""
    bump = builder.emit(
        StageOp.GAUSSIAN_BLUR, [goo], Buffer.BUMP_MAP, std_deviation=CHROME_BUMP_STD_DEV
    )
    spec = _specular(
        builder,
        bump,
        Buffer.SPECULAR,
        specular_constant=CHROME_SPECULAR_CONSTANT,
        specular_exponent=CHROME_SPECULAR_EXPONENT,
    )
    masked = builder.emit(StageOp.COMPOSITE, [spec, goo], Buffer.SPECULAR_MASKED, operator="in")
    return builder.emit(
        StageOp.COMPOSITE,
        [masked, goo],
        Buffer.CHROME,
        operator="arithmetic",
        k1=0.0,
        k2=1.0,
        k3=1.0,
        k4=0.0,
    )


@material("glass")
def glass(builder: FilterGraphBuilder, goo: BufferRef) -> BufferRef:
    """半透明の本体の上に柔らかいハイライトを重ねるガラス調。"""
    bump = builder.emit(
        StageOp.GAUSSIAN_BLUR, [goo], Buffer.GLASS_BUMP, std_deviation=GLASS_BUMP_STD_DEV
    )
    spec = _specular(
        builder,
        bump,
        Buffer.GLASS_SPECULAR,
        specular_constant=GLASS_SPECULAR_CONSTANT,
        specular_exponent=GLASS_SPECULAR_EXPONENT,
    )
    base = builder.emit(
        StageOp.COLOR_MATRIX,
        [goo],
        Buffer.TRANSPARENT_BASE,
        type="matrix",
        values=alpha_matrix(GLASS_ALPHA, 0.0),
    )
    shine = builder.emit(StageOp.COMPOSITE, [spec, goo], Buffer.GLASS_SHINE, operator="in")
    return builder.emit(StageOp.COMPOSITE, [shine, base], Buffer.GLASS, operator="over")


@material("neon")
def neon(builder: FilterGraphBuilder, goo: BufferRef) -> BufferRef:
    """半径の異なる 3 段のグローを奥から重ね、芯を 2 回重ねて飽和させる。"""
    small, medium, large = NEON_GLOW_STD_DEVS
    glow1 = builder.emit(StageOp.GAUSSIAN_BLUR, [goo], Buffer.GLOW1, std_deviation=small)
    glow2 = builder.emit(StageOp.GAUSSIAN_BLUR, [goo], Buffer.GLOW2, std_deviation=medium)
    glow3 = builder.emit(StageOp.GAUSSIAN_BLUR, [goo], Buffer.GLOW3, std_deviation=large)
    return builder.emit(StageOp.MERGE, [glow3, glow2, glow1, goo, goo], Buffer.NEON)


def alpha_matrix(gain: float, offset: float) -> tuple[float, ...]:
    """RGB は恒等、alpha だけ `gain * a + offset` にする 4x5 行列（行優先 20 要素）を返す。"""
    g = float(gain)
    o = float(offset)
    return (
        1.0, 0.0, 0.0, 0.0, 0.0,
        0.0, 1.0, 0.0, 0.0, 0.0,
        0.0, 0.0, 1.0, 0.0, 0.0,
        0.0, 0.0, 0.0, g, o,
    )  # fmt: skip


__all__ = [
    "MaterialFunc",
    "MaterialRegistry",
    "alpha_matrix",
    "material",
    "material_registry",
]
