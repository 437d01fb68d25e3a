"""
どこで: `src/fluxtype/core/settings.py`。
何を: タイポグラフィ生成の入力レコード `TypeSettings` と、その既定値・メタ情報・境界検証を定義する。
なぜ: フィルタグラフ生成とメタボール導出を「検証済みスナップショット」だけで駆動し、
     コンパイラ側では範囲外入力を一切考えなくて済むようにするため。
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any, Literal, Mapping

from fluxtype.core.color import coerce_hex_color
from fluxtype.core.parameters.meta import ParamMeta


class FontFamily(str, Enum):
    """選択可能な書体の閉集合。値は CSS の font-family 名。"""

    INTER = "Inter"
    SPACE_GROTESK = "Space Grotesk"
    SYNE = "Syne"
    RUBIK_MONO_ONE = "Rubik Mono One"
    OSWALD = "Oswald"
    PLAYFAIR_DISPLAY = "Playfair Display"
    LOBSTER = "Lobster"
    CINZEL = "Cinzel"
    RIGHTEOUS = "Righteous"
    TIMES_NEW_ROMAN = "Times New Roman"
    COURIER_NEW = "Courier New"


MorphOperator = Literal["dilate", "erode"]
NoiseType = Literal["turbulence", "fractalNoise"]
TextureMode = Literal["solid", "chrome", "glass", "neon"]

MORPH_OPERATORS: tuple[str, ...] = ("dilate", "erode")
NOISE_TYPES: tuple[str, ...] = ("turbulence", "fractalNoise")
TEXTURE_MODES: tuple[str, ...] = ("solid", "chrome", "glass", "neon")


@dataclass(frozen=True, slots=True)
class TypeSettings:
    """1 フレーム分の入力パラメータ（不変スナップショット）。

    Notes
    -----
    ホスト側はフィールドを書き換えず、`apply_patch()` で新しいスナップショットへ丸ごと差し替える。
    """

    # Content
    text: str = "FLUX\nTYPE"
    font_family: FontFamily = FontFamily.SYNE
    font_size: float = 120.0
    letter_spacing: float = 0.0
    line_height: float = 0.9

    # Transform（度、テキストブロック中心まわり）
    rotation: float = 0.0
    skew_x: float = 0.0
    skew_y: float = 0.0

    # Morphology
    morph_radius: float = 0.0
    morph_operator: MorphOperator = "dilate"

    # Distortion（noise + displacement）
    distortion_x: float = 0.02
    distortion_y: float = 0.04
    distortion_strength: float = 30.0
    noise_type: NoiseType = "turbulence"
    noise_seed: int = 1

    # Liquify（blur + alpha threshold）
    blur_std_dev: float = 0.0
    contrast: float = 1.0

    # Texture
    texture_mode: TextureMode = "solid"

    # Metaballs
    num_metaballs: int = 5
    metaball_spread: float = 40.0
    metaball_speed: float = 0.2

    # Style
    fill_color: str = "#FFFFFF"
    stroke_color: str = "#FF0055"
    stroke_width: float = 2.0
    show_fill: bool = True
    show_stroke: bool = False
    background_color: str = "#000000"


DEFAULT_SETTINGS = TypeSettings()
"""既定のスナップショット。"""

SETTINGS_META: dict[str, ParamMeta] = {
    "text": ParamMeta(kind="str"),
    "font_family": ParamMeta(kind="font", choices=tuple(f.value for f in FontFamily)),
    "font_size": ParamMeta(kind="float", ui_min=20.0, ui_max=400.0, hard_min=1.0),
    "letter_spacing": ParamMeta(kind="float", ui_min=-20.0, ui_max=50.0),
    "line_height": ParamMeta(kind="float", ui_min=0.5, ui_max=3.0, hard_min=0.1),
    "rotation": ParamMeta(kind="float", ui_min=-180.0, ui_max=180.0, hard_min=-180.0, hard_max=180.0),
    "skew_x": ParamMeta(kind="float", ui_min=-50.0, ui_max=50.0, hard_min=-89.0, hard_max=89.0),
    "skew_y": ParamMeta(kind="float", ui_min=-50.0, ui_max=50.0, hard_min=-89.0, hard_max=89.0),
    "morph_radius": ParamMeta(kind="float", ui_min=0.0, ui_max=20.0, hard_min=0.0),
    "morph_operator": ParamMeta(kind="choice", choices=MORPH_OPERATORS),
    "distortion_x": ParamMeta(kind="float", ui_min=0.0, ui_max=0.2, hard_min=0.0),
    "distortion_y": ParamMeta(kind="float", ui_min=0.0, ui_max=0.2, hard_min=0.0),
    "distortion_strength": ParamMeta(kind="float", ui_min=0.0, ui_max=200.0, hard_min=0.0),
    "noise_type": ParamMeta(kind="choice", choices=NOISE_TYPES),
    "noise_seed": ParamMeta(kind="int", ui_min=1, ui_max=100, hard_min=1),
    "blur_std_dev": ParamMeta(kind="float", ui_min=0.0, ui_max=30.0, hard_min=0.0),
    "contrast": ParamMeta(kind="float", ui_min=1.0, ui_max=100.0, hard_min=1.0),
    "texture_mode": ParamMeta(kind="choice", choices=TEXTURE_MODES),
    "num_metaballs": ParamMeta(kind="int", ui_min=0, ui_max=20, hard_min=0, hard_max=20),
    "metaball_spread": ParamMeta(kind="float", ui_min=0.0, ui_max=100.0, hard_min=0.0),
    "metaball_speed": ParamMeta(kind="float", ui_min=0.0, ui_max=2.0, hard_min=0.0),
    "fill_color": ParamMeta(kind="color"),
    "stroke_color": ParamMeta(kind="color"),
    "stroke_width": ParamMeta(kind="float", ui_min=0.0, ui_max=10.0, hard_min=0.0),
    "show_fill": ParamMeta(kind="bool"),
    "show_stroke": ParamMeta(kind="bool"),
    "background_color": ParamMeta(kind="color"),
}

FIELD_NAMES: tuple[str, ...] = tuple(f.name for f in fields(TypeSettings))


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


# camelCase 名（AI 応答や外部 JSON）も受け付ける。
FIELD_ALIASES: dict[str, str] = {_camel(name): name for name in FIELD_NAMES}

_SNAKE_RE = re.compile(r"^[a-z][a-z0-9_]*$")

# XML 1.0 の Char に含まれない code point（タブ・改行以外の制御文字、サロゲート、U+FFFE/U+FFFF）。
_XML_ILLEGAL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")


def field_name(key: str) -> str:
    """パッチのキーを TypeSettings のフィールド名へ解決して返す。

    Raises
    ------
    ValueError
        未知のキーの場合。
    """

    k = str(key).strip()
    if k in SETTINGS_META:
        return k
    alias = FIELD_ALIASES.get(k)
    if alias is not None:
        return alias
    if _SNAKE_RE.match(k) is None:
        # "font-size" のような表記も snake へ寄せてから引き直す。
        k2 = k.replace("-", "_").lower()
        if k2 in SETTINGS_META:
            return k2
    raise ValueError(f"unknown settings field: {key!r}")


def _clamp(value: float, meta: ParamMeta) -> float:
    if meta.hard_min is not None and value < meta.hard_min:
        return float(meta.hard_min)
    if meta.hard_max is not None and value > meta.hard_max:
        return float(meta.hard_max)
    return value


def _as_finite_number(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{name} は数値である必要がある: got={value!r}")
    v = float(value)
    if not math.isfinite(v):
        raise ValueError(f"{name} は有限値である必要がある: got={value!r}")
    return v


def coerce_field(name: str, value: Any) -> Any:
    """1 フィールド分の値を検証し、クランプ/正規化済みの値を返す。

    Parameters
    ----------
    name : str
        TypeSettings のフィールド名（snake_case）。
    value : Any
        入力値。

    Returns
    -------
    Any
        フィールド型に揃えた値。数値はハード境界へクランプされる。

    Raises
    ------
    ValueError
        型が合わない、非有限、未知の選択肢、色表記が不正な場合。
    """

    meta = SETTINGS_META.get(name)
    if meta is None:
        raise ValueError(f"unknown settings field: {name!r}")

    kind = meta.kind
    if kind == "float":
        return _clamp(_as_finite_number(name, value), meta)
    if kind == "int":
        v = _as_finite_number(name, value)
        return int(_clamp(float(round(v)), meta))
    if kind == "bool":
        if not isinstance(value, bool):
            raise ValueError(f"{name} は bool である必要がある: got={value!r}")
        return value
    if kind == "str":
        if not isinstance(value, str):
            raise ValueError(f"{name} は str である必要がある: got={value!r}")
        # CRLF / CR は LF に揃える（行分割と SVG の xml:space="preserve" 用）。
        text = value.replace("\r\n", "\n").replace("\r", "\n")
        bad = _XML_ILLEGAL_RE.search(text)
        if bad is not None:
            raise ValueError(f"{name} に XML で使えない文字が含まれている: {bad.group()!r}")
        return text
    if kind == "font":
        if isinstance(value, FontFamily):
            return value
        text = str(value).strip()
        for family in FontFamily:
            if text == family.value or text.upper() == family.name:
                return family
        raise ValueError(f"{name} は未知の書体: got={value!r}")
    if kind == "choice":
        choices = tuple(meta.choices or ())
        if value not in choices:
            raise ValueError(f"{name} は {choices} のいずれかである必要がある: got={value!r}")
        return str(value)
    if kind == "color":
        return coerce_hex_color(value)
    raise ValueError(f"unsupported ParamMeta.kind: {kind!r}")  # pragma: no cover


def validate_settings(settings: TypeSettings) -> TypeSettings:
    """全フィールドを検証し、クランプ済みの新しいスナップショットを返す。"""

    values = {name: coerce_field(name, getattr(settings, name)) for name in FIELD_NAMES}
    return TypeSettings(**values)


def normalize_patch(patch: Mapping[str, Any]) -> dict[str, Any]:
    """パッチのキーを snake_case に解決し、各値を検証した dict を返す。

    Raises
    ------
    ValueError
        未知のキー、または不正な値を 1 つでも含む場合（部分適用はしない）。
    """

    out: dict[str, Any] = {}
    for key, value in patch.items():
        name = field_name(key)
        out[name] = coerce_field(name, value)
    return out


def apply_patch(settings: TypeSettings, patch: Mapping[str, Any]) -> TypeSettings:
    """パッチを検証して適用した新しいスナップショットを返す。

    Notes
    -----
    検証は全キーを先に通してから適用するため、失敗時に中途半端な状態は生まれない。
    """

    normalized = normalize_patch(patch)
    if not normalized:
        return settings
    return replace(settings, **normalized)


def settings_from_mapping(data: Mapping[str, Any]) -> TypeSettings:
    """既定値に mapping を重ねた検証済みスナップショットを返す。"""

    return apply_patch(DEFAULT_SETTINGS, data)


def settings_to_dict(settings: TypeSettings, *, camel_case: bool = False) -> dict[str, Any]:
    """スナップショットをプリミティブ値の dict に変換して返す。"""

    out: dict[str, Any] = {}
    for name in FIELD_NAMES:
        value = getattr(settings, name)
        if isinstance(value, FontFamily):
            value = value.value
        out[_camel(name) if camel_case else name] = value
    return out


__all__ = [
    "DEFAULT_SETTINGS",
    "FIELD_ALIASES",
    "FIELD_NAMES",
    "FontFamily",
    "MORPH_OPERATORS",
    "MorphOperator",
    "NOISE_TYPES",
    "NoiseType",
    "SETTINGS_META",
    "TEXTURE_MODES",
    "TextureMode",
    "TypeSettings",
    "apply_patch",
    "coerce_field",
    "field_name",
    "normalize_patch",
    "settings_from_mapping",
    "settings_to_dict",
    "validate_settings",
]
