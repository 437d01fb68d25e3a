"""
どこで: `src/fluxtype/core/color.py`。
何を: 設定値として扱う色（`#RRGGBB`）の正規化と変換ユーティリティを定義する。
なぜ: 手入力/AI 提案/YAML のどこから来た色も同じ表記へ揃え、SVG と resvg に渡せるようにするため。
"""

from __future__ import annotations

import re

_HEX6 = re.compile(r"^#?([0-9a-fA-F]{6})$")
_HEX3 = re.compile(r"^#?([0-9a-fA-F]{3})$")


def coerce_hex_color(value: object) -> str:
    """値を `#RRGGBB`（大文字）に正規化して返す。

    Parameters
    ----------
    value : object
        `"#ff0055"` / `"ff0055"` / `"#f05"` の文字列。

    Returns
    -------
    str
        正規化済みの `#RRGGBB`。

    Raises
    ------
    ValueError
        16 進カラー表記として解釈できない場合。
    """

    if not isinstance(value, str):
        raise ValueError(f"color must be a hex string: {value!r}")
    s = value.strip()
    m = _HEX6.match(s)
    if m is not None:
        return f"#{m.group(1).upper()}"
    m = _HEX3.match(s)
    if m is not None:
        r, g, b = m.group(1)
        return f"#{r}{r}{g}{g}{b}{b}".upper()
    raise ValueError(f"color must be a hex string like '#RRGGBB': {value!r}")


def hex_to_rgb255(value: str) -> tuple[int, int, int]:
    """`#RRGGBB` を 0..255 int の RGB に変換して返す。"""

    text = coerce_hex_color(value)
    return int(text[1:3], 16), int(text[3:5], 16), int(text[5:7], 16)


def rgb255_to_rgb01(rgb: tuple[int, int, int]) -> tuple[float, float, float]:
    """0..255 int の RGB を 0..1 float の RGB に変換して返す。"""

    r, g, b = rgb
    return float(r) / 255.0, float(g) / 255.0, float(b) / 255.0


def hex_to_rgb01(value: str) -> tuple[float, float, float]:
    """`#RRGGBB` を 0..1 float の RGB に変換して返す。"""

    return rgb255_to_rgb01(hex_to_rgb255(value))


__all__ = ["coerce_hex_color", "hex_to_rgb01", "hex_to_rgb255", "rgb255_to_rgb01"]
