"""
どこで: `src/fluxtype/export/image.py`。
何を: SVG を外部ラスタライザ（resvg）で PNG に変換して保存する関数を提供する。
なぜ: SVG を正（ソース）として保存し、PNG は固定のピクセル倍率で再生成できる導線を用意するため。
"""

from __future__ import annotations

import subprocess
from pathlib import Path

from fluxtype.core.color import coerce_hex_color
from fluxtype.core.runtime_config import runtime_config
from fluxtype.core.scene import Frame
from fluxtype.export.svg import export_svg


def export_image(
    frame: Frame,
    path: str | Path,
    *,
    canvas_size: tuple[int, int],
) -> Path:
    """Frame を画像として保存する。

    Notes
    -----
    拡張子で形式を決める。PNG の場合は同名の `.svg` を保存してから resvg でラスタライズする。
    背景色は settings.background_color を使う。
    """
    _path = Path(path)
    suffix = _path.suffix.lower()

    if suffix == ".svg":
        return export_svg(frame, _path, canvas_size=canvas_size)

    if suffix == ".png":
        svg_path = _path.with_suffix(".svg")
        export_svg(frame, svg_path, canvas_size=canvas_size)
        return rasterize_svg_to_png(
            svg_path,
            _path,
            output_size=png_output_size(canvas_size),
            background_color=frame.settings.background_color,
        )

    raise ValueError(f"未対応の画像フォーマット: {suffix!r}")


def png_output_size(canvas_size: tuple[int, int], *, scale: float | None = None) -> tuple[int, int]:
    """canvas_size を基準に PNG 出力ピクセルサイズを返す。"""

    canvas_w, canvas_h = canvas_size
    if int(canvas_w) <= 0 or int(canvas_h) <= 0:
        raise ValueError("canvas_size は正の (width, height) である必要がある")
    s = float(runtime_config().png_scale) if scale is None else float(scale)
    if s <= 0:
        raise ValueError(f"scale は正の値である必要がある: got={s}")
    return int(int(canvas_w) * s), int(int(canvas_h) * s)


def _resvg_command(
    *,
    input_svg: Path,
    output_png: Path,
    output_size: tuple[int, int],
    background_color: str,
) -> list[str]:
    out_w, out_h = output_size
    if int(out_w) <= 0 or int(out_h) <= 0:
        raise ValueError("output_size は正の (width, height) である必要がある")
    return [
        "resvg",
        "--width",
        str(int(out_w)),
        "--height",
        str(int(out_h)),
        "--background",
        coerce_hex_color(background_color),
        str(input_svg),
        str(output_png),
    ]


def rasterize_svg_to_png(
    svg_path: str | Path,
    png_path: str | Path,
    *,
    output_size: tuple[int, int],
    background_color: str = "#000000",
) -> Path:
    """SVG を PNG として保存する。

    Parameters
    ----------
    svg_path : str or Path
        入力 SVG パス。
    png_path : str or Path
        出力 PNG パス。
    output_size : tuple[int, int]
        出力 PNG の (width, height) ピクセルサイズ。
    background_color : str
        背景色 `#RRGGBB`。既定は黒。

    Returns
    -------
    Path
        出力 PNG パス。

    Raises
    ------
    RuntimeError
        resvg が見つからない、またはラスタライズに失敗した場合。
    """

    _svg_path = Path(svg_path)
    _png_path = Path(png_path)
    _png_path.parent.mkdir(parents=True, exist_ok=True)

    cmd = _resvg_command(
        input_svg=_svg_path,
        output_png=_png_path,
        output_size=output_size,
        background_color=background_color,
    )
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True, check=False)
    except FileNotFoundError as e:
        raise RuntimeError(
            "resvg が見つかりません（`resvg` をインストールして PATH を通してください）"
        ) from e

    if proc.returncode != 0:
        details = (proc.stderr or proc.stdout or "").strip()
        raise RuntimeError(f"resvg が失敗しました (code={proc.returncode}). {details}".strip())

    return _png_path


__all__ = ["export_image", "png_output_size", "rasterize_svg_to_png"]
