# どこで: `src/fluxtype/interactive/preview.py`。
# 何を: 現在のセッションを resvg でラスタライズして pyglet ウィンドウに表示するプレビューを提供する。
# なぜ: フィルタグラフの見た目を SVG レンダラそのもので確認しつつ、アニメーションの購読をホストのループに載せるため。

from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import Any

import pyglet
from pyglet.window import key

from fluxtype.core.color import hex_to_rgb01
from fluxtype.core.runtime_config import runtime_config
from fluxtype.export.image import rasterize_svg_to_png
from fluxtype.export.svg import export_svg
from fluxtype.interactive.runtime.session import TypeSession

_logger = logging.getLogger(__name__)


class PreviewWindow:
    """セッションの Frame を表示する 1 枚のウィンドウ。"""

    def __init__(self, session: TypeSession, *, work_dir: Path) -> None:
        self._session = session
        self._work_dir = Path(work_dir)
        self._image: Any | None = None
        self._dirty = True

        w, h = session.canvas_size
        self.window = pyglet.window.Window(width=int(w), height=int(h), caption="fluxtype")
        self.window.push_handlers(on_draw=self._on_draw, on_key_press=self._on_key_press)

    def mark_dirty(self, _t: float | None = None) -> None:
        """次の on_draw でラスタライズし直す。"""

        self._dirty = True

    def _rasterize(self) -> None:
        svg_path = self._work_dir / "preview.svg"
        png_path = self._work_dir / "preview.png"
        session = self._session
        export_svg(session.frame(), svg_path, canvas_size=session.canvas_size)
        rasterize_svg_to_png(
            svg_path,
            png_path,
            output_size=session.canvas_size,
            background_color=session.settings.background_color,
        )
        self._image = pyglet.image.load(str(png_path))

    def _on_draw(self) -> None:
        r, g, b = hex_to_rgb01(self._session.settings.background_color)
        pyglet.gl.glClearColor(r, g, b, 1.0)
        self.window.clear()
        if self._dirty:
            self._dirty = False
            try:
                self._rasterize()
            except Exception:
                _logger.exception("Failed to rasterize preview")
        image = self._image
        if image is not None:
            image.blit(0, 0)

    def _on_key_press(self, symbol: int, _modifiers: int) -> None:
        if symbol == key.S:
            path = self._session.save_svg()
            if path is not None:
                print(f"Saved SVG: {path}")
            return
        if symbol == key.P:
            path = self._session.save_png()
            if path is not None:
                print(f"Saved PNG: {path}")


def run_preview(session: TypeSession, *, fps: float | None = None) -> None:
    """プレビューウィンドウを開き、閉じられるまでループを回す。

    Notes
    -----
    S で SVG、P で PNG を保存する。ウィンドウを閉じるとアニメーション購読も外す。
    """

    _fps = float(runtime_config().fps) if fps is None else float(fps)
    with tempfile.TemporaryDirectory(prefix="fluxtype-preview-") as tmp:
        preview = PreviewWindow(session, work_dir=Path(tmp))
        session.start_animation(fps=_fps, on_tick=preview.mark_dirty)
        try:
            pyglet.app.run(1.0 / _fps)
        finally:
            session.stop_animation()
            preview.window.close()


__all__ = ["PreviewWindow", "run_preview"]
