# どこで: `src/fluxtype/interactive/runtime/session.py`。
# 何を: 現在の settings スナップショット・メタボール場・アニメーション時刻を束ね、更新/提案/書き出しを提供する。
# なぜ: ホスト（CLI / プレビュー）側の配線を薄くし、エラー方針（検証は伝播、書き出し/提案は no-op へ劣化）を 1 か所に置くため。

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Mapping

from fluxtype.core.animation import AnimationClock, animation_active
from fluxtype.core.metaballs import MetaballField
from fluxtype.core.output_paths import default_export_path
from fluxtype.core.runtime_config import runtime_config
from fluxtype.core.scene import CompositeRenderer, Frame, compose_frame
from fluxtype.core.settings import DEFAULT_SETTINGS, TypeSettings, apply_patch, validate_settings
from fluxtype.export.image import export_image
from fluxtype.export.svg import SvgRenderer, export_svg
from fluxtype.interactive.runtime.animation_ticker import AnimationTicker, Scheduler
from fluxtype.suggest.gemini import SuggestionResult, asuggest_style, suggest_style

_logger = logging.getLogger(__name__)


class TypeSession:
    """1 つの描画セッション。

    Notes
    -----
    settings は常に丸ごと差し替える。MetaballField と AnimationClock はこのセッション専有。
    """

    def __init__(
        self,
        settings: TypeSettings = DEFAULT_SETTINGS,
        *,
        canvas_size: tuple[int, int] | None = None,
        clock: AnimationClock | None = None,
    ) -> None:
        self._settings = validate_settings(settings)
        self._canvas_size = (
            tuple(runtime_config().canvas_size) if canvas_size is None else tuple(canvas_size)
        )
        self._clock = AnimationClock() if clock is None else clock
        self._field = MetaballField()
        self._ticker: AnimationTicker | None = None

    @property
    def settings(self) -> TypeSettings:
        return self._settings

    @property
    def clock(self) -> AnimationClock:
        return self._clock

    @property
    def canvas_size(self) -> tuple[int, int]:
        return (int(self._canvas_size[0]), int(self._canvas_size[1]))

    @property
    def ticker(self) -> AnimationTicker | None:
        return self._ticker

    # --- settings ---------------------------------------------------------

    def replace(self, settings: TypeSettings) -> TypeSettings:
        """検証済みの新しいスナップショットへ差し替えて返す。"""

        self._settings = validate_settings(settings)
        if self._ticker is not None:
            self._ticker.sync(self._settings)
        return self._settings

    def update(self, patch: Mapping[str, Any] | None = None, **fields: Any) -> TypeSettings:
        """パッチを適用した新しいスナップショットへ差し替えて返す。

        Raises
        ------
        ValueError
            パッチが不正な場合。スナップショットは変更されない。
        """

        merged: dict[str, Any] = dict(patch or {})
        merged.update(fields)
        new = apply_patch(self._settings, merged)
        if new is self._settings:
            return new
        return self.replace(new)

    # --- animation --------------------------------------------------------

    def start_animation(
        self,
        *,
        scheduler: Scheduler | None = None,
        fps: float | None = None,
        on_tick: Callable[[float], None] | None = None,
    ) -> AnimationTicker:
        """リフレッシュ購読を開始する（既に開始済みなら張り直す）。"""

        self.stop_animation()
        ticker = AnimationTicker(
            self._clock,
            fps=runtime_config().fps if fps is None else float(fps),
            scheduler=scheduler,
            on_tick=on_tick,
        )
        ticker.sync(self._settings)
        self._ticker = ticker
        return ticker

    def stop_animation(self) -> None:
        """リフレッシュ購読を止める。"""

        ticker = self._ticker
        self._ticker = None
        if ticker is not None:
            ticker.close()

    def tick(self) -> float:
        """表示ループ無しで 1 リフレッシュ分だけ時刻を進め、時刻を返す。"""

        if animation_active(self._settings):
            return self._clock.advance(self._settings.metaball_speed)
        return self._clock.time

    # --- frame ------------------------------------------------------------

    def frame(self) -> Frame:
        """現在のスナップショットと時刻から Frame を組み立てて返す。"""

        return compose_frame(self._settings, field=self._field, clock_time=self._clock.time)

    def render_svg(self, *, include_background: bool = False) -> str:
        """現在の Frame を SVG 文書として返す。"""

        renderer: CompositeRenderer[str] = SvgRenderer(
            canvas_size=self.canvas_size, include_background=include_background
        )
        return renderer.render(self.frame())

    # --- suggestion -------------------------------------------------------

    def _apply_suggestion_result(self, result: SuggestionResult) -> SuggestionResult:
        if not result.ok:
            _logger.info("提案を適用しません: %s", result.error)
            return result
        try:
            self.update(result.patch)
        except ValueError as exc:
            _logger.warning("提案パッチの適用に失敗しました: %s", exc)
            return SuggestionResult.failure(f"invalid patch: {exc}")
        return result

    def apply_suggestion(self, prompt: str, *, client: Any | None = None) -> SuggestionResult:
        """プロンプトから提案を得て、成功時だけ適用する。失敗時は settings を変えない。"""

        result = suggest_style(prompt, self._settings, client=client)
        return self._apply_suggestion_result(result)

    async def aapply_suggestion(self, prompt: str, *, client: Any | None = None) -> SuggestionResult:
        """`apply_suggestion` の非同期版。"""

        result = await asuggest_style(prompt, self._settings, client=client)
        return self._apply_suggestion_result(result)

    # --- export -----------------------------------------------------------

    def save_svg(self, path: str | Path | None = None) -> Path | None:
        """現在の Frame を SVG として保存する。失敗時はログを残して None を返す。"""

        try:
            out = Path(path) if path is not None else default_export_path(kind="svg", ext="svg")
            return export_svg(self.frame(), out, canvas_size=self.canvas_size)
        except Exception:
            _logger.exception("Failed to save SVG")
            return None

    def save_png(self, path: str | Path | None = None) -> Path | None:
        """現在の Frame を PNG として保存する（隣に SVG も残す）。失敗時はログを残して None を返す。"""

        try:
            out = Path(path) if path is not None else default_export_path(kind="png", ext="png")
            return export_image(self.frame(), out.with_suffix(".png"), canvas_size=self.canvas_size)
        except Exception:
            _logger.exception("Failed to save PNG")
            return None

    def close(self) -> None:
        self.stop_animation()


__all__ = ["TypeSession"]
