"""
どこで: `src/fluxtype/cli.py`。`python -m fluxtype` の実体。
何を: YAML / `--set` から settings を組み立て、必要なら提案を適用し、SVG/PNG 書き出しやプレビューを行う。
なぜ: UI 無しでも同じパイプラインを再現可能な形で回せる入口を用意するため。
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Any

import yaml

from fluxtype.core.animation import AnimationClock
from fluxtype.core.runtime_config import set_config_path
from fluxtype.core.settings import TypeSettings, settings_from_mapping
from fluxtype.interactive.runtime.session import TypeSession

_logger = logging.getLogger(__name__)


def parse_assignment(text: str) -> tuple[str, Any]:
    """`key=value` を分解し、value を YAML スカラーとして解釈して返す。

    Notes
    -----
    `#` 始まりの値は YAML ではコメントになるため、色として文字列のまま扱う。
    """

    key, sep, raw = str(text).partition("=")
    if not sep or not key.strip():
        raise ValueError(f"--set は key=value 形式である必要がある: {text!r}")
    raw = raw.strip()
    if raw.startswith("#"):
        return key.strip(), raw
    value = yaml.safe_load(raw) if raw else ""
    if value is None:
        value = raw
    # YAML はエスケープされた改行をそのまま残すので、テキスト用に展開する。
    if isinstance(value, str):
        value = value.replace("\\n", "\n")
    return key.strip(), value


def load_settings(path: str | Path | None, assignments: list[str]) -> TypeSettings:
    """設定ファイル（YAML mapping）と `--set` の上書きから settings を組み立てる。"""

    data: dict[str, Any] = {}
    if path is not None:
        text = Path(path).read_text(encoding="utf-8")
        loaded = yaml.safe_load(text)
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ValueError(f"settings ファイルは mapping である必要がある: {path}")
        data.update(loaded)
    for item in assignments:
        k, v = parse_assignment(item)
        data[k] = v
    return settings_from_mapping(data)


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="fluxtype", description="stylized typography generator")
    p.add_argument("--settings", default=None, help="settings の YAML ファイル")
    p.add_argument(
        "--set",
        dest="assignments",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="settings を上書きする（複数可。例: --set texture_mode=neon）",
    )
    p.add_argument("--prompt", default=None, help="スタイル提案サービスへ渡すプロンプト")
    p.add_argument("--svg", nargs="?", const="", default=None, help="SVG を保存する（パス省略時は既定）")
    p.add_argument("--png", nargs="?", const="", default=None, help="PNG を保存する（パス省略時は既定）")
    p.add_argument("--time", type=float, default=0.0, help="アニメーション時刻")
    p.add_argument("--config", default=None, help="config.yaml のパス")
    p.add_argument("--preview", action="store_true", help="プレビューウィンドウを開く")
    p.add_argument("--verbose", action="store_true", help="DEBUG ログを出す")
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    if args.config:
        set_config_path(args.config)

    try:
        settings = load_settings(args.settings, list(args.assignments))
    except (OSError, ValueError, yaml.YAMLError) as exc:
        _logger.error("settings を読み込めません: %s", exc)
        return 2

    session = TypeSession(settings, clock=AnimationClock(t0=float(args.time)))

    if args.prompt:
        result = session.apply_suggestion(str(args.prompt))
        if not result.ok:
            print(f"Suggestion ignored: {result.error}")  # noqa: T201

    status = 0
    if args.svg is not None:
        path = session.save_svg(args.svg or None)
        if path is None:
            status = 1
        else:
            print(f"Saved SVG: {path}")  # noqa: T201
    if args.png is not None:
        path = session.save_png(args.png or None)
        if path is None:
            status = 1
        else:
            print(f"Saved PNG: {path}")  # noqa: T201

    if args.preview:
        # GUI 依存はプレビュー時だけ読み込む。
        from fluxtype.interactive.preview import run_preview

        run_preview(session)
    elif args.svg is None and args.png is None:
        print(session.render_svg(), end="")  # noqa: T201

    session.close()
    return status


__all__ = ["load_settings", "main", "parse_assignment"]
