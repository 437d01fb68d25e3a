# どこで: `src/fluxtype/core/output_paths.py`。
# 何を: SVG/PNG 書き出しの既定保存パスを決める。
# なぜ: `output/{kind}/` 配下に、書き出し時刻で一意なファイル名で整理して保存するため。

from __future__ import annotations

import time
from pathlib import Path

from fluxtype.core.runtime_config import output_root_dir

SVG_PREFIX = "flux-type-source"
PNG_PREFIX = "flux-type-expanded"


def _epoch_ms() -> int:
    return int(time.time() * 1000)


def default_export_path(*, kind: str, ext: str, timestamp_ms: int | None = None) -> Path:
    """書き出し種別に応じた既定保存パスを返す。

    Notes
    -----
    パスは `{output_root}/{ext}/{prefix}-{epoch_ms}.{ext}`。
    kind は "svg"（ソース）か "png"（ラスタ）。
    """

    ext_norm = str(ext).lstrip(".").strip()
    if not ext_norm:
        raise ValueError("ext は空でない必要がある")
    if kind == "svg":
        prefix = SVG_PREFIX
    elif kind == "png":
        prefix = PNG_PREFIX
    else:
        raise ValueError(f"未対応の書き出し種別: {kind!r}")

    ts = _epoch_ms() if timestamp_ms is None else int(timestamp_ms)
    return output_root_dir() / ext_norm / f"{prefix}-{ts}.{ext_norm}"


__all__ = ["default_export_path"]
