from pathlib import Path

import pytest

from fluxtype.core.output_paths import default_export_path
from fluxtype.core.runtime_config import output_root_dir, runtime_config, set_config_path


@pytest.fixture(autouse=True)
def _reset_runtime_config() -> None:
    set_config_path(None)
    yield
    set_config_path(None)


def _isolate_config_discovery(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))


def test_packaged_defaults(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    _isolate_config_discovery(tmp_path, monkeypatch)

    assert output_root_dir() == Path("data") / "output"
    cfg = runtime_config()
    assert cfg.config_path is None
    assert cfg.canvas_size == (1200, 800)
    assert cfg.png_scale == 2.0
    assert cfg.fps == 60.0
    assert cfg.suggestion_model == "gemini-2.5-flash"
    assert cfg.suggestion_timeout_s == 30.0
    assert cfg.suggestion_api_key_env == "API_KEY"


def test_discovered_config_is_merged_over_defaults(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    _isolate_config_discovery(tmp_path, monkeypatch)

    discovered = tmp_path / ".fluxtype" / "config.yaml"
    discovered.parent.mkdir(parents=True, exist_ok=True)
    discovered.write_text(
        'paths:\n  output_dir: "./out_discovered"\nsuggestion:\n  timeout_s: 5\n',
        encoding="utf-8",
    )

    cfg = runtime_config()
    assert cfg.config_path == discovered
    assert cfg.output_dir == Path("out_discovered")
    assert cfg.suggestion_timeout_s == 5.0
    # 同じ mapping 内の未指定キーは同梱既定値のまま。
    assert cfg.suggestion_model == "gemini-2.5-flash"


def test_explicit_config_overrides_discovered_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    _isolate_config_discovery(tmp_path, monkeypatch)

    discovered = tmp_path / ".fluxtype" / "config.yaml"
    discovered.parent.mkdir(parents=True, exist_ok=True)
    discovered.write_text('paths:\n  output_dir: "./out_discovered"\n', encoding="utf-8")

    explicit = tmp_path / "explicit.yaml"
    explicit.write_text(
        'paths:\n  output_dir: "./out_explicit"\ncanvas:\n  size: [640, 480]\n',
        encoding="utf-8",
    )
    set_config_path(explicit)

    cfg = runtime_config()
    assert cfg.config_path == explicit
    assert cfg.output_dir == Path("out_explicit")
    assert cfg.canvas_size == (640, 480)


def test_explicit_config_path_missing_raises(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    _isolate_config_discovery(tmp_path, monkeypatch)
    set_config_path(tmp_path / "missing.yaml")

    with pytest.raises(FileNotFoundError):
        runtime_config()


def test_invalid_values_raise(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    _isolate_config_discovery(tmp_path, monkeypatch)

    bad = tmp_path / "bad.yaml"
    bad.write_text("export:\n  png:\n    scale: 0\n", encoding="utf-8")
    set_config_path(bad)
    with pytest.raises(ValueError):
        runtime_config()

    bad.write_text("canvas:\n  size: [1, 2, 3]\n", encoding="utf-8")
    set_config_path(bad)
    with pytest.raises(RuntimeError):
        runtime_config()


def test_default_export_path_layout(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    _isolate_config_discovery(tmp_path, monkeypatch)

    svg = default_export_path(kind="svg", ext="svg", timestamp_ms=1700000000000)
    png = default_export_path(kind="png", ext=".png", timestamp_ms=42)
    assert svg == Path("data") / "output" / "svg" / "flux-type-source-1700000000000.svg"
    assert png == Path("data") / "output" / "png" / "flux-type-expanded-42.png"

    with pytest.raises(ValueError):
        default_export_path(kind="gif", ext="gif")
